import logging

from fastapi import FastAPI

from . import __version__
from .api.health import health_router
from .api.pnl import get_configs, pnl_router
from .utils.logging_config import setup_logging


def create_app() -> FastAPI:
    env, _ = get_configs()
    setup_logging(
        log_file_prefix="server_hl_pnl",
        log_dir=env.LOG_DIR,
        log_level=env.LOG_LEVEL,
        console=env.LOG_CONSOLE,
    )

    app = FastAPI(title="hyperliquid-pnl", version=__version__)
    app.include_router(health_router)
    app.include_router(pnl_router)

    logging.getLogger(__name__).info("hyperliquid-pnl API ready")
    return app


app = create_app()
