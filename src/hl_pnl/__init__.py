"""
Hyperliquid wallet daily PnL / equity-curve service.
"""

__version__ = "0.1.0"
