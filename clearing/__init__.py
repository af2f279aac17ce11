"""
Price-time priority limit order clearing engine.
"""

__version__ = "1.0.0"
