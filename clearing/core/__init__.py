"""
Core domain models and matching engine logic
"""

from .order import Order, OrderSide
from .trade import Trade, ExecutionRecord, UnexecutedRecord, SessionRecord, TradeSink
from .side_queue import SideQueue
from .order_book import OrderBook, BookRow, BookSnapshot
from .pricing import can_match, determine_execution_price
from .matching_engine import MatchingEngine

__all__ = [
    "Order",
    "OrderSide",
    "Trade",
    "ExecutionRecord",
    "UnexecutedRecord",
    "SessionRecord",
    "TradeSink",
    "SideQueue",
    "OrderBook",
    "BookRow",
    "BookSnapshot",
    "can_match",
    "determine_execution_price",
    "MatchingEngine",
]
