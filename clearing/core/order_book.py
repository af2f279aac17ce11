"""
Two-sided order book

This module pairs a bid SideQueue with an ask SideQueue and exposes the
top-of-book views the matching engine and the displays need.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .order import Order, OrderSide
from .pricing import can_match
from .side_queue import SideQueue
from ..utils.exceptions import OrderBookException


@dataclass(frozen=True)
class BookRow:
    """One resting order as shown in a book display."""
    
    order_id: str
    price: str
    quantity: int
    arrival_sequence: int
    
    @classmethod
    def from_order(cls, order: Order) -> "BookRow":
        return cls(order.order_id, order.display_price, order.quantity, order.arrival_sequence)


@dataclass(frozen=True)
class BookSnapshot:
    """Resting orders on both sides, each in priority order."""
    
    bids: List[BookRow] = field(default_factory=list)
    asks: List[BookRow] = field(default_factory=list)
    
    @property
    def depth(self) -> int:
        return max(len(self.bids), len(self.asks))


class OrderBook:
    """
    Holds the bid and ask queues for a single session.
    
    The two queues are disjoint: an order id rests on at most one side, at
    most once.
    
    Attributes:
        bids: Buy-side queue, highest limit first
        asks: Sell-side queue, lowest limit first
    """
    
    def __init__(self, market_orders_first: bool = False):
        """
        Initialize an empty book.
        
        Args:
            market_orders_first: Rank market orders ahead of limit orders
        """
        self.bids: SideQueue = SideQueue(OrderSide.BUY, market_orders_first)
        self.asks: SideQueue = SideQueue(OrderSide.SELL, market_orders_first)
    
    def queue_for(self, side: OrderSide) -> SideQueue:
        """Return the queue serving ``side``."""
        return self.bids if side is OrderSide.BUY else self.asks
    
    def add_order(self, order: Order) -> None:
        """
        Rest an order on its side.
        
        Raises:
            OrderBookException: If the id already rests on the opposite side
        """
        opposite = self.asks if order.is_buy else self.bids
        if order.order_id in opposite:
            raise OrderBookException(
                f"Order {order.order_id} already rests on the {opposite.side.name} side",
                details={"order_id": order.order_id}
            )
        self.queue_for(order.side).insert(order)
    
    def best_bid(self) -> Optional[Order]:
        return self.bids.peek_best()
    
    def best_ask(self) -> Optional[Order]:
        return self.asks.peek_best()
    
    def has_both_sides(self) -> bool:
        return not self.bids.is_empty() and not self.asks.is_empty()
    
    def is_crossed(self) -> bool:
        """
        Check whether the top of book could still trade.
        
        Returns:
            True if both sides are populated and the best pair crosses
        """
        if not self.has_both_sides():
            return False
        return can_match(self.best_bid(), self.best_ask())
    
    def snapshot(self) -> BookSnapshot:
        """Copy of both sides for display or serialization."""
        return BookSnapshot(
            bids=[BookRow.from_order(order) for order in self.bids.orders()],
            asks=[BookRow.from_order(order) for order in self.asks.orders()],
        )
    
    def drain_resting(self) -> List[Order]:
        """
        Empty both sides.
        
        Returns:
            Every resting order, oldest arrival first regardless of side
        """
        drained = self.bids.drain_sorted_by_arrival() + self.asks.drain_sorted_by_arrival()
        drained.sort(key=lambda order: order.arrival_sequence)
        return drained
    
    def __contains__(self, order_id: object) -> bool:
        return order_id in self.bids or order_id in self.asks
    
    def __len__(self) -> int:
        return len(self.bids) + len(self.asks)
    
    def __repr__(self) -> str:
        return f"OrderBook(bids={len(self.bids)}, asks={len(self.asks)})"
