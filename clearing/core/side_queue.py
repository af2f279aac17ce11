"""
Side queue with price-time priority

This module defines the SideQueue class which keeps the resting orders of one
side of the book ordered so that the order the clearing sweep must consider
next is always at the front.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sortedcontainers import SortedKeyList

from .order import Order, OrderSide
from ..utils.exceptions import (
    DuplicateOrderException,
    EmptyQueueException,
    OrderBookException,
)


PriorityKey = Tuple[int, Decimal, int]


class SideQueue:
    """
    Resting orders for one side, ranked by price then arrival.
    
    Bids rank the highest limit price first and asks the lowest; equal prices
    fall back to the lower arrival sequence. Market orders carry a zero limit
    price, so by default a market bid ranks behind every positive limit bid.
    With ``market_orders_first`` market orders rank ahead of all limit
    orders on their side instead.
    
    Keys are derived from fields that never change while an order is resting,
    so quantity changes always go through pop, mutate, reinsert.
    
    Attributes:
        side: Buy or sell side served by this queue
        market_orders_first: Whether market orders outrank limit orders
    """
    
    def __init__(self, side: OrderSide, market_orders_first: bool = False):
        """
        Initialize an empty side queue.
        
        Args:
            side: The side (BUY or SELL) for this queue
            market_orders_first: Rank market orders ahead of limit orders
        """
        self.side: OrderSide = side
        self.market_orders_first: bool = market_orders_first
        self._orders: SortedKeyList = SortedKeyList(key=self.priority_key)
        self._order_map: Dict[str, Order] = {}
    
    def priority_key(self, order: Order) -> PriorityKey:
        """
        Composite sort key; smaller sorts first.
        
        Args:
            order: Order to rank
            
        Returns:
            Tuple of (market rank, side-dependent price rank, arrival sequence)
        """
        market_rank = 0 if (order.is_market_order or not self.market_orders_first) else 1
        if self.side is OrderSide.BUY:
            price_rank = -order.limit_price
        else:
            price_rank = order.limit_price
        return market_rank, price_rank, order.arrival_sequence
    
    def insert(self, order: Order) -> None:
        """
        Add an order at its priority position.
        
        Args:
            order: Order to add
            
        Raises:
            OrderBookException: If the order belongs to the other side or is empty
            DuplicateOrderException: If an order with the same id is resting
        """
        if order.side is not self.side:
            raise OrderBookException(
                f"Order side {order.side.name} doesn't match queue side {self.side.name}",
                details={"order_id": order.order_id}
            )
        
        if order.quantity <= 0:
            raise OrderBookException(
                "Cannot rest an order with no remaining quantity",
                details={"order_id": order.order_id}
            )
        
        if order.order_id in self._order_map:
            raise DuplicateOrderException(
                f"Order {order.order_id} is already resting",
                details={"order_id": order.order_id}
            )
        
        self._orders.add(order)
        self._order_map[order.order_id] = order
    
    def reinsert(self, order: Order) -> None:
        """Put a partially filled order back at the priority it had before."""
        self.insert(order)
    
    def peek_best(self) -> Optional[Order]:
        """
        Get the best order without removing it.
        
        Returns:
            Best order or None if the queue is empty
        """
        if not self._orders:
            return None
        return self._orders[0]
    
    def pop_best(self) -> Order:
        """
        Remove and return the best order.
        
        Returns:
            The order that was at the front of the queue
            
        Raises:
            EmptyQueueException: If the queue holds no orders
        """
        if not self._orders:
            raise EmptyQueueException(
                f"Cannot pop from empty {self.side.name} queue",
                details={"side": self.side.value}
            )
        
        order = self._orders.pop(0)
        del self._order_map[order.order_id]
        return order
    
    def drain_sorted_by_arrival(self) -> List[Order]:
        """
        Empty the queue.
        
        Returns:
            All resting orders, oldest arrival first
        """
        drained = sorted(self._orders, key=lambda order: order.arrival_sequence)
        self._orders.clear()
        self._order_map.clear()
        return drained
    
    def orders(self) -> List[Order]:
        """Snapshot of resting orders in priority order."""
        return list(self._orders)
    
    @property
    def total_quantity(self) -> int:
        """Sum of resting quantities on this side."""
        return sum(order.quantity for order in self._orders)
    
    def is_empty(self) -> bool:
        return not self._orders
    
    def __contains__(self, order_id: object) -> bool:
        return order_id in self._order_map
    
    def __len__(self) -> int:
        return len(self._orders)
    
    def __repr__(self) -> str:
        return (
            f"SideQueue(side={self.side.name}, orders={len(self)}, "
            f"volume={self.total_quantity})"
        )
