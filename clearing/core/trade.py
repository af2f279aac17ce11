"""
Trade execution and session output records

This module defines the Trade class (one crossing of a bid and an ask) and the
records the engine hands to its trade sink: one execution record per side of
every trade and one unexecuted record per residual at session close.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Tuple, Union

from .order import OrderSide
from ..utils.formatters import format_price


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """
    One side of an executed trade.
    
    Attributes:
        order_id: Order that traded
        side: BUY for the purchased leg, SELL for the sold leg
        quantity: Shares executed
        price: Execution price
    """
    
    order_id: str
    side: OrderSide
    quantity: int
    price: Decimal
    
    def to_line(self) -> str:
        """Render as ``order <id> <qty> shares purchased|sold at price <p>``."""
        return (
            f"order {self.order_id} {self.quantity} shares {self.side.verb} "
            f"at price {format_price(self.price)}"
        )


@dataclass(frozen=True, slots=True)
class UnexecutedRecord:
    """
    Quantity still resting when the session closed.
    
    Attributes:
        order_id: Order left on the book
        quantity: Remaining shares
        arrival_sequence: Arrival of the order, the report sort key
    """
    
    order_id: str
    quantity: int
    arrival_sequence: int
    
    def to_line(self) -> str:
        """Render as ``order <id> <qty> shares unexecuted``."""
        return f"order {self.order_id} {self.quantity} shares unexecuted"


SessionRecord = Union[ExecutionRecord, UnexecutedRecord]


@dataclass(frozen=True, slots=True)
class Trade:
    """
    Represents a completed trade between the best bid and the best ask.
    
    This class is immutable (frozen=True); trades are final once created.
    
    Attributes:
        trade_sequence: 1-based position of the trade within the session
        buy_order_id: ID of the buying order
        sell_order_id: ID of the selling order
        quantity: Executed quantity
        price: Execution price
        buy_is_market: Whether the buy side was a market order
        sell_is_market: Whether the sell side was a market order
    """
    
    trade_sequence: int
    buy_order_id: str
    sell_order_id: str
    quantity: int
    price: Decimal
    buy_is_market: bool = False
    sell_is_market: bool = False
    
    def __post_init__(self):
        """
        Post-initialization validation.
        
        Raises:
            ValueError: If trade parameters are invalid
        """
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {self.quantity}")
        
        if self.price < 0:
            raise ValueError(f"Price cannot be negative, got {self.price}")
    
    def records(self) -> Tuple[ExecutionRecord, ExecutionRecord]:
        """
        Split the trade into its purchased and sold legs.
        
        Returns:
            (buy record, sell record), in emission order
        """
        return (
            ExecutionRecord(self.buy_order_id, OrderSide.BUY, self.quantity, self.price),
            ExecutionRecord(self.sell_order_id, OrderSide.SELL, self.quantity, self.price),
        )


class TradeSink(Protocol):
    """Append-only consumer of the records a session produces."""
    
    def emit(self, record: SessionRecord) -> None:
        ...
