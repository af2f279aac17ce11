"""
Order domain model with enums and validation

This module defines the Order class: an immutable identity (id, side, limit,
arrival sequence) plus a resting quantity that only shrinks as fills occur.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union

from ..utils.exceptions import InvalidOrderException
from ..utils.formatters import format_price
from ..utils.validators import (
    sanitize_decimal,
    validate_price,
    validate_quantity,
)


ZERO = Decimal("0")


class OrderSide(Enum):
    """Order side enumeration; values are the input-file tokens."""
    BUY = "B"
    SELL = "S"
    
    def __str__(self) -> str:
        return self.value
    
    @property
    def verb(self) -> str:
        """Past-tense verb used in execution records."""
        return "purchased" if self is OrderSide.BUY else "sold"


@dataclass(slots=True)
class Order:
    """
    Represents an order resting in (or about to enter) the book.
    
    Attributes:
        order_id: Opaque identifier, unique within a session
        side: Buy or sell
        quantity: Shares still resting; decreases as fills occur
        arrival_sequence: 1-based ingestion counter used for time priority
        limit_price: Limit price (zero for market orders)
        is_market_order: True when the order carries no binding limit
        original_quantity: Quantity at submission
    """
    
    order_id: str
    side: OrderSide
    quantity: int
    arrival_sequence: int
    limit_price: Decimal = ZERO
    is_market_order: bool = False
    original_quantity: int = field(init=False)
    
    def __post_init__(self):
        """
        Normalize field types and validate.
        
        Raises:
            InvalidOrderException: If order parameters are invalid
        """
        if isinstance(self.side, str):
            try:
                self.side = OrderSide(self.side.upper())
            except ValueError:
                raise InvalidOrderException(
                    f"Invalid side: {self.side}",
                    details={"order_id": self.order_id, "side": self.side}
                )
        
        if not isinstance(self.limit_price, Decimal):
            self.limit_price = sanitize_decimal(self.limit_price)
        
        self.original_quantity = self.quantity
        self.validate()
    
    @classmethod
    def limit(
        cls,
        order_id: str,
        side: Union[OrderSide, str],
        quantity: int,
        price: Union[Decimal, str, int],
        arrival_sequence: int,
    ) -> "Order":
        """Create a limit order."""
        return cls(order_id, side, quantity, arrival_sequence, limit_price=price)
    
    @classmethod
    def market(
        cls,
        order_id: str,
        side: Union[OrderSide, str],
        quantity: int,
        arrival_sequence: int,
    ) -> "Order":
        """Create a market order (zero internal price)."""
        return cls(order_id, side, quantity, arrival_sequence, is_market_order=True)
    
    def validate(self) -> None:
        """
        Validate order parameters.
        
        Raises:
            InvalidOrderException: If validation fails
        """
        if not self.order_id or not str(self.order_id).strip():
            raise InvalidOrderException("Order id cannot be empty")
        
        if not isinstance(self.side, OrderSide):
            raise InvalidOrderException(
                f"Invalid side: {self.side}",
                details={"order_id": self.order_id}
            )
        
        validate_quantity(self.quantity, self.order_id)
        validate_price(self.limit_price, self.order_id)
        
        if self.is_market_order and self.limit_price != ZERO:
            raise InvalidOrderException(
                f"Market order {self.order_id} cannot carry a limit price",
                details={"order_id": self.order_id, "price": str(self.limit_price)}
            )
        
        if isinstance(self.arrival_sequence, bool) or not isinstance(self.arrival_sequence, int) \
                or self.arrival_sequence < 1:
            raise InvalidOrderException(
                f"Arrival sequence must be a positive integer, got {self.arrival_sequence!r}",
                details={"order_id": self.order_id}
            )
    
    def fill(self, quantity: int) -> None:
        """
        Reduce the resting quantity by an executed amount.
        
        Must only be called while the order is outside its side queue.
        
        Raises:
            InvalidOrderException: If the fill quantity is invalid
        """
        if quantity <= 0:
            raise InvalidOrderException(f"Fill quantity must be positive, got {quantity}")
        
        if quantity > self.quantity:
            raise InvalidOrderException(
                f"Fill quantity {quantity} exceeds remaining {self.quantity}",
                details={"order_id": self.order_id}
            )
        
        self.quantity -= quantity
    
    @property
    def is_buy(self) -> bool:
        return self.side is OrderSide.BUY
    
    @property
    def is_sell(self) -> bool:
        return self.side is OrderSide.SELL
    
    @property
    def is_filled(self) -> bool:
        return self.quantity == 0
    
    @property
    def filled_quantity(self) -> int:
        return self.original_quantity - self.quantity
    
    @property
    def display_price(self) -> str:
        """Limit price as two-decimal text, or M for market orders."""
        return "M" if self.is_market_order else format_price(self.limit_price)
    
    def __repr__(self) -> str:
        return (
            f"Order(id={self.order_id}, {self.side.name} {self.quantity}/{self.original_quantity} "
            f"@ {self.display_price}, seq={self.arrival_sequence})"
        )
