"""
Pydantic models for API request/response validation.

This module defines the data models used by the session replay endpoint.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clearing.core.order import Order
from clearing.core.trade import ExecutionRecord, Trade, UnexecutedRecord
from clearing.utils.formatters import format_price
from clearing.utils.validators import sanitize_decimal


PRICE_PATTERN = r'^\d+(\.\d+)?$'


# ============================================================================
# Request Models
# ============================================================================

class OrderEntry(BaseModel):
    """One order of a replayed session; omit ``limit_price`` for a market order."""
    
    order_id: str = Field(
        ...,
        description="Order identifier, unique within the session",
        min_length=1,
        pattern=r'^\S+$'
    )
    side: str = Field(..., description="B for buy, S for sell", pattern=r'^[BbSs]$')
    quantity: int = Field(..., description="Whole number of shares", gt=0)
    limit_price: Optional[str] = Field(
        None,
        description="Limit price as decimal string (market order when omitted)",
        pattern=PRICE_PATTERN
    )
    
    def to_order(self, arrival_sequence: int) -> Order:
        """Convert to an Order with the given arrival sequence."""
        if self.limit_price is None:
            return Order.market(self.order_id, self.side, self.quantity, arrival_sequence)
        return Order.limit(
            self.order_id,
            self.side,
            self.quantity,
            sanitize_decimal(self.limit_price),
            arrival_sequence,
        )


class ReplayRequest(BaseModel):
    """
    Request model for replaying a session.
    
    Supply either ``initial_price`` with ``orders``, or the raw input file
    content in ``text``.
    """
    
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "initial_price": "100.00",
            "orders": [
                {"order_id": "O1", "side": "B", "quantity": 10, "limit_price": "101.00"},
                {"order_id": "O2", "side": "S", "quantity": 5, "limit_price": "99.00"}
            ]
        }
    })
    
    initial_price: Optional[str] = Field(
        None,
        description="Session seed for the last traded price",
        pattern=PRICE_PATTERN
    )
    orders: List[OrderEntry] = Field(default_factory=list, description="Orders in arrival order")
    text: Optional[str] = Field(None, description="Raw session input (seed line, then orders)")
    market_orders_first: Optional[bool] = Field(
        None,
        description="Rank market orders ahead of limit orders (server default when omitted)"
    )
    
    @model_validator(mode="after")
    def check_source(self) -> "ReplayRequest":
        """Exactly one of structured orders or raw text must be provided."""
        if self.text is not None:
            if self.initial_price is not None or self.orders:
                raise ValueError("Provide either 'text' or 'initial_price'/'orders', not both")
        elif self.initial_price is None:
            raise ValueError("'initial_price' is required when 'text' is not provided")
        return self
    
    def to_orders(self) -> List[Order]:
        return [entry.to_order(i) for i, entry in enumerate(self.orders, start=1)]


# ============================================================================
# Response Models
# ============================================================================

class TradeResponse(BaseModel):
    """Response model for a trade."""
    
    trade_sequence: int = Field(..., description="Position of the trade in the session")
    buy_order_id: str = Field(..., description="Buying order")
    sell_order_id: str = Field(..., description="Selling order")
    quantity: int = Field(..., description="Executed quantity")
    price: str = Field(..., description="Execution price")
    
    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeResponse":
        """Create from Trade object."""
        return cls(
            trade_sequence=trade.trade_sequence,
            buy_order_id=trade.buy_order_id,
            sell_order_id=trade.sell_order_id,
            quantity=trade.quantity,
            price=format_price(trade.price),
        )


class ExecutionResponse(BaseModel):
    """One side of a trade as written to the output."""
    
    order_id: str
    side: str = Field(..., description="buy or sell")
    quantity: int
    price: str
    
    @classmethod
    def from_record(cls, record: ExecutionRecord) -> "ExecutionResponse":
        return cls(
            order_id=record.order_id,
            side=record.side.name.lower(),
            quantity=record.quantity,
            price=format_price(record.price),
        )


class UnexecutedResponse(BaseModel):
    """Residual left on the book at session close."""
    
    order_id: str
    quantity: int
    arrival_sequence: int
    
    @classmethod
    def from_record(cls, record: UnexecutedRecord) -> "UnexecutedResponse":
        return cls(
            order_id=record.order_id,
            quantity=record.quantity,
            arrival_sequence=record.arrival_sequence,
        )


class ReplayResponse(BaseModel):
    """Response model for a replayed session."""
    
    initial_price: str = Field(..., description="Session seed price")
    last_traded_price: str = Field(..., description="Price of the final trade")
    trades: List[TradeResponse] = Field(default_factory=list)
    executions: List[ExecutionResponse] = Field(default_factory=list)
    unexecuted: List[UnexecutedResponse] = Field(default_factory=list)
    lines: List[str] = Field(default_factory=list, description="Output-file lines")
    statistics: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(..., description="Completion timestamp")


class HealthResponse(BaseModel):
    """Response model for health check."""
    
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="API version")
    sessions_replayed: int = Field(..., description="Sessions replayed since startup")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error timestamp")
