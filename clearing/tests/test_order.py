"""
Unit tests for the Order model and input validators.
"""

import pytest
from decimal import Decimal

from clearing.core.order import Order, OrderSide
from clearing.utils.exceptions import (
    InvalidOrderException,
    InvalidQuantityException,
    PriceOutOfBoundsException,
)
from clearing.utils.validators import (
    sanitize_decimal,
    sanitize_quantity,
    validate_price,
    validate_side,
)


class TestOrderCreation:
    """Order construction and normalization."""
    
    def test_limit_order(self):
        """Limit orders keep their price and record the original quantity."""
        order = Order.limit("O1", OrderSide.BUY, 10, Decimal("101.50"), 1)
        
        assert order.is_buy
        assert not order.is_market_order
        assert order.limit_price == Decimal("101.50")
        assert order.original_quantity == 10
        assert order.arrival_sequence == 1
        assert order.display_price == "101.50"
    
    def test_market_order_has_zero_price(self):
        """Market orders carry a zero limit price and display as M."""
        order = Order.market("O2", OrderSide.SELL, 5, 2)
        
        assert order.is_sell
        assert order.is_market_order
        assert order.limit_price == Decimal("0")
        assert order.display_price == "M"
    
    def test_side_token_is_normalized(self):
        """Side can be given as its input-file token."""
        assert Order.market("O1", "b", 1, 1).side is OrderSide.BUY
        assert Order.limit("O2", "S", 1, "10", 2).side is OrderSide.SELL
    
    def test_string_price_is_converted(self):
        order = Order.limit("O1", "B", 3, "99.5", 1)
        assert order.limit_price == Decimal("99.5")
    
    def test_zero_limit_price_is_allowed(self):
        order = Order.limit("O1", "B", 3, "0", 1)
        assert order.limit_price == Decimal("0")
        assert not order.is_market_order


class TestOrderValidation:
    """Orders that must be rejected before reaching the book."""
    
    @pytest.mark.parametrize("quantity", [0, -5])
    def test_non_positive_quantity(self, quantity):
        with pytest.raises(InvalidQuantityException):
            Order.limit("O1", OrderSide.BUY, quantity, Decimal("10"), 1)
    
    def test_fractional_quantity(self):
        with pytest.raises(InvalidQuantityException):
            Order.limit("O1", OrderSide.BUY, 1.5, Decimal("10"), 1)
    
    def test_negative_price(self):
        with pytest.raises(PriceOutOfBoundsException):
            Order.limit("O1", OrderSide.SELL, 5, Decimal("-0.01"), 1)
    
    def test_unknown_side(self):
        with pytest.raises(InvalidOrderException):
            Order.market("O1", "X", 5, 1)
    
    def test_empty_id(self):
        with pytest.raises(InvalidOrderException):
            Order.market("  ", OrderSide.BUY, 5, 1)
    
    def test_arrival_sequence_must_be_positive(self):
        with pytest.raises(InvalidOrderException):
            Order.market("O1", OrderSide.BUY, 5, 0)
    
    def test_market_order_with_price(self):
        """A market order cannot also carry a limit."""
        with pytest.raises(InvalidOrderException):
            Order("O1", OrderSide.BUY, 5, 1, limit_price=Decimal("10"), is_market_order=True)


class TestOrderFill:
    """Quantity bookkeeping."""
    
    def test_partial_then_full_fill(self):
        order = Order.limit("O1", OrderSide.BUY, 10, Decimal("100"), 1)
        
        order.fill(4)
        assert order.quantity == 6
        assert order.filled_quantity == 4
        assert not order.is_filled
        
        order.fill(6)
        assert order.quantity == 0
        assert order.is_filled
    
    def test_overfill_rejected(self):
        order = Order.limit("O1", OrderSide.BUY, 3, Decimal("100"), 1)
        with pytest.raises(InvalidOrderException):
            order.fill(4)
        assert order.quantity == 3
    
    def test_zero_fill_rejected(self):
        order = Order.limit("O1", OrderSide.BUY, 3, Decimal("100"), 1)
        with pytest.raises(InvalidOrderException):
            order.fill(0)


class TestValidators:
    """Standalone validation helpers."""
    
    def test_sanitize_decimal(self):
        assert sanitize_decimal("101.25") == Decimal("101.25")
        assert sanitize_decimal(7) == Decimal("7")
    
    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity"])
    def test_sanitize_decimal_rejects(self, value):
        with pytest.raises(InvalidOrderException):
            sanitize_decimal(value)
    
    def test_sanitize_quantity(self):
        assert sanitize_quantity("12") == 12
        assert sanitize_quantity(3) == 3
    
    @pytest.mark.parametrize("value", ["1.5", "ten", True])
    def test_sanitize_quantity_rejects(self, value):
        with pytest.raises(InvalidQuantityException):
            sanitize_quantity(value)
    
    def test_validate_price(self):
        assert validate_price(None)
        assert validate_price(Decimal("0"))
        with pytest.raises(PriceOutOfBoundsException):
            validate_price(Decimal("-1"))
    
    def test_validate_side(self):
        assert validate_side(" s ") == "S"
        with pytest.raises(InvalidOrderException):
            validate_side("buy")
