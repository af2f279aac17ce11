"""
Input validation utilities

This module provides validation functions for order sides, prices and
quantities so that the engine only ever sees well-formed orders.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from .exceptions import (
    InvalidOrderException,
    InvalidQuantityException,
    PriceOutOfBoundsException,
)


VALID_SIDES = ("B", "S")


def sanitize_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    """
    Convert a value to Decimal with proper error handling.
    
    Args:
        value: Value to convert to Decimal
        
    Returns:
        Decimal representation of the value
        
    Raises:
        InvalidOrderException: If value cannot be converted to a finite Decimal
    """
    try:
        if isinstance(value, Decimal):
            result = value
        else:
            result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidOrderException(
            f"Invalid decimal value: {value}",
            details={"value": value, "error": str(e)}
        )
    
    if not result.is_finite():
        raise InvalidOrderException(
            f"Decimal value must be finite, got {value}",
            details={"value": value}
        )
    
    return result


def sanitize_quantity(value: Union[str, int]) -> int:
    """
    Convert a value to a whole share count.
    
    Args:
        value: Token or integer to convert
        
    Returns:
        Integer quantity
        
    Raises:
        InvalidQuantityException: If value is not a whole number
    """
    if isinstance(value, bool):
        raise InvalidQuantityException(
            f"Invalid quantity: {value}",
            details={"quantity": value}
        )
    
    if isinstance(value, int):
        return value
    
    try:
        return int(str(value).strip())
    except (ValueError, TypeError) as e:
        raise InvalidQuantityException(
            f"Invalid quantity: {value}",
            details={"quantity": value, "error": str(e)}
        )


def validate_price(price: Optional[Decimal], order_id: str = "") -> bool:
    """
    Validate a limit price.
    
    Zero is accepted because market orders carry a zero price internally.
    
    Args:
        price: Price to validate (None is treated as "no limit")
        order_id: Order identifier for context
        
    Returns:
        True if price is valid
        
    Raises:
        PriceOutOfBoundsException: If price is negative or not finite
    """
    if price is None:
        return True
    
    if not isinstance(price, Decimal) or not price.is_finite():
        raise PriceOutOfBoundsException(
            f"Price must be a finite decimal, got {price!r}",
            details={"order_id": order_id, "price": str(price)}
        )
    
    if price < 0:
        raise PriceOutOfBoundsException(
            f"Price cannot be negative, got {price}",
            details={"order_id": order_id, "price": str(price)}
        )
    
    return True


def validate_quantity(quantity: int, order_id: str = "") -> bool:
    """
    Validate an order quantity.
    
    Args:
        quantity: Quantity to validate
        order_id: Order identifier for context
        
    Returns:
        True if quantity is valid
        
    Raises:
        InvalidQuantityException: If quantity is not a positive integer
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityException(
            f"Quantity must be an integer, got {quantity!r}",
            details={"order_id": order_id, "quantity": str(quantity)}
        )
    
    if quantity <= 0:
        raise InvalidQuantityException(
            f"Quantity must be positive, got {quantity}",
            details={"order_id": order_id, "quantity": str(quantity)}
        )
    
    return True


def validate_side(side: str) -> str:
    """
    Validate and normalize a side token.
    
    Args:
        side: Side token ("B" or "S", case-insensitive)
        
    Returns:
        Normalized side token
        
    Raises:
        InvalidOrderException: If side is not recognized
    """
    token = (side or "").strip().upper()
    if token not in VALID_SIDES:
        raise InvalidOrderException(
            f"Invalid side: {side}",
            details={"side": side, "valid_sides": list(VALID_SIDES)}
        )
    return token
