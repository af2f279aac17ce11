"""
Ingestion - turns session input text into validated orders.

Input layout: the first non-blank line holds the session seed price, every
following non-blank line is one order ``<id> <B|S> <quantity> [<limitPrice>]``.
A missing fourth token marks a market order.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from clearing.core.order import Order
from clearing.utils.exceptions import InvalidOrderException, OrderParseException
from clearing.utils.validators import (
    sanitize_decimal,
    sanitize_quantity,
    validate_price,
    validate_side,
)


@dataclass
class SessionInput:
    """Seed price and orders of one session, in arrival order."""
    
    initial_price: Decimal
    orders: List[Order] = field(default_factory=list)


def parse_session_seed(line: str, line_number: int = 1) -> Decimal:
    """
    Parse the session seed price.
    
    Args:
        line: Text of the seed line
        line_number: Position of the line in the input, for error messages
        
    Returns:
        Initial last traded price
        
    Raises:
        OrderParseException: If the line is not a single non-negative number
    """
    tokens = line.split()
    if len(tokens) != 1:
        raise OrderParseException(
            f"expected a single seed price, got {line.strip()!r}",
            line_number=line_number
        )
    
    try:
        price = sanitize_decimal(tokens[0])
        validate_price(price, order_id="<session seed>")
    except InvalidOrderException as e:
        raise OrderParseException(e.message, line_number=line_number, details=e.details)
    
    return price


def parse_order_line(line: str, arrival_sequence: int, line_number: int = None) -> Order:
    """
    Parse one order line.
    
    Args:
        line: ``<id> <B|S> <quantity> [<limitPrice>]``
        arrival_sequence: Arrival number to assign to the order
        line_number: Position of the line in the input, for error messages
        
    Returns:
        Validated Order
        
    Raises:
        OrderParseException: If the line is malformed or the order is invalid
    """
    tokens = line.split()
    if len(tokens) not in (3, 4):
        raise OrderParseException(
            f"expected '<id> <B|S> <quantity> [<price>]', got {line.strip()!r}",
            line_number=line_number
        )
    
    order_id, side_token, quantity_token = tokens[:3]
    
    try:
        side = validate_side(side_token)
        quantity = sanitize_quantity(quantity_token)
        if len(tokens) == 4:
            return Order.limit(
                order_id, side, quantity, sanitize_decimal(tokens[3]), arrival_sequence
            )
        return Order.market(order_id, side, quantity, arrival_sequence)
    except InvalidOrderException as e:
        raise OrderParseException(e.message, line_number=line_number, details=e.details)


def _numbered(lines: Iterable[str], start: int) -> Iterator[Tuple[int, str]]:
    for line_number, line in enumerate(lines, start=start):
        if line.strip():
            yield line_number, line


def iter_orders(lines: Iterable[str], start_line: int = 1) -> Iterator[Order]:
    """
    Parse order lines lazily, skipping blank ones.
    
    Args:
        lines: Order lines (seed line excluded)
        start_line: Input line number of the first element of ``lines``
        
    Yields:
        Orders with arrival sequences 1, 2, 3, ...
    """
    for arrival_sequence, (line_number, line) in enumerate(_numbered(lines, start_line), start=1):
        yield parse_order_line(line, arrival_sequence, line_number)


def parse_session(lines: Iterable[str]) -> SessionInput:
    """
    Parse a whole session.
    
    Args:
        lines: Input lines, seed line first
        
    Returns:
        SessionInput with the seed price and all orders
        
    Raises:
        OrderParseException: If the input is empty or any line is malformed
    """
    lines = list(lines)
    numbered = _numbered(lines, 1)
    
    try:
        seed_line_number, seed_line = next(numbered)
    except StopIteration:
        raise OrderParseException("input is empty; expected a session seed price")
    
    initial_price = parse_session_seed(seed_line, seed_line_number)
    orders = list(iter_orders(lines[seed_line_number:], start_line=seed_line_number + 1))
    return SessionInput(initial_price=initial_price, orders=orders)


def read_session(path: Union[str, Path]) -> SessionInput:
    """
    Read and parse a session input file.
    
    Raises:
        OSError: If the file cannot be opened
        OrderParseException: If the content is malformed
    """
    with open(path, "r", encoding="utf-8") as f:
        return parse_session(f.read().splitlines())
