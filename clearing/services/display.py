"""
Console display of the book.

Renders both sides next to each other, best order first, in the layout the
replay CLI prints before and after every sweep.
"""

import sys
from decimal import Decimal
from typing import Optional, TextIO

from clearing.core.order_book import BookRow, BookSnapshot
from clearing.utils.formatters import format_price


RULE = "-" * 49
DOUBLE_RULE = "=" * 49
HEADER = "Buy" + " " * 36 + "Sell"

STAGE_TITLES = {
    "before": "Before Matching:",
    "after": "After Matching:",
    "final": "Final State of Orders:",
}


def _cell(row: BookRow) -> str:
    return f"{row.order_id} {row.price} {row.quantity}"


def render_book(snapshot: BookSnapshot, last_traded_price: Decimal) -> str:
    """
    Render the book as a two-column table.
    
    Args:
        snapshot: Resting orders on both sides
        last_traded_price: Price shown in the heading
        
    Returns:
        Multi-line text without a trailing newline
    """
    lines = [
        f"Last trading price: {format_price(last_traded_price)}",
        HEADER,
        RULE,
    ]
    
    for i in range(snapshot.depth):
        buy = _cell(snapshot.bids[i]) + "\t\t" if i < len(snapshot.bids) else "\t\t\t\t"
        sell = _cell(snapshot.asks[i]) if i < len(snapshot.asks) else ""
        lines.append((buy + sell).rstrip(" "))
    
    lines.append(DOUBLE_RULE)
    return "\n".join(lines)


class BookPrinter:
    """
    Session observer that prints the book at each stage.
    
    Args:
        stream: Destination (defaults to stdout at print time)
    """
    
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
    
    def __call__(self, stage: str, snapshot: BookSnapshot, last_traded_price: Decimal) -> None:
        out = self.stream or sys.stdout
        out.write(f"\n{STAGE_TITLES.get(stage, stage)}\n")
        out.write(render_book(snapshot, last_traded_price) + "\n")
