"""
Crossing test and execution price rule.

The order that was already resting sets the price: between two limit orders
the earlier arrival wins, a market order accepts the other side's limit, and
two market orders inherit the last traded price.
"""

from decimal import Decimal

from .order import Order


def can_match(buy: Order, sell: Order) -> bool:
    """
    Check whether the top bid and top ask cross.
    
    Args:
        buy: Best resting buy order
        sell: Best resting sell order
        
    Returns:
        True if either side is a market order or the bid limit reaches the ask
    """
    return buy.is_market_order or sell.is_market_order or buy.limit_price >= sell.limit_price


def determine_execution_price(buy: Order, sell: Order, last_traded_price: Decimal) -> Decimal:
    """
    Compute the execution price for a crossing pair.
    
    Args:
        buy: Buy side of the trade
        sell: Sell side of the trade
        last_traded_price: Price of the previous trade in the session
        
    Returns:
        Execution price
    """
    if not buy.is_market_order and not sell.is_market_order:
        if buy.arrival_sequence < sell.arrival_sequence:
            return buy.limit_price
        return sell.limit_price
    
    if not buy.is_market_order:
        return buy.limit_price
    
    if not sell.is_market_order:
        return sell.limit_price
    
    return last_traded_price
