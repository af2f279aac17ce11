"""
Custom exceptions for the clearing engine

This module defines a hierarchy of exceptions used throughout the engine and
its ingestion layer so callers can tell malformed input apart from broken
book invariants.
"""


class BaseMatchingEngineException(Exception):
    """Base exception class for all clearing engine exceptions."""
    
    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.
        
        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidOrderException(BaseMatchingEngineException):
    """Raised when an order contains invalid parameters or fails validation."""
    pass


class InvalidQuantityException(InvalidOrderException):
    """Raised when quantity is invalid (non-integer, zero or negative)."""
    pass


class PriceOutOfBoundsException(InvalidOrderException):
    """Raised when a limit price is negative or not a finite number."""
    pass


class DuplicateOrderException(InvalidOrderException):
    """Raised when an order id has already been submitted in this session."""
    pass


class OrderParseException(BaseMatchingEngineException):
    """Raised when an input line cannot be turned into an order."""
    
    def __init__(self, message: str, line_number: int = None, details: dict = None):
        details = dict(details or {})
        if line_number is not None:
            details["line_number"] = line_number
            message = f"line {line_number}: {message}"
        super().__init__(message, details)
        self.line_number = line_number


class OrderBookException(BaseMatchingEngineException):
    """Raised for general order book operation errors."""
    pass


class EmptyQueueException(OrderBookException):
    """Raised when the best order is removed from an empty side queue."""
    pass


class SessionClosedException(BaseMatchingEngineException):
    """Raised when an engine is used after its residuals have been drained."""
    pass
