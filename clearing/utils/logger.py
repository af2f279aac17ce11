"""
Logging configuration and utilities for the clearing engine.

Provides structured logging with JSON format for production environments
and human-readable format for development.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.
    
    Converts log records to JSON format with additional context fields.
    """
    
    EXTRA_FIELDS = ("order_id", "trade_sequence", "arrival_sequence", "line_number")
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        
        for name in self.EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            
        return json.dumps(log_data, default=str)


class MatchingEngineLogger:
    """
    Centralized logger for the clearing engine.
    
    Keeps stdout free for book displays; console output goes to stderr.
    Supports both JSON (production) and console (development) formats.
    """
    
    def __init__(
        self,
        name: str = "clearing",
        log_level: str = "WARNING",
        log_dir: Optional[Path] = None,
        use_json: bool = False,
    ):
        """
        Initialize the logger.
        
        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (None for console only)
            use_json: Use JSON formatting (for production)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False
        
        # Console handler
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(self._create_formatter(use_json))
        self.logger.addHandler(console_handler)
        
        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            
            self.logger.addHandler(
                self._create_file_handler(log_dir / "application.log", use_json)
            )
            
            self.trade_logger = logging.getLogger(f"{name}.trades")
            self.trade_logger.setLevel(logging.INFO)
            self.trade_logger.handlers.clear()
            self.trade_logger.addHandler(
                self._create_file_handler(log_dir / "trades.log", use_json)
            )
            
            self.order_logger = logging.getLogger(f"{name}.orders")
            self.order_logger.setLevel(logging.DEBUG)
            self.order_logger.handlers.clear()
            self.order_logger.addHandler(
                self._create_file_handler(log_dir / "orders.log", use_json)
            )
            
            error_handler = self._create_file_handler(log_dir / "errors.log", use_json)
            error_handler.setLevel(logging.ERROR)
            self.logger.addHandler(error_handler)
        else:
            self.trade_logger = self.logger
            self.order_logger = self.logger
    
    @staticmethod
    def _create_formatter(use_json: bool) -> logging.Formatter:
        if use_json:
            return JSONFormatter()
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    
    def _create_file_handler(
        self,
        filepath: Path,
        use_json: bool
    ) -> logging.FileHandler:
        """Create a file handler with appropriate formatter."""
        handler = logging.FileHandler(filepath)
        handler.setFormatter(self._create_formatter(use_json))
        return handler
    
    def log_order_submission(
        self,
        order_id: str,
        side: str,
        quantity: int,
        price: Optional[Decimal],
        arrival_sequence: int,
    ):
        """Log order submission."""
        extra = {"order_id": order_id, "arrival_sequence": arrival_sequence}
        
        if price is not None:
            msg = f"Order submitted: {order_id} {side} {quantity} @ {price} (#{arrival_sequence})"
        else:
            msg = f"Order submitted: {order_id} {side} {quantity} MARKET (#{arrival_sequence})"
        
        self.order_logger.debug(msg, extra=extra)
    
    def log_trade_execution(
        self,
        trade_sequence: int,
        buy_order_id: str,
        sell_order_id: str,
        quantity: int,
        price: Decimal,
    ):
        """Log trade execution."""
        extra = {"trade_sequence": trade_sequence}
        
        msg = (
            f"Trade #{trade_sequence} executed: {quantity} @ {price} "
            f"(buy: {buy_order_id}, sell: {sell_order_id})"
        )
        
        self.trade_logger.info(msg, extra=extra)
    
    def log_unexecuted(self, order_id: str, quantity: int, arrival_sequence: int):
        """Log a residual left on the book at session close."""
        extra = {"order_id": order_id, "arrival_sequence": arrival_sequence}
        self.order_logger.info(
            f"Order unexecuted at close: {order_id} {quantity}",
            extra=extra
        )
    
    def log_error(
        self,
        message: str,
        exception: Optional[Exception] = None,
        **kwargs
    ):
        """Log error with optional exception."""
        if exception:
            self.logger.error(message, exc_info=exception, extra=kwargs)
        else:
            self.logger.error(message, extra=kwargs)
    
    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(message, extra=kwargs)
    
    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(message, extra=kwargs)
    
    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(message, extra=kwargs)
    
    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(message, extra=kwargs)


_loggers: Dict[str, MatchingEngineLogger] = {}


def get_logger(
    name: str = "clearing",
    log_level: str = "WARNING",
    log_dir: Optional[Path] = None,
    use_json: bool = False,
) -> MatchingEngineLogger:
    """
    Get or create the logger registered under ``name``.
    
    An existing logger is reused; only its level is updated.
    
    Args:
        name: Logger name
        log_level: Logging level
        log_dir: Directory for log files
        use_json: Use JSON formatting
        
    Returns:
        MatchingEngineLogger instance
    """
    logger = _loggers.get(name)
    
    if logger is None:
        logger = MatchingEngineLogger(name, log_level, log_dir, use_json)
        _loggers[name] = logger
    else:
        logger.logger.setLevel(getattr(logging, log_level.upper()))
    
    return logger
