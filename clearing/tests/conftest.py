"""
Shared fixtures: a small session exercising limit, market and partial fills.
"""

import pytest

from clearing.config import Settings
from clearing.utils import logger as logger_module


SAMPLE_SESSION = """100.00
O1 B 10 101.00
O2 S 5 99.00
O3 S 8 102.00
O4 B 4
O5 S 2
O6 B 6 103.00
"""

# Market buy O4 ranks behind limit bid O1 and never trades.
SAMPLE_OUTPUT = [
    "order O1 5 shares purchased at price 101.00",
    "order O2 5 shares sold at price 101.00",
    "order O1 2 shares purchased at price 101.00",
    "order O5 2 shares sold at price 101.00",
    "order O6 6 shares purchased at price 102.00",
    "order O3 6 shares sold at price 102.00",
    "order O1 3 shares unexecuted",
    "order O3 2 shares unexecuted",
    "order O4 4 shares unexecuted",
]

# Same session with market orders ranked ahead of limit orders.
SAMPLE_OUTPUT_MARKET_FIRST = [
    "order O1 5 shares purchased at price 101.00",
    "order O2 5 shares sold at price 101.00",
    "order O4 4 shares purchased at price 102.00",
    "order O3 4 shares sold at price 102.00",
    "order O1 2 shares purchased at price 101.00",
    "order O5 2 shares sold at price 101.00",
    "order O6 4 shares purchased at price 102.00",
    "order O3 4 shares sold at price 102.00",
    "order O1 3 shares unexecuted",
    "order O6 2 shares unexecuted",
]


@pytest.fixture
def sample_text():
    return SAMPLE_SESSION


@pytest.fixture
def sample_output():
    return list(SAMPLE_OUTPUT)


@pytest.fixture
def sample_output_market_first():
    return list(SAMPLE_OUTPUT_MARKET_FIRST)


@pytest.fixture
def quiet_settings():
    """Settings with book displays switched off."""
    return Settings(display_book=False, market_orders_first=False, log_level="WARNING")


@pytest.fixture
def sample_file(tmp_path, sample_text):
    path = tmp_path / "session_input1.txt"
    path.write_text(sample_text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def fresh_loggers():
    """Rebuild cached loggers per test so console output follows captured stderr."""
    logger_module._loggers.clear()
    yield
    for cached in logger_module._loggers.values():
        for handler in cached.logger.handlers + cached.trade_logger.handlers + cached.order_logger.handlers:
            handler.close()
    logger_module._loggers.clear()
