"""
Continuous double-auction matching engine.

Every submission is inserted into its side queue and the book is then cleared
to a fixed point: the best bid and best ask are matched repeatedly until one
side is empty or the top of book no longer crosses.
"""

from decimal import Decimal
from typing import Callable, Dict, List, Optional, Set, Union

from .order import Order
from .order_book import BookSnapshot, OrderBook
from .pricing import can_match, determine_execution_price
from .trade import SessionRecord, Trade, TradeSink, UnexecutedRecord
from ..utils.exceptions import (
    DuplicateOrderException,
    InvalidOrderException,
    SessionClosedException,
)
from ..utils.logger import get_logger
from ..utils.validators import sanitize_decimal, validate_price


BookObserver = Callable[[str, BookSnapshot, Decimal], None]


class MatchingEngine:
    """
    Single-session, single-threaded matching engine.
    
    Owns both side queues and the last traded price. Output records are
    routed to the configured sink; the engine itself performs no I/O.
    
    Attributes:
        order_book: Bid and ask queues
        sink: Receiver of execution and unexecuted records (optional)
        trade_journal: Every trade executed this session, in order
        statistics: Running counters
    """
    
    def __init__(
        self,
        initial_price: Union[Decimal, str, int],
        sink: Optional[TradeSink] = None,
        market_orders_first: bool = False,
        log_level: str = "WARNING",
    ):
        """
        Initialize the engine for a new session.
        
        Args:
            initial_price: Session seed for the last traded price
            sink: Receiver of output records
            market_orders_first: Rank market orders ahead of limit orders
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            
        Raises:
            InvalidOrderException: If the seed price is not a non-negative number
        """
        seed = sanitize_decimal(initial_price)
        validate_price(seed, order_id="<session seed>")
        
        self.order_book = OrderBook(market_orders_first=market_orders_first)
        self.sink = sink
        self.trade_journal: List[Trade] = []
        self.execution_callbacks: List[Callable[[Trade], None]] = []
        self.book_observers: List[BookObserver] = []
        self.statistics: Dict[str, int] = {
            "orders_processed": 0,
            "trades_executed": 0,
            "total_volume": 0,
            "orders_filled": 0,
            "orders_unexecuted": 0,
        }
        self.logger = get_logger(log_level=log_level)
        
        self._last_traded_price: Decimal = seed
        self._seen_order_ids: Set[str] = set()
        self._closed = False
    
    @property
    def last_traded_price(self) -> Decimal:
        """Price of the most recent trade, or the session seed before any."""
        return self._last_traded_price
    
    @property
    def is_closed(self) -> bool:
        return self._closed
    
    def submit(self, order: Order) -> List[Trade]:
        """
        Insert an order and clear the book.
        
        Args:
            order: Order to submit
            
        Returns:
            Trades executed by the sweep this submission triggered
            
        Raises:
            InvalidOrderException: If the order fails validation (nothing is inserted)
            DuplicateOrderException: If the id was already submitted this session
            SessionClosedException: If residuals have already been drained
        """
        self._ensure_open()
        
        try:
            order.validate()
            if order.order_id in self._seen_order_ids:
                raise DuplicateOrderException(
                    f"Order id {order.order_id} was already submitted",
                    details={"order_id": order.order_id}
                )
        except InvalidOrderException as e:
            self.logger.warning(f"Rejected order {order.order_id}: {e.message}", order_id=order.order_id)
            raise
        
        self.logger.log_order_submission(
            order.order_id,
            order.side.name,
            order.quantity,
            None if order.is_market_order else order.limit_price,
            order.arrival_sequence,
        )
        
        self.order_book.add_order(order)
        self._seen_order_ids.add(order.order_id)
        self.statistics["orders_processed"] += 1
        
        self._notify_observers("before")
        trades = self._sweep()
        self._notify_observers("after")
        return trades
    
    def drain_unexecuted(self) -> List[UnexecutedRecord]:
        """
        Close the session and report what is still resting.
        
        Returns:
            One record per resting order, oldest arrival first
            
        Raises:
            SessionClosedException: If called a second time
        """
        self._ensure_open()
        self._closed = True
        
        records = [
            UnexecutedRecord(order.order_id, order.quantity, order.arrival_sequence)
            for order in self.order_book.drain_resting()
        ]
        
        for record in records:
            self.logger.log_unexecuted(record.order_id, record.quantity, record.arrival_sequence)
            self._emit(record)
        
        self.statistics["orders_unexecuted"] = len(records)
        return records
    
    def register_trade_callback(self, callback: Callable[[Trade], None]) -> None:
        """
        Register a callback to be invoked for every executed trade.
        
        Args:
            callback: Function to call with each Trade
        """
        self.execution_callbacks.append(callback)
    
    def unregister_trade_callback(self, callback: Callable[[Trade], None]) -> None:
        if callback in self.execution_callbacks:
            self.execution_callbacks.remove(callback)
    
    def register_book_observer(self, observer: BookObserver) -> None:
        """
        Register a callback invoked with (stage, snapshot, last traded price)
        right after each insertion ("before") and after each sweep ("after").
        """
        self.book_observers.append(observer)
    
    def get_statistics(self) -> Dict[str, object]:
        """
        Get current engine statistics.
        
        Returns:
            Counters plus the last traded price and resting order counts
        """
        stats: Dict[str, object] = dict(self.statistics)
        stats["last_traded_price"] = str(self._last_traded_price)
        stats["resting_bids"] = len(self.order_book.bids)
        stats["resting_asks"] = len(self.order_book.asks)
        return stats
    
    # Private matching methods
    
    def _sweep(self) -> List[Trade]:
        """Match the top of book until one side empties or nothing crosses."""
        bids = self.order_book.bids
        asks = self.order_book.asks
        trades: List[Trade] = []
        
        while not bids.is_empty() and not asks.is_empty():
            if not can_match(bids.peek_best(), asks.peek_best()):
                break
            
            buy = bids.pop_best()
            sell = asks.pop_best()
            trades.append(self._execute_match(buy, sell))
            
            for order, queue in ((buy, bids), (sell, asks)):
                if order.is_filled:
                    self.statistics["orders_filled"] += 1
                else:
                    queue.reinsert(order)
        
        return trades
    
    def _execute_match(self, buy: Order, sell: Order) -> Trade:
        """
        Trade two orders that are out of their queues.
        
        Args:
            buy: Best bid
            sell: Best ask
            
        Returns:
            The executed trade
        """
        quantity = min(buy.quantity, sell.quantity)
        price = determine_execution_price(buy, sell, self._last_traded_price)
        self._last_traded_price = price
        
        buy.fill(quantity)
        sell.fill(quantity)
        
        trade = Trade(
            trade_sequence=len(self.trade_journal) + 1,
            buy_order_id=buy.order_id,
            sell_order_id=sell.order_id,
            quantity=quantity,
            price=price,
            buy_is_market=buy.is_market_order,
            sell_is_market=sell.is_market_order,
        )
        self.trade_journal.append(trade)
        
        self.statistics["trades_executed"] += 1
        self.statistics["total_volume"] += quantity
        
        self.logger.log_trade_execution(
            trade.trade_sequence,
            trade.buy_order_id,
            trade.sell_order_id,
            trade.quantity,
            trade.price,
        )
        
        for record in trade.records():
            self._emit(record)
        
        self._notify_execution(trade)
        return trade
    
    def _emit(self, record: SessionRecord) -> None:
        if self.sink is not None:
            self.sink.emit(record)
    
    def _notify_execution(self, trade: Trade) -> None:
        """Notify registered callbacks of trade execution."""
        for callback in self.execution_callbacks:
            try:
                callback(trade)
            except Exception as e:
                self.logger.log_error("Error in execution callback", e)
    
    def _notify_observers(self, stage: str) -> None:
        if not self.book_observers:
            return
        snapshot = self.order_book.snapshot()
        for observer in self.book_observers:
            observer(stage, snapshot, self._last_traded_price)
    
    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedException("Session is closed; residuals were already drained")
