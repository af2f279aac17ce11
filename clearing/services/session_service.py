"""
Session Service - replays one trading session through a fresh engine.

This service sits between the entry points (CLI, HTTP API) and the matching
engine: it builds the engine from settings, feeds it the orders in arrival
order, closes the session and packages the results.
"""

import logging
import tempfile
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from clearing.config import Settings, get_settings
from clearing.core.matching_engine import BookObserver, MatchingEngine
from clearing.core.order import Order
from clearing.core.trade import ExecutionRecord, Trade, TradeSink, UnexecutedRecord
from clearing.services.display import BookPrinter
from clearing.services.ingestion import read_session
from clearing.services.sinks import FanoutSink, RecordCollector, StreamSink
from clearing.utils.paths import derive_output_path


@dataclass
class SessionReport:
    """
    Outcome of a replayed session.
    
    Attributes:
        initial_price: Session seed price
        last_traded_price: Price of the final trade (seed if none traded)
        trades: Trades in execution order
        executions: Execution records in emission order
        unexecuted: Residual records, oldest arrival first
        statistics: Engine counters at close
    """
    
    initial_price: Decimal
    last_traded_price: Decimal
    trades: List[Trade] = field(default_factory=list)
    executions: List[ExecutionRecord] = field(default_factory=list)
    unexecuted: List[UnexecutedRecord] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)
    
    def lines(self) -> List[str]:
        """Output-file lines: executions first, then residuals."""
        return (
            [record.to_line() for record in self.executions]
            + [record.to_line() for record in self.unexecuted]
        )


class SessionService:
    """
    Service class for replaying sessions.
    
    Every call to ``run`` uses a new MatchingEngine, so sessions never share
    book state or last traded price.
    """
    
    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize session service.
        
        Args:
            settings: Configuration (defaults to the global settings)
        """
        self.settings = settings or get_settings()
        self.sessions_replayed = 0
        self.logger = logging.getLogger(f"{__name__}.SessionService")
    
    def create_engine(
        self,
        initial_price: Union[Decimal, str, int],
        sink: Optional[TradeSink] = None,
    ) -> MatchingEngine:
        """Build an engine configured from settings."""
        return MatchingEngine(
            initial_price,
            sink=sink,
            market_orders_first=self.settings.market_orders_first,
            log_level=self.settings.log_level,
        )
    
    def run(
        self,
        initial_price: Union[Decimal, str, int],
        orders: Iterable[Order],
        sink: Optional[TradeSink] = None,
        observer: Optional[BookObserver] = None,
    ) -> SessionReport:
        """
        Replay a session to completion.
        
        Args:
            initial_price: Session seed price
            orders: Orders in arrival order
            sink: Extra receiver for records as they are produced
            observer: Book observer; also receives a final ("final") snapshot
                before residuals are drained
        
        Returns:
            SessionReport with trades, records and statistics
        
        Raises:
            InvalidOrderException: If an order is rejected by the engine
        """
        collector = RecordCollector()
        engine = self.create_engine(
            initial_price,
            sink=collector if sink is None else FanoutSink([collector, sink]),
        )
        if observer is not None:
            engine.register_book_observer(observer)
        
        for order in orders:
            engine.submit(order)
        
        if observer is not None:
            observer("final", engine.order_book.snapshot(), engine.last_traded_price)
        
        unexecuted = engine.drain_unexecuted()
        self.sessions_replayed += 1
        
        report = SessionReport(
            initial_price=Decimal(str(initial_price)),
            last_traded_price=engine.last_traded_price,
            trades=list(engine.trade_journal),
            executions=collector.executions,
            unexecuted=unexecuted,
            statistics=engine.get_statistics(),
        )
        
        self.logger.info(
            f"Session replayed: {report.statistics['orders_processed']} orders, "
            f"{len(report.trades)} trades, {len(report.unexecuted)} unexecuted"
        )
        return report
    
    def replay_file(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        display: Optional[bool] = None,
    ) -> Tuple[SessionReport, Path]:
        """
        Replay an input file and write the output records next to it.
        
        Args:
            input_path: Session input file
            output_path: Destination (derived from the input name when omitted)
            display: Print the book around every sweep (defaults to settings)
        
        Returns:
            (report, path of the written output file)
        
        Raises:
            OSError: If the input cannot be read or the output cannot be written
            OrderParseException: If the input is malformed
            InvalidOrderException: If the engine rejects an order; an existing
                output file is left untouched
        """
        session = read_session(input_path)
        output_path = Path(output_path) if output_path else derive_output_path(input_path)
        
        if display is None:
            display = self.settings.display_book
        observer = BookPrinter() if display else None
        
        self.logger.info(f"Replaying {input_path} -> {output_path}")
        
        # Records stream into a sibling temp file that only replaces the
        # output once the whole session has been replayed.
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=output_path.parent,
            prefix=f".{output_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as out:
            partial = Path(out.name)
            try:
                report = self.run(
                    session.initial_price,
                    session.orders,
                    sink=StreamSink(out),
                    observer=observer,
                )
            except Exception:
                out.close()
                partial.unlink()
                raise
        
        partial.replace(output_path)
        
        return report, output_path
