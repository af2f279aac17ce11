"""
Comprehensive tests for the matching engine.

Tests the clearing sweep, the price rule in context, partial fills, session
close and the properties every session must satisfy.
"""

import random
import pytest
from collections import defaultdict
from decimal import Decimal

from clearing.core.matching_engine import MatchingEngine
from clearing.core.order import Order, OrderSide
from clearing.core.trade import ExecutionRecord, UnexecutedRecord
from clearing.services.sinks import RecordCollector
from clearing.utils.exceptions import (
    DuplicateOrderException,
    InvalidOrderException,
    InvalidQuantityException,
    PriceOutOfBoundsException,
    SessionClosedException,
)


class Session:
    """Helper that assigns arrival sequences the way ingestion does."""
    
    def __init__(self, initial_price="100.00", market_orders_first=False):
        self.sink = RecordCollector()
        self.engine = MatchingEngine(
            Decimal(initial_price),
            sink=self.sink,
            market_orders_first=market_orders_first,
        )
        self.seq = 0
        self.orders = {}
    
    def _submit(self, order):
        self.orders[order.order_id] = order
        return self.engine.submit(order)
    
    def limit(self, order_id, side, quantity, price):
        self.seq += 1
        return self._submit(Order.limit(order_id, side, quantity, Decimal(price), self.seq))
    
    def market(self, order_id, side, quantity):
        self.seq += 1
        return self._submit(Order.market(order_id, side, quantity, self.seq))
    
    def close(self):
        return self.engine.drain_unexecuted()


class TestMatchingEngineBasics:
    """Basic matching engine functionality tests."""
    
    def test_engine_initialization(self):
        engine = MatchingEngine(Decimal("100.00"))
        
        assert engine.last_traded_price == Decimal("100.00")
        assert len(engine.order_book) == 0
        assert engine.trade_journal == []
        assert engine.statistics["orders_processed"] == 0
    
    def test_seed_price_from_string(self):
        assert MatchingEngine("55.5").last_traded_price == Decimal("55.5")
    
    def test_negative_seed_rejected(self):
        with pytest.raises(PriceOutOfBoundsException):
            MatchingEngine(Decimal("-1"))
    
    def test_non_crossing_orders_rest(self):
        s = Session()
        assert s.limit("O1", "B", 10, "99") == []
        assert s.limit("O2", "S", 10, "101") == []
        
        assert len(s.engine.order_book) == 2
        assert s.sink.records == []
        assert s.engine.last_traded_price == Decimal("100.00")


class TestSweep:
    """Clearing sweep behaviour."""
    
    def test_worked_example_partial_fill(self):
        """Resting buy sets the price; remainder stays and is reported at close."""
        s = Session("100.00")
        s.limit("O1", "B", 10, "101.00")
        trades = s.limit("O2", "S", 5, "99.00")
        
        assert len(trades) == 1
        assert trades[0].quantity == 5
        assert trades[0].price == Decimal("101.00")
        assert s.sink.lines() == [
            "order O1 5 shares purchased at price 101.00",
            "order O2 5 shares sold at price 101.00",
        ]
        assert s.engine.order_book.best_bid().quantity == 5
        
        residuals = s.close()
        assert residuals == [UnexecutedRecord("O1", 5, 1)]
        assert s.sink.lines()[-1] == "order O1 5 shares unexecuted"
    
    def test_market_buy_against_limit_sell(self):
        s = Session()
        s.market("O1", "B", 10)
        trades = s.limit("O2", "S", 10, "50.00")
        
        assert trades[0].price == Decimal("50.00")
        assert trades[0].buy_is_market
        assert len(s.engine.order_book) == 0
        assert s.close() == []
    
    def test_sell_sweeps_several_bids_in_priority_order(self):
        s = Session()
        s.limit("B1", "B", 5, "100")
        s.limit("B2", "B", 5, "100")
        s.limit("B3", "B", 5, "101")
        trades = s.limit("S4", "S", 12, "100")
        
        assert [(t.buy_order_id, t.quantity, t.price) for t in trades] == [
            ("B3", 5, Decimal("101")),
            ("B1", 5, Decimal("100")),
            ("B2", 2, Decimal("100")),
        ]
        assert s.engine.last_traded_price == Decimal("100")
        assert s.close() == [UnexecutedRecord("B2", 3, 2)]
    
    def test_incoming_order_sets_price_only_if_earlier(self):
        """Resting sell arrived first, so its lower limit is the price."""
        s = Session()
        s.limit("S1", "S", 5, "99.00")
        trades = s.limit("B2", "B", 5, "101.00")
        assert trades[0].price == Decimal("99.00")
    
    def test_market_sell_takes_buy_limit(self):
        s = Session("50")
        s.limit("B1", "B", 10, "100")
        trades = s.market("S2", "S", 3)
        
        assert trades[0].price == Decimal("100")
        assert s.engine.last_traded_price == Decimal("100")
    
    def test_two_markets_trade_at_last_price(self):
        s = Session("100.00")
        s.market("M1", "B", 4)
        trades = s.market("M2", "S", 4)
        
        assert trades[0].price == Decimal("100.00")
        assert s.sink.lines() == [
            "order M1 4 shares purchased at price 100.00",
            "order M2 4 shares sold at price 100.00",
        ]
    
    def test_two_markets_inherit_latest_trade_price(self):
        s = Session("100.00")
        s.limit("S1", "S", 1, "87.50")
        s.market("M2", "B", 1)
        s.market("M3", "B", 2)
        trades = s.market("M4", "S", 2)
        
        assert trades[0].price == Decimal("87.50")
    
    def test_market_buy_stuck_behind_limit_bid(self):
        """A market bid ranks behind positive limits and waits for its turn."""
        s = Session()
        s.limit("L1", "B", 10, "99")
        s.market("M2", "B", 5)
        trades = s.limit("A3", "S", 5, "101")
        
        assert trades == []
        assert [r.order_id for r in s.close()] == ["L1", "M2", "A3"]
    
    def test_market_buy_first_when_option_enabled(self):
        s = Session(market_orders_first=True)
        s.limit("L1", "B", 10, "99")
        s.market("M2", "B", 5)
        trades = s.limit("A3", "S", 5, "101")
        
        assert [(t.buy_order_id, t.price) for t in trades] == [("M2", Decimal("101"))]
        assert s.close() == [UnexecutedRecord("L1", 10, 1)]
    
    def test_records_alternate_buy_then_sell(self):
        s = Session()
        s.limit("B1", "B", 2, "10")
        s.limit("B2", "B", 2, "10")
        s.limit("S3", "S", 4, "10")
        
        sides = [r.side for r in s.sink.records]
        assert sides == [OrderSide.BUY, OrderSide.SELL, OrderSide.BUY, OrderSide.SELL]
    
    def test_trade_sequence_numbers(self):
        s = Session()
        s.limit("B1", "B", 2, "10")
        s.limit("B2", "B", 2, "10")
        s.limit("S3", "S", 4, "10")
        
        assert [t.trade_sequence for t in s.engine.trade_journal] == [1, 2]
    
    def test_statistics(self):
        s = Session()
        s.limit("B1", "B", 5, "10")
        s.limit("S2", "S", 3, "10")
        s.limit("S3", "S", 1, "11")
        s.close()
        
        stats = s.engine.get_statistics()
        assert stats["orders_processed"] == 3
        assert stats["trades_executed"] == 1
        assert stats["total_volume"] == 3
        assert stats["orders_filled"] == 1
        assert stats["orders_unexecuted"] == 2
        assert stats["last_traded_price"] == "10"


class TestRejections:
    """Invalid input never reaches the book."""
    
    def test_duplicate_id_rejected(self):
        s = Session()
        s.limit("O1", "B", 5, "10")
        with pytest.raises(DuplicateOrderException):
            s.limit("O1", "S", 5, "10")
        assert len(s.engine.order_book) == 1
    
    def test_filled_id_cannot_be_reused(self):
        s = Session()
        s.limit("O1", "B", 5, "10")
        s.limit("O2", "S", 5, "10")
        with pytest.raises(DuplicateOrderException):
            s.limit("O1", "B", 1, "10")
    
    def test_order_mutated_to_zero_rejected(self):
        """Validation runs again on submit; nothing is inserted."""
        engine = MatchingEngine(Decimal("10"))
        order = Order.limit("O1", OrderSide.BUY, 5, Decimal("10"), 1)
        order.quantity = 0
        
        with pytest.raises(InvalidQuantityException):
            engine.submit(order)
        assert len(engine.order_book) == 0
        assert engine.statistics["orders_processed"] == 0
    
    def test_order_mutated_to_negative_price_rejected(self):
        engine = MatchingEngine(Decimal("10"))
        order = Order.limit("O1", OrderSide.SELL, 5, Decimal("10"), 1)
        order.limit_price = Decimal("-3")
        
        with pytest.raises(InvalidOrderException):
            engine.submit(order)
        assert len(engine.order_book) == 0


class TestSessionClose:
    """Residual reporting."""
    
    def test_residuals_sorted_by_arrival_across_sides(self):
        s = Session()
        s.limit("S1", "S", 3, "110")
        s.limit("B2", "B", 4, "90")
        s.limit("S3", "S", 5, "105")
        s.limit("B4", "B", 6, "95")
        
        assert [r.to_line() for r in s.close()] == [
            "order S1 3 shares unexecuted",
            "order B2 4 shares unexecuted",
            "order S3 5 shares unexecuted",
            "order B4 6 shares unexecuted",
        ]
    
    def test_drain_is_one_shot(self):
        s = Session()
        s.limit("B1", "B", 1, "10")
        s.close()
        
        with pytest.raises(SessionClosedException):
            s.close()
        with pytest.raises(SessionClosedException):
            s.limit("B2", "B", 1, "10")
    
    def test_residual_records_reach_sink_after_executions(self):
        s = Session()
        s.limit("B1", "B", 5, "10")
        s.limit("S2", "S", 2, "10")
        s.close()
        
        kinds = [type(r) for r in s.sink.records]
        assert kinds == [ExecutionRecord, ExecutionRecord, UnexecutedRecord]


class TestCallbacksAndObservers:
    
    def test_trade_callback_receives_trades(self):
        engine = MatchingEngine(Decimal("10"))
        seen = []
        engine.register_trade_callback(seen.append)
        
        engine.submit(Order.limit("B1", OrderSide.BUY, 5, Decimal("10"), 1))
        engine.submit(Order.limit("S2", OrderSide.SELL, 5, Decimal("10"), 2))
        
        assert [t.sell_order_id for t in seen] == ["S2"]
        
        engine.unregister_trade_callback(seen.append)
        assert engine.execution_callbacks == []
    
    def test_failing_callback_does_not_break_matching(self):
        engine = MatchingEngine(Decimal("10"))
        
        def broken(trade):
            raise RuntimeError("boom")
        
        engine.register_trade_callback(broken)
        engine.submit(Order.limit("B1", OrderSide.BUY, 5, Decimal("10"), 1))
        trades = engine.submit(Order.limit("S2", OrderSide.SELL, 5, Decimal("10"), 2))
        
        assert len(trades) == 1
    
    def test_book_observer_sees_before_and_after(self):
        engine = MatchingEngine(Decimal("10"))
        stages = []
        engine.register_book_observer(
            lambda stage, snapshot, price: stages.append((stage, len(snapshot.bids), len(snapshot.asks), price))
        )
        
        engine.submit(Order.limit("B1", OrderSide.BUY, 5, Decimal("12"), 1))
        engine.submit(Order.limit("S2", OrderSide.SELL, 5, Decimal("11"), 2))
        
        assert stages == [
            ("before", 1, 0, Decimal("10")),
            ("after", 1, 0, Decimal("10")),
            ("before", 1, 1, Decimal("10")),
            ("after", 0, 0, Decimal("12")),
        ]


class TestSessionProperties:
    """Invariants checked over a long pseudo-random session."""
    
    @pytest.fixture(params=[False, True], ids=["literal-ranking", "market-first"])
    def replay(self, request):
        rng = random.Random(20240611)
        s = Session("100.00", market_orders_first=request.param)
        submitted = {}
        
        for i in range(1, 401):
            side = rng.choice(["B", "S"])
            quantity = rng.randint(1, 25)
            if rng.random() < 0.15:
                s.market(f"O{i}", side, quantity)
            else:
                s.limit(f"O{i}", side, quantity, str(rng.randint(95, 105)))
            submitted[f"O{i}"] = quantity
            
            assert not s.engine.order_book.is_crossed()
        
        residuals = s.close()
        return s, submitted, residuals
    
    def test_conservation(self, replay):
        s, submitted, residuals = replay
        traded = defaultdict(int)
        for trade in s.engine.trade_journal:
            traded[trade.buy_order_id] += trade.quantity
            traded[trade.sell_order_id] += trade.quantity
        left = {r.order_id: r.quantity for r in residuals}
        
        for order_id, quantity in submitted.items():
            assert traded[order_id] + left.get(order_id, 0) == quantity
    
    def test_residuals_non_decreasing_in_arrival(self, replay):
        _, _, residuals = replay
        sequences = [r.arrival_sequence for r in residuals]
        assert sequences == sorted(sequences)
        assert all(r.quantity > 0 for r in residuals)
    
    def test_execution_records_pair_up(self, replay):
        s, _, _ = replay
        executions = [r for r in s.sink.records if isinstance(r, ExecutionRecord)]
        
        assert len(executions) == 2 * len(s.engine.trade_journal)
        for trade, (buy, sell) in zip(s.engine.trade_journal, zip(executions[::2], executions[1::2])):
            assert (buy.order_id, buy.side, buy.quantity, buy.price) == (
                trade.buy_order_id, OrderSide.BUY, trade.quantity, trade.price
            )
            assert (sell.order_id, sell.side) == (trade.sell_order_id, OrderSide.SELL)
    
    def test_execution_price_rule_holds(self, replay):
        s, _, _ = replay
        for trade in s.engine.trade_journal:
            buy = s.orders[trade.buy_order_id]
            sell = s.orders[trade.sell_order_id]
            
            if not buy.is_market_order and not sell.is_market_order:
                earlier = buy if buy.arrival_sequence < sell.arrival_sequence else sell
                assert trade.price == earlier.limit_price
            elif not buy.is_market_order:
                assert trade.price == buy.limit_price
            elif not sell.is_market_order:
                assert trade.price == sell.limit_price
    
    def test_limit_trades_respect_both_limits(self, replay):
        s, _, _ = replay
        for trade in s.engine.trade_journal:
            buy = s.orders[trade.buy_order_id]
            sell = s.orders[trade.sell_order_id]
            if not buy.is_market_order:
                assert trade.price <= buy.limit_price
            if not sell.is_market_order:
                assert trade.price >= sell.limit_price
