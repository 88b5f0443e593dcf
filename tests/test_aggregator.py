import pytest

from avicontrol.shared.schemas.entities import (
    Batch, ClientOrder, OrderStatus, Payment, RecordType, WeighingMode, WeighingRecord
)
from avicontrol.shared.services.aggregator import DomainAggregator


@pytest.fixture
def aggregator():
    return DomainAggregator(crate_capacity=9, settled_epsilon=0.1)


def record(record_type, weight, quantity, record_id=None):
    return WeighingRecord(id=record_id or f"{record_type.value}-{weight}", weight=weight, quantity=quantity, type=record_type)


def order(records=(), mode=WeighingMode.BATCH, price=0.0, payments=(), batch_id="b1", order_id="o1"):
    return ClientOrder(
        id=order_id,
        client_name="CLIENTE",
        batch_id=batch_id,
        weighing_mode=mode,
        price_per_kg=price,
        records=list(records),
        payments=list(payments),
    )


class TestOrderTotals:
    def test_no_records(self, aggregator):
        totals = aggregator.order_totals(order())
        assert totals.net_weight == 0
        assert totals.initial_birds == 0
        assert totals.average_weight_per_bird == 0
        assert totals.balance == 0
        assert totals.settled

    def test_full_and_empty_crates(self, aggregator):
        o = order([
            record(RecordType.FULL, 50.0, 5),
            record(RecordType.EMPTY, 10.0, 5),
            record(RecordType.MORTALITY, 2.0, 1),
        ])
        totals = aggregator.order_totals(o)

        assert totals.gross_weight == 50.0
        assert totals.tare_weight == 10.0
        assert totals.mortality_weight == 2.0
        assert totals.net_weight == pytest.approx(38.0)
        assert totals.initial_birds == 45
        assert totals.final_birds == 44
        assert totals.average_weight_per_bird == pytest.approx(40.0 / 45)

    def test_net_and_amount_due(self, aggregator):
        o = order(
            [record(RecordType.FULL, 50.0, 5), record(RecordType.EMPTY, 10.0, 5)],
            price=5.0,
        )
        totals = aggregator.order_totals(o)

        assert totals.net_weight == pytest.approx(40.0)
        assert totals.initial_birds == 45
        assert totals.average_weight_per_bird == pytest.approx(0.8889, rel=1e-3)
        assert totals.amount_due == pytest.approx(200.0)
        assert totals.balance == pytest.approx(200.0)
        assert not totals.settled

    def test_solo_pollo_net_is_gross(self, aggregator):
        o = order(
            [record(RecordType.FULL, 30.0, 2), record(RecordType.MORTALITY, 3.0, 1)],
            mode=WeighingMode.SOLO_POLLO,
        )
        totals = aggregator.order_totals(o)
        assert totals.net_weight == 30.0

    def test_final_birds_never_negative(self, aggregator):
        o = order([record(RecordType.FULL, 10.0, 1), record(RecordType.MORTALITY, 5.0, 20)])
        assert aggregator.order_totals(o).final_birds == 0

    def test_payments_reduce_balance(self, aggregator):
        o = order(
            [record(RecordType.FULL, 20.0, 2)],
            price=10.0,
            payments=[Payment(id="p1", amount=150.0), Payment(id="p2", amount=49.95)],
        )
        totals = aggregator.order_totals(o)

        assert totals.paid == pytest.approx(199.95)
        assert totals.balance == pytest.approx(0.05)
        # Saldo dentro de la tolerancia de redondeo
        assert totals.settled

    @pytest.mark.parametrize("balance,settled", [(0.1, True), (0.0, True), (-3.0, True), (0.11, False)])
    def test_is_settled(self, aggregator, balance, settled):
        assert aggregator.is_settled(balance) is settled


class TestBatchTotals:
    def test_sums_only_orders_of_the_batch(self, aggregator):
        batch = Batch(id="b1", name="LOTE", total_crates_limit=20)
        orders = [
            order([record(RecordType.FULL, 50.0, 5), record(RecordType.EMPTY, 10.0, 5)], price=5.0, order_id="o1"),
            order([record(RecordType.FULL, 30.0, 3)], order_id="o2"),
            order([record(RecordType.FULL, 99.0, 9)], batch_id="b2", order_id="o3"),
        ]
        totals = aggregator.batch_totals(batch, orders)

        assert totals.order_count == 2
        assert totals.full_units == 8
        assert totals.gross_weight == pytest.approx(80.0)
        assert totals.net_weight == pytest.approx(70.0)
        assert totals.initial_birds == 72
        assert totals.amount_due == pytest.approx(200.0)
        assert totals.pending_orders == 1
        assert totals.fill_percentage == pytest.approx(40.0)

    def test_fill_percentage_is_capped(self, aggregator):
        batch = Batch(id="b1", name="LOTE", total_crates_limit=4)
        totals = aggregator.batch_totals(batch, [order([record(RecordType.FULL, 50.0, 5)])])
        assert totals.fill_percentage == 100.0

    def test_unlimited_batch_has_no_fill_percentage(self, aggregator):
        batch = Batch(id="b1", name="LOTE", total_crates_limit=0)
        totals = aggregator.batch_totals(batch, [order([record(RecordType.FULL, 50.0, 5)])])
        assert totals.fill_percentage == 0.0

    def test_empty_batch(self, aggregator):
        totals = aggregator.batch_totals(Batch(id="b1", name="LOTE"), [])
        assert totals.order_count == 0
        assert totals.net_weight == 0
        assert totals.average_weight_per_bird == 0


class TestCollectionsSummary:
    def _orders(self):
        paid = order([record(RecordType.FULL, 10.0, 1)], price=10.0,
                     payments=[Payment(id="p", amount=100.0)], order_id="o1")
        paid = paid.model_copy(update={"client_name": "ANA", "status": OrderStatus.CLOSED})
        pending = order([record(RecordType.FULL, 20.0, 2)], price=10.0, order_id="o2")
        pending = pending.model_copy(update={"client_name": "BETO", "status": OrderStatus.CLOSED})
        return [paid, pending]

    def test_global_totals(self, aggregator):
        summary = aggregator.collections_summary(self._orders())
        assert summary.total == pytest.approx(300.0)
        assert summary.paid == pytest.approx(100.0)
        assert summary.balance == pytest.approx(200.0)
        assert len(summary.orders) == 2

    def test_payment_filter(self, aggregator):
        pending = aggregator.collections_summary(self._orders(), "PENDING")
        paid = aggregator.collections_summary(self._orders(), "PAID")
        assert [s.order.client_name for s in pending.orders] == ["BETO"]
        assert [s.order.client_name for s in paid.orders] == ["ANA"]

    def test_search_is_case_insensitive(self, aggregator):
        summary = aggregator.collections_summary(self._orders(), search="bet")
        assert [s.order.id for s in summary.orders] == ["o2"]
        # Los totales globales no dependen del filtro
        assert summary.total == pytest.approx(300.0)
