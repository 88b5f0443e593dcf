# avicontrol/shared/services/aggregator.py
"""
Cálculo de totales de pesaje y cobranza.

Los totales nunca se guardan: se derivan de la lista de registros en cada
lectura, así que no hay caché que invalidar.
"""
from typing import Iterable, List, Optional

from avicontrol.shared.schemas.common import CamelModel
from avicontrol.shared.schemas.entities import (
    Batch, ClientOrder, RecordType, WeighingMode
)


class OrderTotals(CamelModel):
    gross_weight: float = 0.0
    tare_weight: float = 0.0
    mortality_weight: float = 0.0
    net_weight: float = 0.0
    full_units: int = 0
    empty_units: int = 0
    mortality_units: int = 0
    initial_birds: int = 0
    final_birds: int = 0
    average_weight_per_bird: float = 0.0
    amount_due: float = 0.0
    paid: float = 0.0
    balance: float = 0.0
    settled: bool = True


class BatchTotals(CamelModel):
    batch_id: str
    order_count: int = 0
    pending_orders: int = 0
    gross_weight: float = 0.0
    tare_weight: float = 0.0
    mortality_weight: float = 0.0
    net_weight: float = 0.0
    full_units: int = 0
    empty_units: int = 0
    mortality_units: int = 0
    initial_birds: int = 0
    final_birds: int = 0
    average_weight_per_bird: float = 0.0
    amount_due: float = 0.0
    paid: float = 0.0
    balance: float = 0.0
    total_crates_limit: int = 0
    fill_percentage: float = 0.0


class OrderSummary(CamelModel):
    order: ClientOrder
    totals: OrderTotals


class CollectionsSummary(CamelModel):
    total: float = 0.0
    paid: float = 0.0
    balance: float = 0.0
    orders: List[OrderSummary] = []


class DomainAggregator:
    """Totales por pedido, por lote y resumen de cobranza"""

    def __init__(self, crate_capacity: int = 9, settled_epsilon: float = 0.1):
        self.crate_capacity = crate_capacity
        self.settled_epsilon = settled_epsilon

    def is_settled(self, balance: float) -> bool:
        return balance <= self.settled_epsilon

    def order_totals(self, order: ClientOrder) -> OrderTotals:
        weights = {t: 0.0 for t in RecordType}
        units = {t: 0 for t in RecordType}
        for record in order.records:
            weights[record.type] += record.weight
            units[record.type] += record.quantity

        gross = weights[RecordType.FULL]
        tare = weights[RecordType.EMPTY]
        mortality = weights[RecordType.MORTALITY]

        # SOLO_POLLO no registra tara: el neto es el bruto
        if order.weighing_mode == WeighingMode.SOLO_POLLO:
            net = gross
        else:
            net = gross - tare - mortality

        initial_birds = units[RecordType.FULL] * self.crate_capacity
        final_birds = max(0, initial_birds - units[RecordType.MORTALITY])
        average = (gross - tare) / initial_birds if initial_birds > 0 else 0.0

        amount_due = net * (order.price_per_kg or 0)
        paid = sum(p.amount for p in order.payments)
        balance = amount_due - paid

        return OrderTotals(
            gross_weight=gross,
            tare_weight=tare,
            mortality_weight=mortality,
            net_weight=net,
            full_units=units[RecordType.FULL],
            empty_units=units[RecordType.EMPTY],
            mortality_units=units[RecordType.MORTALITY],
            initial_birds=initial_birds,
            final_birds=final_birds,
            average_weight_per_bird=average,
            amount_due=amount_due,
            paid=paid,
            balance=balance,
            settled=self.is_settled(balance)
        )

    def batch_totals(self, batch: Batch, orders: Iterable[ClientOrder]) -> BatchTotals:
        totals = BatchTotals(batch_id=batch.id, total_crates_limit=batch.total_crates_limit)
        summed = [
            "gross_weight", "tare_weight", "mortality_weight", "net_weight",
            "full_units", "empty_units", "mortality_units",
            "initial_birds", "final_birds", "amount_due", "paid", "balance"
        ]

        for order in orders:
            if order.batch_id != batch.id:
                continue
            order_totals = self.order_totals(order)
            totals.order_count += 1
            if not order_totals.settled:
                totals.pending_orders += 1
            for field in summed:
                setattr(totals, field, getattr(totals, field) + getattr(order_totals, field))

        if totals.initial_birds > 0:
            totals.average_weight_per_bird = (totals.gross_weight - totals.tare_weight) / totals.initial_birds
        if batch.total_crates_limit > 0:
            totals.fill_percentage = min(100.0, totals.full_units / batch.total_crates_limit * 100)
        return totals

    def collections_summary(
        self,
        orders: Iterable[ClientOrder],
        payment_filter: str = "ALL",
        search: Optional[str] = None
    ) -> CollectionsSummary:
        """Cobranza: totales globales y pedidos filtrados por estado de pago y cliente"""
        summary = CollectionsSummary()
        term = (search or "").strip().lower()

        for order in orders:
            totals = self.order_totals(order)
            summary.total += totals.amount_due
            summary.paid += totals.paid
            summary.balance += totals.balance

            if term and term not in order.client_name.lower():
                continue
            if payment_filter == "PENDING" and totals.settled:
                continue
            if payment_filter == "PAID" and not totals.settled:
                continue
            summary.orders.append(OrderSummary(order=order, totals=totals))

        return summary
