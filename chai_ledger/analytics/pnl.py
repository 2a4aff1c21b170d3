"""
Inventory profit and loss.

Two sources, in order of preference:

- Sales tier: one row per sale entry, profit computed from that sale's own
  amount and the purchase rate of its batch. Used whenever at least one
  informative sale row exists.
- Batches tier: one row per batch from batch aggregates (the batch P&L
  view), only when no sale rows are available.

The tiers are never mixed, so profit is not counted twice.
"""
from __future__ import annotations
from collections.abc import Iterable
from typing import Any, Optional
from loguru import logger

from ..models import Batch, LedgerEntry, PnlBreakdown, PnlRow, PnlTotals
from ..parsers.base import pick_first_number, sort_timestamp
from ..parsers.records import parse_batches, parse_entries


def _totals(rows: list[PnlRow]) -> PnlTotals:
    totals = PnlTotals()
    for row in rows:
        totals.pnl += row.pnl
        totals.sold_quantity += row.sold_quantity
        totals.sale_value += row.total_sale_value
    return totals


def _sale_row(entry: LedgerEntry, batch: Optional[Batch], index: int) -> PnlRow:
    quantity = pick_first_number(entry.quantity) or 0.0
    sale_value = pick_first_number(entry.amount, entry.sale_amount) or 0.0
    sale_rate = sale_value / quantity if quantity > 0 else entry.sale_rate

    purchase_rate = pick_first_number(
        entry.purchase_rate,
        batch.purchase_rate if batch else None,
    ) or 0.0
    remaining_quantity = pick_first_number(
        entry.remaining_quantity,
        batch.remaining_quantity if batch else None,
    ) or 0.0

    profit_per_kg: Optional[float] = None
    total_profit = 0.0
    if quantity > 0:
        if entry.profit is not None:
            total_profit = entry.profit
            profit_per_kg = total_profit / quantity
        elif sale_rate is not None:
            profit_per_kg = sale_rate - purchase_rate
            total_profit = profit_per_kg * quantity
    elif entry.profit is not None:
        total_profit = entry.profit

    if profit_per_kg is None and sale_rate is not None:
        profit_per_kg = sale_rate - purchase_rate

    if not sale_value and sale_rate is not None and quantity > 0:
        sale_value = sale_rate * quantity

    return PnlRow(
        id=entry.id or f"{entry.batch_id or 'sale'}-{index}",
        name=entry.tea_name or entry.batch_name or (batch.name if batch else None) or "Tea Sale",
        batch_id=entry.batch_id,
        sold_quantity=quantity,
        remaining_quantity=remaining_quantity,
        purchase_rate=purchase_rate,
        avg_sell_rate=sale_rate if sale_rate is not None else 0.0,
        total_sale_value=sale_value,
        profit_per_kg=profit_per_kg,
        pnl=total_profit,
        sold_at=entry.created_at,
    )


def _batch_row(batch: Batch, index: int) -> PnlRow:
    sold_quantity = batch.sold_quantity or 0.0
    purchase_rate = batch.purchase_rate or 0.0
    avg_sell_rate = batch.avg_sell_rate
    sale_value = batch.total_sale_value

    if not avg_sell_rate and sale_value is not None and sold_quantity > 0:
        avg_sell_rate = sale_value / sold_quantity

    if sale_value is None:
        sale_value = avg_sell_rate * sold_quantity if avg_sell_rate is not None and sold_quantity > 0 else 0.0

    profit_per_kg: Optional[float] = None
    if sold_quantity > 0 and batch.pnl is not None:
        profit_per_kg = batch.pnl / sold_quantity
    elif avg_sell_rate is not None:
        profit_per_kg = avg_sell_rate - purchase_rate

    if batch.pnl is not None:
        pnl = batch.pnl
    elif profit_per_kg is not None and sold_quantity > 0:
        pnl = profit_per_kg * sold_quantity
    else:
        pnl = 0.0

    return PnlRow(
        id=batch.id or str(index),
        name=batch.name or f"Batch {index + 1}",
        batch_id=batch.id,
        sold_quantity=sold_quantity,
        remaining_quantity=batch.remaining_quantity or 0.0,
        purchase_rate=purchase_rate,
        avg_sell_rate=avg_sell_rate or 0.0,
        total_sale_value=sale_value,
        profit_per_kg=profit_per_kg,
        pnl=pnl,
    )


def build_sale_rows(entries: Iterable[LedgerEntry], batches_by_id: dict[str, Batch]) -> list[PnlRow]:
    """Sales-tier rows, newest first; rows with no quantity and no profit are dropped."""
    rows = []
    for index, entry in enumerate(e for e in entries if not e.is_payment):
        batch = batches_by_id.get(entry.batch_id) if entry.batch_id else None
        row = _sale_row(entry, batch, index)
        if row.sold_quantity > 0 or row.pnl != 0:
            rows.append(row)
    rows.sort(key=lambda r: sort_timestamp(r.sold_at), reverse=True)
    return rows


def build_batch_rows(batches: Iterable[Batch]) -> list[PnlRow]:
    """Batches-tier rows, most profitable first."""
    rows = [_batch_row(batch, index) for index, batch in enumerate(batches)]
    rows.sort(key=lambda r: r.pnl, reverse=True)
    return rows


def build_pnl_breakdown(
    batches: Optional[Iterable[Any]],
    entries: Optional[Iterable[Any]] = None,
) -> PnlBreakdown:
    """
    Profit and loss rows plus totals.

    ``batches`` may be plain batch rows or batch P&L aggregates; they supply
    purchase rates to the sales tier and are the rows of the batches tier.
    """
    parsed_batches = parse_batches(batches)
    batches_by_id = {b.id: b for b in parsed_batches if b.id}

    sale_rows = build_sale_rows(parse_entries(entries), batches_by_id)
    if sale_rows:
        logger.debug(f"P&L from {len(sale_rows)} sale rows")
        return PnlBreakdown(rows=sale_rows, totals=_totals(sale_rows), tier="sales")

    batch_rows = build_batch_rows(parsed_batches)
    logger.debug(f"No sale rows; P&L from {len(batch_rows)} batch aggregates")
    return PnlBreakdown(rows=batch_rows, totals=_totals(batch_rows), tier="batches")
