from __future__ import annotations

import logging
from dataclasses import replace
from typing import List

from calculator import count_points, total_cost, unpack_normal_rows
from models import (
    BetMethod,
    BetType,
    Selection,
    SINGLE_RUNNER_TYPES,
    TicketRecord,
    UnsupportedBetError,
    is_legal_combination,
)
from normalizer import normalize, ordered_runners

logger = logging.getLogger(__name__)


def _is_packable(bet_type: BetType, bet_method: BetMethod) -> bool:
    return bet_method == BetMethod.NORMAL and bet_type.picks > 1


def flatten_selections(rows: List[List[str]], bet_type: BetType, bet_method: BetMethod) -> List[List[str]]:
    """
    Pack NORMAL per-rank rows into one row for storage: ``[[A], [B]] -> [[A, B]]``.

    Rank order is preserved. Rows are left alone for every other method,
    and for NORMAL rows that do not hold exactly one runner each.
    """
    if not _is_packable(bet_type, bet_method):
        return [list(r) for r in rows]
    used = rows[: bet_type.picks]
    if len(used) != bet_type.picks or any(len(r) != 1 for r in used) or any(rows[bet_type.picks:]):
        return [list(r) for r in rows]
    return [[r[0] for r in used]]


def unflatten_selections(rows: List[List[str]], bet_type: BetType, bet_method: BetMethod) -> List[List[str]]:
    if not _is_packable(bet_type, bet_method):
        return [list(r) for r in rows]
    return [list(r) for r in unpack_normal_rows(rows)]


def _single_runner_records(sel: Selection, bet_type: BetType, amount_per_point: int) -> List[TicketRecord]:
    runners = sel.selections[0] if sel.selections else []
    return [
        TicketRecord(
            bet_type=bet_type,
            bet_method=BetMethod.NORMAL,
            multi=False,
            selections=[[runner]],
            axis=[],
            partners=[],
            positions=[],
            amount_per_point=amount_per_point,
            total_points=1,
            total_cost=amount_per_point,
        )
        for runner in runners
    ]


def materialize(
    selection: Selection,
    bet_type: BetType,
    bet_method: BetMethod,
    amount_per_point: int,
) -> List[TicketRecord]:
    """
    Turn a form-level selection into the ticket records to persist.

    WIN/PLACE NORMAL selections become one single-point record per runner;
    everything else becomes exactly one record. A record with zero points
    is still returned so the caller can tell the user what is missing.
    """
    if not is_legal_combination(bet_type, bet_method):
        raise UnsupportedBetError(bet_type, bet_method)

    # a packed NORMAL row has to be split before sorting loses rank order
    rows = unflatten_selections(selection.selections or [[]], bet_type, bet_method)
    sel = normalize(replace(selection, selections=rows), bet_type)

    if bet_type in SINGLE_RUNNER_TYPES:
        records = _single_runner_records(sel, bet_type, amount_per_point)
        logger.debug("Split %s selection into %d records", bet_type.value, len(records))
        return records

    points = count_points(bet_type, bet_method, sel)

    axis = sel.axis
    if len(sel.positions) == 2:
        # axis[i] runs at positions[i]; the sorted axis is only good for counting
        axis = ordered_runners(selection.axis)

    record = TicketRecord(
        bet_type=bet_type,
        bet_method=bet_method,
        multi=sel.multi,
        selections=flatten_selections(sel.selections, bet_type, bet_method),
        axis=axis,
        partners=sel.partners,
        positions=sel.positions,
        amount_per_point=amount_per_point,
        total_points=points,
        total_cost=total_cost(points, amount_per_point),
    )
    return [record]


def unflatten(record: TicketRecord) -> Selection:
    """Load a persisted record back into the editable, one-row-per-rank form."""
    sel = record.selection()
    sel.selections = unflatten_selections(sel.selections, record.bet_type, record.bet_method)
    return sel
