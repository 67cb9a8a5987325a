from __future__ import annotations

import logging
from itertools import product
from math import comb, perm
from typing import Callable, List, Optional, Sequence

from models import (
    BetMethod,
    BetType,
    Selection,
    SINGLE_RUNNER_TYPES,
    UnsupportedBetError,
    is_legal_combination,
)

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _row(sel: Selection, index: int) -> List[str]:
    if index < len(sel.selections):
        return sel.selections[index] or []
    return []


def _allows_repeats(bet_type: BetType) -> bool:
    return bet_type == BetType.BRACKET_QUINELLA


def _distinct(runners: Sequence[str]) -> bool:
    return len(set(runners)) == len(runners)


def unpack_normal_rows(rows: List[List[str]]) -> List[List[str]]:
    """Expand a packed NORMAL row ``[[A, B]]`` back into ``[[A], [B]]``."""
    if not rows or len(rows[0]) <= 1:
        return rows
    if any(r for r in rows[1:]):
        return rows
    return [[runner] for runner in rows[0]]


def total_cost(points: int, amount_per_point: int) -> int:
    return points * amount_per_point


# ═══════════════════════════════════════════════════════════════════════════════
#  Per-method counters
# ═══════════════════════════════════════════════════════════════════════════════


def _count_single(bet_type: BetType, sel: Selection) -> int:
    # each runner is its own point
    return len(_row(sel, 0))


def _count_normal(bet_type: BetType, sel: Selection) -> int:
    picks = bet_type.picks
    rows = unpack_normal_rows(sel.selections)
    chosen = []
    for i in range(picks):
        row = rows[i] if i < len(rows) else []
        if len(row) != 1:
            return 0
        chosen.append(row[0])
    if any(rows[picks:]):
        return 0
    if not _allows_repeats(bet_type) and not _distinct(chosen):
        return 0
    return 1


def _count_box(bet_type: BetType, sel: Selection) -> int:
    # BOX never pairs a bracket with itself (JRA rule), so BRACKET_QUINELLA is C(n, 2) too
    n = len(_row(sel, 0))
    picks = bet_type.picks
    if bet_type.is_ordered:
        return perm(n, picks)
    return comb(n, picks)


def _count_formation(bet_type: BetType, sel: Selection) -> int:
    rows = [_row(sel, i) for i in range(bet_type.picks)]
    seen = set()
    for combo in product(*rows):
        if not _allows_repeats(bet_type) and not _distinct(combo):
            continue
        seen.add(combo if bet_type.is_ordered else tuple(sorted(combo)))
    return len(seen)


def _nagashi_pairs(bet_type: BetType, sel: Selection) -> int:
    pairs = set()
    for a in sel.axis:
        for p in sel.partners:
            if a == p and not _allows_repeats(bet_type):
                continue
            pairs.add(tuple(sorted((a, p))))
    return len(pairs)


def _nagashi_exacta(bet_type: BetType, sel: Selection) -> int:
    axis = set(sel.axis)
    n = len([p for p in sel.partners if p not in axis])
    # positions only chooses whether the axis runs first or second; the count is the same
    directions = 2 if sel.multi else 1
    return directions * len(axis) * n


def _nagashi_trio(bet_type: BetType, sel: Selection) -> int:
    axis = set(sel.axis)
    n = len([p for p in sel.partners if p not in axis])
    if len(axis) == 1:
        return comb(n, 2)
    if len(axis) == 2:
        return n
    return 0


def _nagashi_trifecta(bet_type: BetType, sel: Selection) -> int:
    # empty positions means a single axis fixed on first place
    two_axis = len(sel.positions) == 2
    # sorted order is fine here: only the count is needed, never which runner holds which rank
    axis = sorted(set(sel.axis))
    n = len([p for p in sel.partners if p not in axis])
    if two_axis:
        if len(axis) != 2:
            return 0
        return n * 6 if sel.multi else n
    if len(axis) != 1:
        return 0
    return comb(n, 2) * 6 if sel.multi else perm(n, 2)


NAGASHI_COUNTERS: dict[BetType, Callable[[BetType, Selection], int]] = {
    BetType.BRACKET_QUINELLA: _nagashi_pairs,
    BetType.QUINELLA: _nagashi_pairs,
    BetType.QUINELLA_PLACE: _nagashi_pairs,
    BetType.EXACTA: _nagashi_exacta,
    BetType.TRIO: _nagashi_trio,
    BetType.TRIFECTA: _nagashi_trifecta,
}


def _count_nagashi(bet_type: BetType, sel: Selection) -> int:
    return NAGASHI_COUNTERS[bet_type](bet_type, sel)


# ═══════════════════════════════════════════════════════════════════════════════
#  Registry
# ═══════════════════════════════════════════════════════════════════════════════

METHOD_COUNTERS: dict[BetMethod, Callable[[BetType, Selection], int]] = {
    BetMethod.NORMAL: _count_normal,
    BetMethod.BOX: _count_box,
    BetMethod.FORMATION: _count_formation,
    BetMethod.NAGASHI: _count_nagashi,
}


# ═══════════════════════════════════════════════════════════════════════════════
#  Orchestration
# ═══════════════════════════════════════════════════════════════════════════════


def count_points(
    bet_type: BetType,
    bet_method: BetMethod,
    selection: Selection,
    multi: Optional[bool] = None,
    positions: Optional[List[int]] = None,
) -> int:
    """
    Number of individual wagers a normalized selection represents.

    0 means the selection is still incomplete; it is not an error. An
    unsupported (type, method) pair raises UnsupportedBetError.
    """
    if not is_legal_combination(bet_type, bet_method):
        raise UnsupportedBetError(bet_type, bet_method)

    if multi is not None or positions is not None:
        selection = Selection(
            selections=selection.selections,
            axis=selection.axis,
            partners=selection.partners,
            positions=selection.positions if positions is None else positions,
            multi=selection.multi if multi is None else multi,
        )

    if bet_type in SINGLE_RUNNER_TYPES:
        points = _count_single(bet_type, selection)
    else:
        points = METHOD_COUNTERS[bet_method](bet_type, selection)

    logger.debug("%s/%s -> %d points", bet_type.value, bet_method.value, points)
    return points
