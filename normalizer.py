from __future__ import annotations

from typing import Any, Iterable, List, Optional

from models import BetType, Selection

MAX_RUNNER = 18
MAX_BRACKET = 8


# ═══════════════════════════════════════════════════════════════════════════════
#  Runner identifiers
# ═══════════════════════════════════════════════════════════════════════════════


def _pad(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return f"{int(text):02d}"
    return text


def parse_runner(value: Any, bet_type: BetType) -> str:
    """
    Validate a runner (or bracket) identifier coming from outside the engine.

    Accepts ints and digit strings, returns the two-digit zero-padded form.
    Raises ValueError for anything non-numeric or outside 1-18 (1-8 for
    bracket quinella).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid runner number {value!r}")
    text = str(value).strip() if value is not None else ""
    if not text.isdigit():
        raise ValueError(f"Invalid runner number {value!r}")
    number = int(text)
    upper = MAX_BRACKET if bet_type == BetType.BRACKET_QUINELLA else MAX_RUNNER
    if not 1 <= number <= upper:
        raise ValueError(f"Runner number {number} out of range 1-{upper} for {bet_type.value}")
    return f"{number:02d}"


# ═══════════════════════════════════════════════════════════════════════════════
#  Normalization
# ═══════════════════════════════════════════════════════════════════════════════


def normalize_runners(values: Optional[Iterable[Any]]) -> List[str]:
    """Drop blanks, zero-pad, de-duplicate and sort one runner set."""
    cleaned = {p for p in (_pad(v) for v in values or []) if p is not None}
    return sorted(cleaned)


def ordered_runners(values: Optional[Iterable[Any]]) -> List[str]:
    """Like normalize_runners, but keeps first-seen order (axis tied to positions)."""
    out: List[str] = []
    for p in (_pad(v) for v in values or []):
        if p is not None and p not in out:
            out.append(p)
    return out


def normalize_positions(values: Optional[Iterable[Any]]) -> List[int]:
    out = set()
    for v in values or []:
        text = str(v).strip() if v is not None else ""
        if text.isdigit():
            out.add(int(text))
    return sorted(out)


def normalize(selection: Selection, bet_type: Optional[BetType]) -> Selection:
    """
    Canonical form of a raw selection. Never fails, only narrows.

    With no bet type yet (an unfinished OCR draft) the axis/partner
    exclusion is skipped.
    """
    rows = [normalize_runners(row) for row in selection.selections or [[]]]
    axis = normalize_runners(selection.axis)
    partners = normalize_runners(selection.partners)

    # two horses can share a bracket, so bracket axis/partner may coincide
    if bet_type is not None and bet_type != BetType.BRACKET_QUINELLA:
        axis_set = set(axis)
        partners = [p for p in partners if p not in axis_set]

    return Selection(
        selections=rows,
        axis=axis,
        partners=partners,
        positions=normalize_positions(selection.positions),
        multi=bool(selection.multi),
    )
