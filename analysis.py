"""
Turns the OCR backend's best-effort ticket analysis into draft tickets.

The backend may leave any field null or get it wrong; every draft is run
through the same normalizer and point counter as manual input, and what is
missing or suspicious is reported instead of raised.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from calculator import count_points, total_cost
from materializer import unflatten_selections
from models import BetMethod, BetType, Selection, is_legal_combination
from normalizer import normalize, normalize_positions, parse_runner
from racecourses import get_place_name, lookup_place_code

logger = logging.getLogger(__name__)


@dataclass
class AnalyzedTicket:
    receipt_unique_id: Optional[str]
    date: Optional[str]
    place_code: Optional[str]
    race_number: Optional[int]
    bet_type: Optional[BetType]
    bet_method: Optional[BetMethod]
    selection: Selection
    amount: Optional[int]
    total_points: int
    total_cost: Optional[int]
    confidence: float = 0.0
    missing_fields: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields and self.total_points > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "receipt_unique_id": self.receipt_unique_id,
            "date": self.date,
            "place": self.place_code,
            "place_name": get_place_name(self.place_code) if self.place_code else None,
            "race_number": self.race_number,
            "bet_type": self.bet_type.value if self.bet_type else None,
            "method": self.bet_method.value if self.bet_method else None,
            **self.selection.to_dict(),
            "amount": self.amount,
            "total_points": self.total_points,
            "total_cost": self.total_cost,
            "confidence": self.confidence,
            "is_complete": self.is_complete,
            "missing_fields": list(self.missing_fields),
            "warnings": list(self.warnings),
        }


# ═══════════════════════════════════════════════════════════════════════════════
#  Bet type / method aliases
# ═══════════════════════════════════════════════════════════════════════════════


def _alias_key(value: str) -> str:
    key = value.strip().upper()
    for ch in "-/ ().,・":
        key = key.replace(ch, "_")
    while "__" in key:
        key = key.replace("__", "_")
    return key.strip("_")


_BET_TYPE_ALIASES: dict[str, BetType] = {
    # ── single runner ──
    "WIN": BetType.WIN,
    "TANSHO": BetType.WIN,
    "単勝": BetType.WIN,
    "PLACE": BetType.PLACE,
    "SHOW": BetType.PLACE,
    "FUKUSHO": BetType.PLACE,
    "複勝": BetType.PLACE,

    # ── two runners ──
    "BRACKET_QUINELLA": BetType.BRACKET_QUINELLA,
    "BRACKET": BetType.BRACKET_QUINELLA,
    "WAKUREN": BetType.BRACKET_QUINELLA,
    "枠連": BetType.BRACKET_QUINELLA,
    "枠番連勝": BetType.BRACKET_QUINELLA,
    "QUINELLA": BetType.QUINELLA,
    "UMAREN": BetType.QUINELLA,
    "馬連": BetType.QUINELLA,
    "馬番連勝": BetType.QUINELLA,
    "QUINELLA_PLACE": BetType.QUINELLA_PLACE,
    "WIDE": BetType.QUINELLA_PLACE,
    "ワイド": BetType.QUINELLA_PLACE,
    "拡大馬番連複": BetType.QUINELLA_PLACE,
    "EXACTA": BetType.EXACTA,
    "UMATAN": BetType.EXACTA,
    "馬単": BetType.EXACTA,
    "馬番連勝単式": BetType.EXACTA,

    # ── three runners ──
    "TRIO": BetType.TRIO,
    "SANRENPUKU": BetType.TRIO,
    "3連複": BetType.TRIO,
    "三連複": BetType.TRIO,
    "TRIFECTA": BetType.TRIFECTA,
    "SANRENTAN": BetType.TRIFECTA,
    "3連単": BetType.TRIFECTA,
    "三連単": BetType.TRIFECTA,
}

_BET_METHOD_ALIASES: dict[str, BetMethod] = {
    "NORMAL": BetMethod.NORMAL,
    "STRAIGHT": BetMethod.NORMAL,
    "SINGLE": BetMethod.NORMAL,
    "通常": BetMethod.NORMAL,
    "BOX": BetMethod.BOX,
    "ボックス": BetMethod.BOX,
    "FORMATION": BetMethod.FORMATION,
    "フォーメーション": BetMethod.FORMATION,
    "NAGASHI": BetMethod.NAGASHI,
    "WHEEL": BetMethod.NAGASHI,
    "KEY": BetMethod.NAGASHI,
    "FLOW": BetMethod.NAGASHI,
    "ながし": BetMethod.NAGASHI,
    "流し": BetMethod.NAGASHI,
}


def resolve_bet_type(value: Optional[str]) -> Optional[BetType]:
    if not value:
        return None
    return _BET_TYPE_ALIASES.get(_alias_key(str(value)))


def resolve_bet_method(value: Optional[str]) -> Optional[BetMethod]:
    if not value:
        return None
    return _BET_METHOD_ALIASES.get(_alias_key(str(value)))


# ═══════════════════════════════════════════════════════════════════════════════
#  Field parsing
# ═══════════════════════════════════════════════════════════════════════════════


def _as_list(value: Any) -> list:
    """A lone scalar from the OCR is a one-element list, never a string to iterate."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_runners(values: Any, bet_type: Optional[BetType], label: str, warnings: List[str]) -> List[str]:
    out: List[str] = []
    for value in _as_list(values):
        if value is None or str(value).strip() == "":
            continue
        try:
            out.append(parse_runner(value, bet_type or BetType.WIN))
        except ValueError as exc:
            warnings.append(f"Dropped {label} entry: {exc}")
    return out


def _parse_date(value: Any, warnings: List[str]) -> Optional[str]:
    if not value:
        return None
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    warnings.append(f"Unrecognized race date '{text}'")
    return None


def _parse_race_number(value: Any, warnings: List[str]) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    text = str(value).strip().upper().rstrip("R")
    if not text.isdigit() or not 1 <= int(text) <= 12:
        warnings.append(f"Race number '{value}' out of range 1-12")
        return None
    return int(text)


def _parse_amount(value: Any, warnings: List[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        amount = int(value)
    except (TypeError, ValueError):
        warnings.append(f"Unreadable amount '{value}'")
        return None
    if amount <= 0:
        warnings.append(f"Amount must be positive, got {amount}")
        return None
    return amount


def _parse_confidence(value: Any, warnings: List[str]) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        warnings.append(f"Unreadable confidence '{value}'")
        return 0.0


def _has_runners(sel: Selection) -> bool:
    return any(sel.selections) or bool(sel.axis) or bool(sel.partners)


# ═══════════════════════════════════════════════════════════════════════════════
#  Orchestration
# ═══════════════════════════════════════════════════════════════════════════════


def parse_analysis_ticket(ticket: dict[str, Any], race: Optional[dict[str, Any]] = None) -> AnalyzedTicket:
    race = race or {}
    content = ticket.get("content") or {}
    warnings: List[str] = [str(w) for w in ticket.get("warnings") or []]

    raw_type = ticket.get("bet_type") or content.get("type")
    raw_method = ticket.get("buy_type") or content.get("method")
    bet_type = resolve_bet_type(raw_type)
    bet_method = resolve_bet_method(raw_method)
    if raw_type and bet_type is None:
        logger.warning("Unmapped bet type from analysis: %r", raw_type)
        warnings.append(f"Unknown bet type '{raw_type}'")
    if raw_method and bet_method is None:
        logger.warning("Unmapped bet method from analysis: %r", raw_method)
        warnings.append(f"Unknown bet method '{raw_method}'")
    if bet_type is not None and bet_method is not None and not is_legal_combination(bet_type, bet_method):
        warnings.append(f"{bet_type.value} cannot be bought with method {bet_method.value}")
        bet_method = None

    rows = _as_list(content.get("selections")) or [[]]
    if not all(isinstance(r, (list, tuple)) for r in rows):
        rows = [rows]
    rows = [_parse_runners(row, bet_type, "selection", warnings) for row in rows]
    if bet_type is not None and bet_method is not None:
        # a packed NORMAL row has to be split before sorting loses rank order
        rows = unflatten_selections(rows, bet_type, bet_method)

    raw = Selection(
        selections=rows,
        axis=_parse_runners(content.get("axis"), bet_type, "axis", warnings),
        partners=_parse_runners(content.get("partners"), bet_type, "partner", warnings),
        positions=normalize_positions(_as_list(content.get("positions"))),
        multi=bool(content.get("multi") or False),
    )
    selection = normalize(raw, bet_type)

    points = 0
    if bet_type is not None and bet_method is not None:
        points = count_points(bet_type, bet_method, selection)
        reported = ticket.get("total_points")
        if reported is not None and str(reported) != str(points):
            warnings.append(f"Reported {reported} points but selection gives {points}")

    amount = _parse_amount(ticket.get("amount_per_point"), warnings)

    draft = AnalyzedTicket(
        receipt_unique_id=ticket.get("receipt_unique_id"),
        date=_parse_date(race.get("date"), warnings),
        place_code=lookup_place_code(race.get("place")),
        race_number=_parse_race_number(race.get("race_number"), warnings),
        bet_type=bet_type,
        bet_method=bet_method,
        selection=selection,
        amount=amount,
        total_points=points,
        total_cost=total_cost(points, amount) if amount is not None else None,
        confidence=_parse_confidence(ticket.get("confidence"), warnings),
        warnings=warnings,
    )
    if race.get("place") and draft.place_code is None:
        warnings.append(f"Unknown racecourse '{race.get('place')}'")

    checks = [
        ("date", draft.date),
        ("place", draft.place_code),
        ("race_number", draft.race_number),
        ("bet_type", draft.bet_type),
        ("method", draft.bet_method),
        ("selections", selection if _has_runners(selection) else None),
        ("amount", draft.amount),
    ]
    draft.missing_fields = [name for name, value in checks if value is None]
    return draft


def parse_analysis_result(payload: dict[str, Any]) -> List[AnalyzedTicket]:
    race = payload.get("race") or {}
    return [parse_analysis_ticket(t, race) for t in payload.get("tickets") or []]
