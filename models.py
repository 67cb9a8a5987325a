from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class BetType(str, Enum):
    WIN = "WIN"
    PLACE = "PLACE"
    BRACKET_QUINELLA = "BRACKET_QUINELLA"
    QUINELLA = "QUINELLA"
    QUINELLA_PLACE = "QUINELLA_PLACE"
    EXACTA = "EXACTA"
    TRIO = "TRIO"
    TRIFECTA = "TRIFECTA"

    @property
    def picks(self) -> int:
        """Number of runners one point of this bet type names."""
        return _PICKS[self]

    @property
    def is_ordered(self) -> bool:
        return self in {BetType.EXACTA, BetType.TRIFECTA}


_PICKS: dict[BetType, int] = {
    BetType.WIN: 1,
    BetType.PLACE: 1,
    BetType.BRACKET_QUINELLA: 2,
    BetType.QUINELLA: 2,
    BetType.QUINELLA_PLACE: 2,
    BetType.EXACTA: 2,
    BetType.TRIO: 3,
    BetType.TRIFECTA: 3,
}


class BetMethod(str, Enum):
    NORMAL = "NORMAL"
    BOX = "BOX"
    FORMATION = "FORMATION"
    NAGASHI = "NAGASHI"


SINGLE_RUNNER_TYPES = {BetType.WIN, BetType.PLACE}

# WIN / PLACE are only sold as plain single-runner bets
LEGAL_COMBINATIONS: frozenset[tuple[BetType, BetMethod]] = frozenset(
    (t, m)
    for t in BetType
    for m in BetMethod
    if t not in SINGLE_RUNNER_TYPES or m == BetMethod.NORMAL
)


def is_legal_combination(bet_type: BetType, bet_method: BetMethod) -> bool:
    return (bet_type, bet_method) in LEGAL_COMBINATIONS


class UnsupportedBetError(ValueError):
    """Raised when a (BetType, BetMethod) pair that cannot be sold reaches the engine."""

    def __init__(self, bet_type: BetType, bet_method: BetMethod) -> None:
        super().__init__(f"{bet_type.value} cannot be bought with method {bet_method.value}")
        self.bet_type = bet_type
        self.bet_method = bet_method


@dataclass
class Selection:
    selections: List[List[str]] = field(default_factory=lambda: [[]])
    axis: List[str] = field(default_factory=list)
    partners: List[str] = field(default_factory=list)
    positions: List[int] = field(default_factory=list)
    multi: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "selections": [list(row) for row in self.selections],
            "axis": list(self.axis),
            "partners": list(self.partners),
            "positions": list(self.positions),
            "multi": self.multi,
        }


@dataclass
class TicketRecord:
    bet_type: BetType
    bet_method: BetMethod
    multi: bool
    selections: List[List[str]]
    axis: List[str]
    partners: List[str]
    positions: List[int]
    amount_per_point: int
    total_points: int
    total_cost: int

    @property
    def is_complete(self) -> bool:
        return self.total_points > 0

    def selection(self) -> Selection:
        return Selection(
            selections=[list(row) for row in self.selections],
            axis=list(self.axis),
            partners=list(self.partners),
            positions=list(self.positions),
            multi=self.multi,
        )

    def to_content(self) -> dict[str, Any]:
        """Shape stored in the ticket's ``content`` column."""
        return {
            "type": self.bet_type.value,
            "method": self.bet_method.value,
            "multi": self.multi,
            "selections": [list(row) for row in self.selections],
            "axis": list(self.axis),
            "partners": list(self.partners),
            "positions": list(self.positions),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.to_content(),
            "amount_per_point": self.amount_per_point,
            "total_points": self.total_points,
            "total_cost": self.total_cost,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "TicketRecord":
        content = payload.get("content") or {}
        return cls(
            bet_type=BetType(content["type"]),
            bet_method=BetMethod(content["method"]),
            multi=bool(content.get("multi", False)),
            selections=[[str(r) for r in row] for row in content.get("selections") or [[]]],
            axis=[str(r) for r in content.get("axis") or []],
            partners=[str(r) for r in content.get("partners") or []],
            positions=[int(p) for p in content.get("positions") or []],
            amount_per_point=int(payload.get("amount_per_point") or 0),
            total_points=int(payload.get("total_points") or 0),
            total_cost=int(payload.get("total_cost") or 0),
        )
