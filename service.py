from __future__ import annotations

from typing import Any, Dict, List, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, model_validator

from analysis import parse_analysis_result
from calculator import count_points, total_cost
from materializer import materialize, unflatten
from models import (
    BetMethod,
    BetType,
    LEGAL_COMBINATIONS,
    Selection,
    TicketRecord,
    UnsupportedBetError,
    is_legal_combination,
)
from normalizer import normalize, parse_runner

Runner = Union[int, str]

# ═══════════════════════════════════════════════════════════════════════════════
#  Pydantic models
# ═══════════════════════════════════════════════════════════════════════════════


def _check_runners(bet_type: BetType, values: List[Runner]) -> List[str]:
    return [parse_runner(v, bet_type) for v in values if str(v).strip() != ""]


class TicketIn(BaseModel):
    bet_type: BetType
    bet_method: BetMethod
    selections: List[List[Runner]] = Field(default_factory=lambda: [[]])
    axis: List[Runner] = Field(default_factory=list)
    partners: List[Runner] = Field(default_factory=list)
    positions: List[int] = Field(default_factory=list)
    multi: bool = False
    amount: int = Field(default=100, gt=0)

    @model_validator(mode="after")
    def validate_ticket(self) -> "TicketIn":
        if not is_legal_combination(self.bet_type, self.bet_method):
            raise ValueError(f"{self.bet_type.value} cannot be bought with method {self.bet_method.value}")

        self.selections = [_check_runners(self.bet_type, row) for row in self.selections]
        self.axis = _check_runners(self.bet_type, self.axis)
        self.partners = _check_runners(self.bet_type, self.partners)

        if any(not 1 <= p <= self.bet_type.picks for p in self.positions):
            raise ValueError(f"positions must be between 1 and {self.bet_type.picks} for {self.bet_type.value}")
        return self

    def to_selection(self) -> Selection:
        return Selection(
            selections=[[str(r) for r in row] for row in self.selections],
            axis=[str(r) for r in self.axis],
            partners=[str(r) for r in self.partners],
            positions=list(self.positions),
            multi=self.multi,
        )


class TicketContentIn(BaseModel):
    type: BetType
    method: BetMethod
    multi: bool = False
    selections: List[List[str]] = Field(default_factory=lambda: [[]])
    axis: List[str] = Field(default_factory=list)
    partners: List[str] = Field(default_factory=list)
    positions: List[int] = Field(default_factory=list)


class TicketRecordIn(BaseModel):
    content: TicketContentIn
    amount_per_point: int = Field(gt=0)
    total_points: int = Field(ge=0)
    total_cost: int = Field(ge=0)


# ═══════════════════════════════════════════════════════════════════════════════
#  App
# ═══════════════════════════════════════════════════════════════════════════════

app = FastAPI(title="Bet Ticket Engine API", version="1.0.0")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/bet-types/supported")
def supported_bet_types() -> dict:
    methods: Dict[str, List[str]] = {}
    for bet_type in BetType:
        methods[bet_type.value] = [m.value for m in BetMethod if (bet_type, m) in LEGAL_COMBINATIONS]
    return {"bet_types": methods, "count": len(LEGAL_COMBINATIONS)}


@app.post("/tickets/points")
def ticket_points(payload: TicketIn) -> dict:
    selection = normalize(payload.to_selection(), payload.bet_type)
    try:
        points = count_points(payload.bet_type, payload.bet_method, selection)
    except UnsupportedBetError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {
        "total_points": points,
        "total_cost": total_cost(points, payload.amount),
        "selection": selection.to_dict(),
    }


@app.post("/tickets/materialize")
def materialize_ticket(payload: TicketIn) -> dict:
    try:
        records = materialize(payload.to_selection(), payload.bet_type, payload.bet_method, payload.amount)
    except UnsupportedBetError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if not records or not all(r.is_complete for r in records):
        raise HTTPException(status_code=422, detail="Selection is incomplete: add more runners.")
    return {
        "records": [r.to_dict() for r in records],
        "total_points": sum(r.total_points for r in records),
        "total_cost": sum(r.total_cost for r in records),
    }


@app.post("/tickets/unflatten")
def unflatten_ticket(payload: TicketRecordIn) -> dict:
    record = TicketRecord.from_dict(payload.model_dump(mode="json"))
    return {
        "bet_type": record.bet_type.value,
        "bet_method": record.bet_method.value,
        **unflatten(record).to_dict(),
    }


@app.post("/analysis/parse")
def parse_analysis(payload: Dict[str, Any]) -> dict:
    """Normalize and re-count an OCR analysis payload for user confirmation."""
    if not isinstance(payload.get("tickets"), list):
        raise HTTPException(status_code=422, detail="Payload must contain a 'tickets' list.")
    drafts = parse_analysis_result(payload)
    return {
        "tickets": [d.to_dict() for d in drafts],
        "complete_count": sum(1 for d in drafts if d.is_complete),
    }
