from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from analysis_client import AnalysisClient
from materializer import materialize
from models import BetMethod, BetType, Selection, TicketRecord


def load_input(path: Path) -> tuple[BetType, BetMethod, Selection, int]:
    payload = json.loads(path.read_text(encoding="utf-8"))

    selection = Selection(
        selections=[[str(r) for r in row] for row in payload.get("selections") or [[]]],
        axis=[str(r) for r in payload.get("axis") or []],
        partners=[str(r) for r in payload.get("partners") or []],
        positions=[int(p) for p in payload.get("positions") or []],
        multi=bool(payload.get("multi", False)),
    )
    return (
        BetType(payload["type"]),
        BetMethod(payload["method"]),
        selection,
        int(payload.get("amount", 100)),
    )


def _print_records(records: list[TicketRecord]) -> None:
    result = {
        "records": [r.to_dict() for r in records],
        "total_points": sum(r.total_points for r in records),
        "total_cost": sum(r.total_cost for r in records),
    }
    print(json.dumps(result, ensure_ascii=False, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Count and materialize horse racing bet tickets")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--input", help="Path to ticket selection JSON")
    group.add_argument("--image", help="Path to a ticket image to send to the analysis backend")
    parser.add_argument("--api-url", required=False, help="Analysis backend URL (optional if ANALYSIS_API_URL is set)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.input:
        bet_type, bet_method, selection, amount = load_input(Path(args.input))
        _print_records(materialize(selection, bet_type, bet_method, amount))
        return

    client = AnalysisClient(base_url=args.api_url)
    drafts = client.analyze_ticket_image(args.image)
    print(json.dumps([d.to_dict() for d in drafts], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
