from __future__ import annotations

import unittest

from analysis import parse_analysis_result, parse_analysis_ticket, resolve_bet_method, resolve_bet_type
from models import BetMethod, BetType

RACE = {"date": "2025-12-28", "place": "中山", "race_number": 11}


def ocr_ticket(**overrides) -> dict:
    ticket = {
        "receipt_unique_id": "R-1",
        "bet_type": "3連単",
        "buy_type": "ながし",
        "content": {
            "type": "TRIFECTA",
            "method": "NAGASHI",
            "multi": True,
            "selections": [],
            "axis": [7],
            "partners": [1, 2, 3, 4],
            "positions": [1],
        },
        "amount_per_point": 100,
        "total_points": 36,
        "total_cost": 3600,
        "confidence": 0.92,
        "warnings": [],
    }
    ticket.update(overrides)
    return ticket


class AliasTests(unittest.TestCase):
    def test_bet_type_aliases(self) -> None:
        self.assertEqual(resolve_bet_type("馬連"), BetType.QUINELLA)
        self.assertEqual(resolve_bet_type("wide"), BetType.QUINELLA_PLACE)
        self.assertEqual(resolve_bet_type("Bracket Quinella"), BetType.BRACKET_QUINELLA)
        self.assertEqual(resolve_bet_type("sanrentan"), BetType.TRIFECTA)
        self.assertIsNone(resolve_bet_type("PICK5"))
        self.assertIsNone(resolve_bet_type(None))

    def test_bet_method_aliases(self) -> None:
        self.assertEqual(resolve_bet_method("ボックス"), BetMethod.BOX)
        self.assertEqual(resolve_bet_method("wheel"), BetMethod.NAGASHI)
        self.assertEqual(resolve_bet_method("通常"), BetMethod.NORMAL)
        self.assertIsNone(resolve_bet_method(""))


class ParseTicketTests(unittest.TestCase):
    def test_complete_ticket(self) -> None:
        draft = parse_analysis_ticket(ocr_ticket(), RACE)

        self.assertTrue(draft.is_complete)
        self.assertEqual(draft.place_code, "06")
        self.assertEqual(draft.bet_type, BetType.TRIFECTA)
        self.assertEqual(draft.bet_method, BetMethod.NAGASHI)
        self.assertEqual(draft.selection.axis, ["07"])
        self.assertEqual(draft.selection.partners, ["01", "02", "03", "04"])
        self.assertEqual(draft.total_points, 36)
        self.assertEqual(draft.total_cost, 3600)
        self.assertEqual(draft.warnings, [])

    def test_points_recomputed_when_reported_wrong(self) -> None:
        draft = parse_analysis_ticket(ocr_ticket(total_points=24), RACE)

        self.assertEqual(draft.total_points, 36)
        self.assertTrue(any("Reported 24 points" in w for w in draft.warnings))

    def test_missing_fields_reported(self) -> None:
        draft = parse_analysis_ticket(
            ocr_ticket(bet_type=None, amount_per_point=None, content={"type": None, "axis": [7]}),
            {"date": None, "place": "中山", "race_number": None},
        )

        self.assertFalse(draft.is_complete)
        self.assertEqual(draft.missing_fields, ["date", "race_number", "bet_type", "amount"])
        self.assertEqual(draft.total_points, 0)
        self.assertIsNone(draft.total_cost)

    def test_bad_runner_dropped_with_warning(self) -> None:
        content = {"selections": [[1, "X", 22]], "axis": [], "partners": []}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="単勝", buy_type="通常", content=content), RACE)

        self.assertEqual(draft.selection.selections, [["01"]])
        self.assertEqual(draft.total_points, 1)
        self.assertEqual(len([w for w in draft.warnings if w.startswith("Dropped")]), 2)

    def test_illegal_pair_clears_method(self) -> None:
        content = {"selections": [[1, 2]]}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="WIN", buy_type="BOX", content=content), RACE)

        self.assertIsNone(draft.bet_method)
        self.assertIn("method", draft.missing_fields)
        self.assertEqual(draft.total_points, 0)

    def test_unknown_place_warns(self) -> None:
        draft = parse_analysis_ticket(ocr_ticket(), {"date": "2025/12/28", "place": "Meydan", "race_number": "11R"})

        self.assertEqual(draft.date, "2025-12-28")
        self.assertEqual(draft.race_number, 11)
        self.assertIsNone(draft.place_code)
        self.assertIn("place", draft.missing_fields)
        self.assertTrue(any("Meydan" in w for w in draft.warnings))

    def test_packed_normal_row_keeps_rank_order(self) -> None:
        content = {"selections": [[12, 4]]}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="馬単", buy_type="通常", content=content), RACE)

        self.assertEqual(draft.selection.selections, [["12"], ["04"]])
        self.assertEqual(draft.total_points, 1)

    def test_flat_selection_list_accepted(self) -> None:
        content = {"selections": [1, 2, 3]}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="ワイド", buy_type="ボックス", content=content), RACE)

        self.assertEqual(draft.selection.selections, [["01", "02", "03"]])
        self.assertEqual(draft.total_points, 3)

    def test_scalar_fields_read_as_single_entries(self) -> None:
        content = {"axis": "12", "partners": [1, 2, 3, 4], "positions": 1}
        draft = parse_analysis_ticket(ocr_ticket(content=content, total_points=None), RACE)

        self.assertEqual(draft.selection.axis, ["12"])
        self.assertEqual(draft.selection.positions, [1])
        self.assertEqual(draft.total_points, 12)
        self.assertEqual(draft.warnings, [])

    def test_scalar_selection_row(self) -> None:
        content = {"selections": 7}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="単勝", buy_type="通常", content=content), RACE)

        self.assertEqual(draft.selection.selections, [["07"]])
        self.assertEqual(draft.total_points, 1)

    def test_unreadable_confidence_warns(self) -> None:
        draft = parse_analysis_ticket(ocr_ticket(confidence="high"), RACE)

        self.assertEqual(draft.confidence, 0.0)
        self.assertTrue(any("confidence" in w for w in draft.warnings))
        self.assertTrue(draft.is_complete)

    def test_place_name_in_dict(self) -> None:
        data = parse_analysis_ticket(ocr_ticket(), RACE).to_dict()

        self.assertEqual(data["place"], "06")
        self.assertEqual(data["place_name"], "中山")

    def test_bracket_range_enforced(self) -> None:
        content = {"selections": [[1, 9]]}
        draft = parse_analysis_ticket(ocr_ticket(bet_type="枠連", buy_type="BOX", content=content), RACE)

        self.assertEqual(draft.selection.selections, [["01"]])
        self.assertEqual(draft.total_points, 0)


class ParseResultTests(unittest.TestCase):
    def test_race_applies_to_every_ticket(self) -> None:
        payload = {
            "race": RACE,
            "tickets": [
                ocr_ticket(),
                ocr_ticket(bet_type="馬単", buy_type="通常", content={"selections": [[5], [3]]}, total_points=1),
            ],
            "confidence": 0.9,
        }
        drafts = parse_analysis_result(payload)

        self.assertEqual(len(drafts), 2)
        self.assertTrue(all(d.race_number == 11 for d in drafts))
        self.assertEqual(drafts[1].total_points, 1)
        self.assertEqual(drafts[1].to_dict()["selections"], [["05"], ["03"]])

    def test_empty_payload(self) -> None:
        self.assertEqual(parse_analysis_result({}), [])


if __name__ == "__main__":
    unittest.main()
