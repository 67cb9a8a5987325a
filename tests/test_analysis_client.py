from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from analysis_client import AnalysisClient


class StubResponse:
    def __init__(self, payload: object) -> None:
        self.payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> object:
        return self.payload


class AnalysisClientTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.NamedTemporaryFile(suffix=".jpg", delete=False)
        tmp.write(b"\xff\xd8fake")
        tmp.close()
        self.image = Path(tmp.name)

    def tearDown(self) -> None:
        self.image.unlink()

    def test_requires_url(self) -> None:
        with mock.patch.dict(os.environ, {"ANALYSIS_API_URL": ""}):
            with self.assertRaises(ValueError):
                AnalysisClient()

    def test_url_from_environment(self) -> None:
        with mock.patch.dict(os.environ, {"ANALYSIS_API_URL": "http://ocr.local/"}):
            self.assertEqual(AnalysisClient().base_url, "http://ocr.local")

    def test_analyze_ticket_image(self) -> None:
        payload = {
            "race": {"date": "2025-05-04", "place": "東京", "race_number": 11},
            "tickets": [
                {
                    "bet_type": "TRIO",
                    "buy_type": "NAGASHI",
                    "content": {"axis": [1], "partners": [2, 3, 4]},
                    "amount_per_point": 100,
                }
            ],
        }
        with mock.patch("analysis_client.requests.post", return_value=StubResponse(payload)) as post:
            drafts = AnalysisClient(base_url="http://ocr.local").analyze_ticket_image(self.image)

        self.assertEqual(post.call_args.args[0], "http://ocr.local/api/analyze/image")
        self.assertIn("file", post.call_args.kwargs["files"])
        self.assertEqual(len(drafts), 1)
        self.assertEqual(drafts[0].total_points, 3)
        self.assertTrue(drafts[0].is_complete)

    def test_unexpected_shape(self) -> None:
        with mock.patch("analysis_client.requests.post", return_value=StubResponse({"error": "x"})):
            with self.assertRaises(ValueError):
                AnalysisClient(base_url="http://ocr.local").analyze_image(self.image)


if __name__ == "__main__":
    unittest.main()
