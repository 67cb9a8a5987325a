from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import requests

from analysis import AnalyzedTicket, parse_analysis_result

logger = logging.getLogger(__name__)

ANALYZE_IMAGE_PATH = "/api/analyze/image"


class AnalysisClient:
    """Client for the ticket-image analysis (OCR) backend."""

    def __init__(self, base_url: str | None = None, timeout: int = 60) -> None:
        base_url = base_url or os.getenv("ANALYSIS_API_URL", "").strip()
        if not base_url:
            raise ValueError("Missing analysis API URL. Set ANALYSIS_API_URL or pass base_url explicitly.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post_file(self, path: str, file_path: Path) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        with file_path.open("rb") as fh:
            response = requests.post(
                url,
                files={"file": (file_path.name, fh)},
                timeout=self.timeout,
            )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or "tickets" not in payload:
            raise ValueError(f"Unexpected analysis response shape from {url}")
        return payload

    def analyze_image(self, image_path: str | Path) -> Dict[str, Any]:
        """Send one ticket image and return the raw analysis payload."""
        path = Path(image_path)
        logger.info("Analyzing ticket image %s", path.name)
        return self._post_file(ANALYZE_IMAGE_PATH, path)

    def analyze_ticket_image(self, image_path: str | Path) -> List[AnalyzedTicket]:
        payload = self.analyze_image(image_path)
        drafts = parse_analysis_result(payload)
        logger.info(
            "Analysis returned %d tickets (%d complete)",
            len(drafts),
            sum(1 for d in drafts if d.is_complete),
        )
        return drafts
