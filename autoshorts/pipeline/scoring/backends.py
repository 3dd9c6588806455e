"""External scoring backends.

Both backends send one request per chunk and translate every failure into
ScoringUnavailable so the caller can fall back to local scoring.
"""
import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from .base import ScoreItem, ScoreRequestItem, ScoringTimeout, ScoringUnavailable

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("queued", "processing")

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.MULTILINE)
_FENCE_CLOSE_RE = re.compile(r"^```\s*$", re.MULTILINE)


def build_engagement_prompt(items: Sequence[ScoreRequestItem]) -> str:
    """Build the scoring instructions for a language model."""
    lines = [
        "Below is a transcript from a video with timestamps. Analyze each segment "
        "and assign an engagement score from 0.0 to 10.0 based on how likely it "
        "would make compelling content for a vertical short-form clip.",
        "",
        "Consider the following factors in your scoring:",
        "- Emotional content (excitement, surprise, humor)",
        "- Important facts or revelations",
        "- Controversial or surprising statements",
        "- Well-structured explanations of complex topics",
        "- Quotable moments",
        "",
        "Transcript segments:",
        "",
    ]
    for item in items:
        lines.append(f'[{item.index}] {item.start} - {item.end}: "{item.text}"')

    lines += [
        "",
        "For each segment, return a JSON object with the segment index and "
        "engagement score, formatted as:",
        '{"scores": [{"index": 0, "score": 7.5, "reason": "Brief explanation"}, ...]}',
        "",
        "Only provide the JSON object in your response, with no additional text.",
    ]
    return "\n".join(lines)


def parse_score_items(raw_scores: Any) -> List[ScoreItem]:
    """
    Validate a list of raw score dicts.

    Items that fail validation are dropped individually; the caller treats
    their indices as missing.
    """
    if not isinstance(raw_scores, list):
        raise ScoringUnavailable("Scorer response 'scores' is not a list")

    items = []
    for raw in raw_scores:
        try:
            items.append(ScoreItem.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"Dropping invalid score item {raw!r}: {e.error_count()} error(s)")
    return items


def extract_scores(text: str) -> List[ScoreItem]:
    """Parse a model's JSON answer, tolerating markdown code fences."""
    cleaned = _FENCE_OPEN_RE.sub("", text.strip())
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ScoringUnavailable(f"Scorer returned invalid JSON: {e}") from e

    if not isinstance(data, dict) or "scores" not in data:
        raise ScoringUnavailable("Scorer response has no 'scores' field")

    return parse_score_items(data["scores"])


def _response_json(response: httpx.Response) -> dict:
    if response.status_code >= 400:
        raise ScoringUnavailable(f"Scorer returned HTTP {response.status_code}")
    try:
        payload = response.json()
    except ValueError as e:
        raise ScoringUnavailable("Scorer response is not JSON") from e
    if not isinstance(payload, dict):
        raise ScoringUnavailable("Scorer response is not a JSON object")
    return payload


class GeminiScoringBackend:
    """Scores chunks with a Gemini model through the generateContent REST API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def score_chunk(self, items: Sequence[ScoreRequestItem]) -> List[ScoreItem]:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": build_engagement_prompt(items)}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, params={"key": self.api_key}, json=body)
        except httpx.TimeoutException as exc:
            raise ScoringTimeout("Gemini request timed out") from exc
        except httpx.RequestError as exc:
            raise ScoringUnavailable(f"Unable to reach Gemini: {type(exc).__name__}") from exc

        payload = _response_json(response)
        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ScoringUnavailable("Gemini response has no text candidate") from exc

        if not isinstance(text, str):
            raise ScoringUnavailable("Gemini candidate text is not a string")

        return extract_scores(text)


class HttpScoringBackend:
    """Scores chunks with a JSON scoring service.

    The service either answers immediately with ``{"scores": [...]}`` or
    accepts a job (``{"id": ..., "status": "queued"}``) that is polled at a
    fixed interval for a bounded number of attempts.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        poll_interval: float = 5.0,
        max_poll_attempts: int = 60,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts

    def _headers(self) -> dict:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    async def score_chunk(self, items: Sequence[ScoreRequestItem]) -> List[ScoreItem]:
        body = {"segments": [item.to_dict() for item in items]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json=body, headers=self._headers())
                payload = _response_json(response)
                job_id = payload.get("id")

                attempts = 0
                while "scores" not in payload:
                    status = payload.get("status")
                    if status == "error":
                        raise ScoringUnavailable(f"Scoring job failed: {payload.get('error')}")
                    if status not in PENDING_STATUSES or job_id is None:
                        raise ScoringUnavailable(f"Unexpected scoring status: {status!r}")
                    if attempts >= self.max_poll_attempts:
                        raise ScoringTimeout(
                            f"Scoring job {job_id} not finished after {attempts} polls"
                        )

                    await asyncio.sleep(self.poll_interval)
                    attempts += 1
                    response = await client.get(
                        f"{self.endpoint}/{job_id}", headers=self._headers()
                    )
                    payload = _response_json(response)
        except httpx.TimeoutException as exc:
            raise ScoringTimeout("Scoring service request timed out") from exc
        except httpx.RequestError as exc:
            raise ScoringUnavailable(
                f"Unable to reach scoring service: {type(exc).__name__}"
            ) from exc

        return parse_score_items(payload["scores"])
