"""Tests for external scoring backends."""
import httpx
import pytest

from autoshorts.models import Segment
from autoshorts.pipeline.config import PipelineConfig
from autoshorts.pipeline.scoring import backends
from autoshorts.pipeline.scoring.heuristic import HeuristicScorer
from autoshorts.pipeline.scoring.model_assisted import ModelAssistedScorer
from autoshorts.pipeline.scoring.backends import (
    GeminiScoringBackend,
    HttpScoringBackend,
    build_engagement_prompt,
    extract_scores,
    parse_score_items,
)
from autoshorts.pipeline.scoring.base import (
    ScoreRequestItem,
    ScoringTimeout,
    ScoringUnavailable,
)


class _FakeResponse:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON payload")
        return self._payload


class _FakeClient:
    def __init__(self, post_response=None, get_responses=None, error=None, **kwargs):
        self._post_response = post_response
        self._get_responses = list(get_responses or [])
        self._error = error
        self.kwargs = kwargs
        self.posts = []
        self.gets = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def post(self, url, **kwargs):
        self.posts.append((url, kwargs))
        if self._error is not None:
            raise self._error
        return self._post_response

    async def get(self, url, **kwargs):
        self.gets.append((url, kwargs))
        if len(self._get_responses) > 1:
            return self._get_responses.pop(0)
        return self._get_responses[0]


def _install_client(monkeypatch, **kwargs) -> _FakeClient:
    client = _FakeClient(**kwargs)
    monkeypatch.setattr(backends.httpx, "AsyncClient", lambda *args, **kw: client)
    return client


ITEMS = [
    ScoreRequestItem(index=0, start="00:00:00", end="00:00:10", text="hello"),
    ScoreRequestItem(index=1, start="00:00:10", end="00:00:20", text="world"),
]


class TestExtractScores:
    def test_plain_json(self):
        items = extract_scores('{"scores": [{"index": 0, "score": 7.5, "reason": "hook"}]}')
        assert [(i.index, i.score, i.reason) for i in items] == [(0, 7.5, "hook")]

    def test_markdown_fenced_json(self):
        text = '```json\n{"scores": [{"index": 1, "score": 3}]}\n```'
        items = extract_scores(text)
        assert [(i.index, i.score) for i in items] == [(1, 3.0)]

    def test_invalid_json(self):
        with pytest.raises(ScoringUnavailable):
            extract_scores("Sure! Here are your scores.")

    def test_missing_scores_field(self):
        with pytest.raises(ScoringUnavailable):
            extract_scores('{"results": []}')

    def test_invalid_items_are_dropped(self):
        items = parse_score_items([
            {"index": 0, "score": 5},
            {"index": 1, "score": 11},
            {"index": -1, "score": 2},
            {"index": 2},
            "junk",
        ])
        assert [i.index for i in items] == [0]

    def test_scores_must_be_a_list(self):
        with pytest.raises(ScoringUnavailable):
            parse_score_items({"index": 0, "score": 1})


def test_prompt_lists_every_segment():
    prompt = build_engagement_prompt(ITEMS)
    assert '[0] 00:00:00 - 00:00:10: "hello"' in prompt
    assert '[1] 00:00:10 - 00:00:20: "world"' in prompt
    assert '"scores"' in prompt


class TestGeminiBackend:
    @pytest.mark.asyncio
    async def test_reads_candidate_text(self, monkeypatch):
        payload = {
            "candidates": [{
                "content": {"parts": [{"text": '```json\n{"scores": [{"index": 0, "score": 6}]}\n```'}]}
            }]
        }
        client = _install_client(monkeypatch, post_response=_FakeResponse(200, payload))
        backend = GeminiScoringBackend(api_key="k", model="gemini-test", base_url="https://example.test/v1/")

        items = await backend.score_chunk(ITEMS)

        assert [(i.index, i.score) for i in items] == [(0, 6.0)]
        url, kwargs = client.posts[0]
        assert url == "https://example.test/v1/models/gemini-test:generateContent"
        assert kwargs["params"] == {"key": "k"}

    @pytest.mark.asyncio
    async def test_timeout_maps_to_scoring_timeout(self, monkeypatch):
        _install_client(monkeypatch, error=httpx.ReadTimeout("timed out"))
        backend = GeminiScoringBackend(api_key="k")

        with pytest.raises(ScoringTimeout):
            await backend.score_chunk(ITEMS)

    @pytest.mark.asyncio
    async def test_connect_error_maps_to_unavailable(self, monkeypatch):
        _install_client(monkeypatch, error=httpx.ConnectError("refused"))
        backend = GeminiScoringBackend(api_key="k")

        with pytest.raises(ScoringUnavailable) as exc_info:
            await backend.score_chunk(ITEMS)
        assert not isinstance(exc_info.value, ScoringTimeout)

    @pytest.mark.asyncio
    async def test_missing_candidate(self, monkeypatch):
        _install_client(monkeypatch, post_response=_FakeResponse(200, {"candidates": []}))
        backend = GeminiScoringBackend(api_key="k")

        with pytest.raises(ScoringUnavailable):
            await backend.score_chunk(ITEMS)

    @pytest.mark.asyncio
    async def test_null_candidate_text(self, monkeypatch):
        payload = {"candidates": [{"content": {"parts": [{"text": None}]}}]}
        _install_client(monkeypatch, post_response=_FakeResponse(200, payload))
        backend = GeminiScoringBackend(api_key="k")

        with pytest.raises(ScoringUnavailable):
            await backend.score_chunk(ITEMS)

    @pytest.mark.asyncio
    async def test_null_candidate_text_falls_back_to_heuristic(self, monkeypatch):
        payload = {"candidates": [{"content": {"parts": [{"text": None}]}}]}
        _install_client(monkeypatch, post_response=_FakeResponse(200, payload))
        config = PipelineConfig(jitter=0)
        scorer = ModelAssistedScorer(GeminiScoringBackend(api_key="k"), config=config)

        scored = await scorer.score([Segment(0, 10, "amazing!")])

        assert scored[0].score == pytest.approx(HeuristicScorer(config=config).score_text("amazing!"))

    @pytest.mark.asyncio
    async def test_http_error_status(self, monkeypatch):
        _install_client(monkeypatch, post_response=_FakeResponse(403, {"error": "denied"}))
        backend = GeminiScoringBackend(api_key="k")

        with pytest.raises(ScoringUnavailable):
            await backend.score_chunk(ITEMS)


class TestHttpBackend:
    @pytest.mark.asyncio
    async def test_immediate_scores(self, monkeypatch):
        client = _install_client(
            monkeypatch,
            post_response=_FakeResponse(200, {"scores": [{"index": 1, "score": 9}]}),
        )
        backend = HttpScoringBackend("https://scorer.test/score", api_key="secret")

        items = await backend.score_chunk(ITEMS)

        assert [(i.index, i.score) for i in items] == [(1, 9.0)]
        url, kwargs = client.posts[0]
        assert url == "https://scorer.test/score"
        assert kwargs["json"]["segments"][0] == ITEMS[0].to_dict()
        assert kwargs["headers"] == {"Authorization": "Bearer secret"}
        assert client.gets == []

    @pytest.mark.asyncio
    async def test_polls_until_scores(self, monkeypatch):
        client = _install_client(
            monkeypatch,
            post_response=_FakeResponse(202, {"id": "job-1", "status": "queued"}),
            get_responses=[
                _FakeResponse(200, {"id": "job-1", "status": "processing"}),
                _FakeResponse(200, {"id": "job-1", "status": "completed", "scores": [{"index": 0, "score": 4}]}),
            ],
        )
        backend = HttpScoringBackend("https://scorer.test/score", poll_interval=0)

        items = await backend.score_chunk(ITEMS)

        assert [(i.index, i.score) for i in items] == [(0, 4.0)]
        assert [url for url, _ in client.gets] == ["https://scorer.test/score/job-1"] * 2

    @pytest.mark.asyncio
    async def test_poll_limit_raises_timeout(self, monkeypatch):
        client = _install_client(
            monkeypatch,
            post_response=_FakeResponse(202, {"id": "job-1", "status": "queued"}),
            get_responses=[_FakeResponse(200, {"id": "job-1", "status": "processing"})],
        )
        backend = HttpScoringBackend("https://scorer.test/score", poll_interval=0, max_poll_attempts=3)

        with pytest.raises(ScoringTimeout):
            await backend.score_chunk(ITEMS)
        assert len(client.gets) == 3

    @pytest.mark.asyncio
    async def test_job_error_status(self, monkeypatch):
        _install_client(
            monkeypatch,
            post_response=_FakeResponse(200, {"id": "job-1", "status": "error", "error": "model crashed"}),
        )
        backend = HttpScoringBackend("https://scorer.test/score", poll_interval=0)

        with pytest.raises(ScoringUnavailable) as exc_info:
            await backend.score_chunk(ITEMS)
        assert not isinstance(exc_info.value, ScoringTimeout)

    @pytest.mark.asyncio
    async def test_non_json_response(self, monkeypatch):
        _install_client(monkeypatch, post_response=_FakeResponse(200, None))
        backend = HttpScoringBackend("https://scorer.test/score")

        with pytest.raises(ScoringUnavailable):
            await backend.score_chunk(ITEMS)
