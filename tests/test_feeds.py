import pytest
import requests

from reportcards import feeds
from reportcards.reporting.errors import FeedError


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


def test_api_url_joins_base_and_path(ctx):
    assert feeds.api_url("/reports/list") == "http://backend.test/api/reports/list"


def test_results_feed_splits_payload(ctx, monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse({"students": [{"id": 1}], "results": [{"student_id": 1}]})

    monkeypatch.setattr(feeds.requests, "get", fake_get)
    students, results = feeds.fetch_results_feed({"school_id": "1"})
    assert students == [{"id": 1}]
    assert results == [{"student_id": 1}]
    assert calls == [("http://backend.test/api/reports/list", {"school_id": "1"})]


def test_network_failure_raises_feed_error(ctx, monkeypatch):
    def fake_get(url, params=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(feeds.requests, "get", fake_get)
    with pytest.raises(FeedError) as excinfo:
        feeds.fetch_results_feed()
    assert excinfo.value.url.endswith("/reports/list")


def test_invalid_json_raises_feed_error(ctx, monkeypatch):
    monkeypatch.setattr(feeds.requests, "get", lambda *a, **kw: FakeResponse(ValueError("bad json")))
    with pytest.raises(FeedError):
        feeds.fetch_results_feed()


def test_tahfiz_feed_requires_success_flag(ctx, monkeypatch):
    monkeypatch.setattr(feeds.requests, "get", lambda *a, **kw: FakeResponse({"success": False, "message": "no term"}))
    assert feeds.fetch_tahfiz_feed() == []

    monkeypatch.setattr(feeds.requests, "get", lambda *a, **kw: FakeResponse({"success": True, "data": [{"student_id": 3}]}))
    assert feeds.fetch_tahfiz_feed() == [{"student_id": 3}]


def test_promotions_lookup(ctx, monkeypatch):
    monkeypatch.setattr(feeds.requests, "get", lambda *a, **kw: FakeResponse({"success": True, "data": {"students": []}}))
    assert feeds.fetch_promotions("3", "P7") == {"students": []}


def test_promote_students_raises_when_rejected(ctx, monkeypatch):
    monkeypatch.setattr(feeds.requests, "post", lambda *a, **kw: FakeResponse({"success": False, "message": "locked"}))
    with pytest.raises(FeedError, match="locked"):
        feeds.promote_students([1, 2], 8)


def test_side_effect_writes_are_best_effort(ctx, monkeypatch):
    monkeypatch.setattr(feeds.requests, "post", lambda *a, **kw: FakeResponse({}, status_code=500))
    assert feeds.save_teacher_initials(10, 100, "JO") is False

    posted = []

    def fake_post(url, json=None, timeout=None):
        posted.append((url, json))
        return FakeResponse({})

    monkeypatch.setattr(feeds.requests, "post", fake_post)
    assert feeds.save_next_term_begins("2026-02-03") is True
    assert posted == [("http://backend.test/api/next-term", {"nextTermBegins": "2026-02-03"})]
