"""Tests for the analytics sink."""

from __future__ import annotations

import json
import logging

from coursemate.core.services.analytics import AnalyticsSink


def test_record_adds_timestamp(analytics):
    analytics.record("x", {})
    [event] = analytics.read_all()
    assert event.name == "x"
    assert event.payload["timestamp"]
    assert event.timestamp == event.payload["timestamp"]


def test_record_keeps_existing_timestamp_and_does_not_mutate_caller(analytics):
    payload = {"timestamp": "2024-01-01T00:00:00+00:00", "score": 3}
    analytics.record("scored", payload)
    assert payload == {"timestamp": "2024-01-01T00:00:00+00:00", "score": 3}
    assert analytics.read_all()[0].timestamp == "2024-01-01T00:00:00+00:00"

    untouched: dict[str, object] = {}
    analytics.record("empty", untouched)
    assert untouched == {}


def test_record_without_payload(analytics):
    analytics.record("ping")
    assert analytics.read_all()[0].payload["timestamp"]


def test_unserializable_payload_is_dropped_quietly(analytics, caplog):
    with caplog.at_level(logging.WARNING, logger="coursemate.core.services.analytics"):
        analytics.record("bad", {"value": object()})
    assert analytics.read_all() == []
    assert "Dropping analytics event 'bad'" in caplog.text


def test_read_all_preserves_order_and_clear_empties(analytics):
    for name in ("a", "b", "c"):
        analytics.record(name, {"n": name})
    assert [e.name for e in analytics.read_all()] == ["a", "b", "c"]
    analytics.clear()
    assert analytics.read_all() == []


def test_storage_file_persists_and_reloads(tmp_path):
    path = tmp_path / "analytics" / "events.jsonl"
    sink = AnalyticsSink(storage_path=path)
    sink.record("practice_session_started", {"questionCount": 3})
    sink.record("practice_session_completed", {"score": 2})

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["name"] for line in lines] == [
        "practice_session_started",
        "practice_session_completed",
    ]

    reloaded = AnalyticsSink(storage_path=path)
    assert [e.name for e in reloaded.read_all()] == [
        "practice_session_started",
        "practice_session_completed",
    ]
    assert reloaded.read_all()[1].payload["score"] == 2

    reloaded.clear()
    assert path.read_text(encoding="utf-8") == ""
    assert AnalyticsSink(storage_path=path).read_all() == []


def test_malformed_stored_lines_are_skipped(tmp_path):
    path = tmp_path / "events.jsonl"
    good = json.dumps({"name": "ok", "data": {"timestamp": "t"}})
    path.write_text(f"{good}\nnot json\n{{\"name\": \"missing data\"}}\n", encoding="utf-8")
    sink = AnalyticsSink(storage_path=path)
    assert [e.name for e in sink.read_all()] == ["ok"]


def test_read_all_returns_copies_of_payloads(analytics):
    analytics.record("x", {"score": 1, "answers": [1, 2]})
    [event] = analytics.read_all()
    event.payload["score"] = 99
    event.payload["answers"].append(3)

    [stored] = analytics.read_all()
    assert stored.payload["score"] == 1
    assert stored.payload["answers"] == [1, 2]
