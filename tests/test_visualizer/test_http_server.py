import json

import pytest

from visualizer.http_server import create_app


def _write_log(path, beats=3):
    events = [{"type": "metadata", "data": {"format_version": "1.0", "config": {}}}]
    for beat in range(beats):
        events.append({"time": beat, "type": "snapshot", "data": {"beat": beat, "time": beat, "cars": {}, "floors": {}}})
        events.append({"time": beat, "type": "assignment", "data": {"car": "Car_1", "floor": 2, "beat": beat}})
    path.write_text("\n".join(json.dumps(event) for event in events) + "\n", encoding="utf-8")


@pytest.fixture
def client(tmp_path):
    _write_log(tmp_path / "run.jsonl")
    (tmp_path / "notes.txt").write_text("not a log", encoding="utf-8")
    app = create_app(tmp_path)
    app.config["TESTING"] = True
    return app.test_client()


def test_list_logs(client):
    response = client.get("/api/logs/list")
    assert response.status_code == 200
    assert [entry["name"] for entry in response.get_json()] == ["run.jsonl"]


def test_get_log_events(client):
    events = client.get("/api/logs/run.jsonl").get_json()
    assert events[0]["type"] == "metadata"
    assert len(events) == 7

    assignments = client.get("/api/logs/run.jsonl?type=assignment").get_json()
    assert len(assignments) == 3
    assert all(event["type"] == "assignment" for event in assignments)


def test_get_snapshot_by_beat(client):
    response = client.get("/api/logs/run.jsonl/snapshot/2")
    assert response.status_code == 200
    assert response.get_json()["beat"] == 2

    assert client.get("/api/logs/run.jsonl/snapshot/99").status_code == 404


def test_unknown_or_foreign_files_are_not_served(client):
    assert client.get("/api/logs/missing.jsonl").status_code == 404
    assert client.get("/api/logs/notes.txt").status_code == 404


def test_cors_and_status(client):
    response = client.get("/api/status", headers={"Origin": "http://example.com"})
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"
    assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://example.com")
