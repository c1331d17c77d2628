"""Tests for the HTTP interface."""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskpulse.core.config import Settings
from taskpulse.main import app


def add(client: TestClient, title: str, **fields) -> dict:
    response = client.post("/tasks", json={"title": title, **fields})
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
def test_health_endpoint_returns_healthy(test_client: TestClient) -> None:
    """Test that health endpoint returns healthy status."""
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
def test_add_and_list_tasks(test_client: TestClient) -> None:
    """Added tasks appear in the visible list in manual order."""
    add(test_client, "A")
    add(test_client, "B", priority="high")

    response = test_client.get("/tasks")

    assert response.status_code == 200
    assert [task["title"] for task in response.json()] == ["A", "B"]
    assert [task["order"] for task in response.json()] == [0, 1]


@pytest.mark.unit
def test_edit_toggle_and_delete(test_client: TestClient) -> None:
    """Edits, toggles and deletes round-trip through the API."""
    task = add(test_client, "A")

    edited = test_client.patch(f"/tasks/{task['id']}", json={"title": "A2"})
    toggled = test_client.post(f"/tasks/{task['id']}/toggle")
    deleted = test_client.delete(f"/tasks/{task['id']}")

    assert edited.json()["title"] == "A2"
    assert toggled.json()["completed"] is True
    assert deleted.status_code == 204
    assert test_client.get("/tasks").json() == []


@pytest.mark.unit
def test_validation_error_maps_to_422(test_client: TestClient) -> None:
    """Blank titles return a structured 422."""
    response = test_client.post("/tasks", json={"title": " "})

    assert response.status_code == 422
    assert response.json()["code"] == "ERR_VALIDATION"
    assert "suggestion" in response.json()


@pytest.mark.unit
def test_unknown_task_maps_to_404(test_client: TestClient) -> None:
    """Unknown ids return 404."""
    response = test_client.post("/tasks/missing/toggle")

    assert response.status_code == 404
    assert response.json()["code"] == "ERR_TASK_NOT_FOUND"


@pytest.mark.unit
def test_bad_import_maps_to_400(test_client: TestClient) -> None:
    """Malformed imports return 400 and change nothing."""
    add(test_client, "Keep")

    response = test_client.post("/tasks/import", json={"not": "a list"})

    assert response.status_code == 400
    assert response.json()["message"] == "Failed to import tasks. Please check the data format."
    assert len(test_client.get("/tasks").json()) == 1


@pytest.mark.unit
def test_export_then_import(test_client: TestClient) -> None:
    """An export can be imported back."""
    add(test_client, "A")
    add(test_client, "B")
    exported = test_client.get("/tasks/export").json()

    response = test_client.post("/tasks/import", json=exported)

    assert response.json() == {"imported": 2}
    assert test_client.get("/tasks").json() == exported


@pytest.mark.unit
def test_reorder_filter_and_sort(test_client: TestClient) -> None:
    """View endpoints return the new visible list."""
    add(test_client, "A", priority="low")
    add(test_client, "B", priority="high")
    add(test_client, "C", priority="high")

    reordered = test_client.post("/tasks/reorder", json={"from_index": 2, "to_index": 0})
    assert [task["title"] for task in reordered.json()] == ["C", "A", "B"]

    filtered = test_client.put("/view/filter", json={"priorities": ["high"]})
    assert [task["title"] for task in filtered.json()] == ["C", "B"]

    sorted_view = test_client.put("/view/sort", json={"key": "title", "direction": "asc"})
    assert [task["title"] for task in sorted_view.json()] == ["B", "C"]

    bad_reorder = test_client.post("/tasks/reorder", json={"from_index": 0, "to_index": 9})
    assert bad_reorder.status_code == 422


@pytest.mark.unit
def test_insights_and_stats(test_client: TestClient) -> None:
    """Insights are empty before enough completions; stats reflect the collection."""
    task = add(test_client, "A", category="Work")
    test_client.post(f"/tasks/{task['id']}/toggle")

    insights = test_client.get("/insights").json()
    stats = test_client.get("/stats").json()

    assert insights["pattern"] is None
    assert insights["recommendations"] == []
    assert insights["optimal_order"] == [task["id"]]
    assert stats["total_tasks"] == 1
    assert stats["completion_rate"] == 100.0


@pytest.mark.unit
def test_app_starts_with_corrupt_local_cache(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    """An unreadable task collection is reported and the app serves an empty list."""
    Path(test_settings.local_cache_path).write_text(json.dumps({"tasks": "not json ["}), encoding="utf-8")
    monkeypatch.setattr("taskpulse.main.settings", test_settings)

    with TestClient(app) as client:
        health = client.get("/health")
        tasks = client.get("/tasks")

    assert health.status_code == 200
    assert tasks.status_code == 200
    assert tasks.json() == []
