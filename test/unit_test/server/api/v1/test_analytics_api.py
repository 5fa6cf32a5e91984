"""Unit tests for the Analytics API endpoints."""

import pytest

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/analytics"


async def test_record_client_event(client, auth_headers, admin_headers):
    response = await client.post(
        f"{BASE}/events",
        json={"event_type": "codex_viewed", "codex_id": "c-1", "metadata": {"tab": "overview"}},
        headers=auth_headers(),
    )

    assert response.status_code == 201
    event = response.json()
    assert (event["event_type"], event["user_id"]) == ("codex_viewed", "user-1")
    assert event["event_metadata"] == {"tab": "overview"}

    recent = (await client.get(f"{BASE}/events", headers=admin_headers)).json()
    assert [e["id"] for e in recent] == [event["id"]]


async def test_event_type_is_required(client, auth_headers):
    response = await client.post(f"{BASE}/events", json={"event_type": ""}, headers=auth_headers())
    assert response.status_code == 422


@pytest.mark.parametrize("path", ["/events", "/overview", "/usage"])
async def test_reports_require_admin(client, auth_headers, path):
    assert (await client.get(f"{BASE}{path}", headers=auth_headers())).status_code == 403


async def test_overview_after_a_run(client, auth_headers, admin_headers, catalog):
    await client.post("/api/v1/persona-runs", json={"answers": {"q1": "a1"}}, headers=auth_headers())

    response = await client.get(f"{BASE}/overview", headers=admin_headers)

    assert response.status_code == 200
    overview = response.json()
    assert overview["generation"]["total_runs"] == 1
    assert overview["generation"]["completed_runs"] == 1
    assert overview["event_counts"]["persona_run_created"] == 1
    assert sorted(s["codex_name"] for s in overview["codex_stats"]) == ["21 Days Lightathon", "Brand Story"]


async def test_usage_summary(client, auth_headers, admin_headers, catalog):
    await client.post("/api/v1/persona-runs", json={"answers": {"q1": "a1"}}, headers=auth_headers())

    usage = (await client.get(f"{BASE}/usage", headers=admin_headers)).json()

    assert usage["total_calls"] == 3
    assert usage["successful_calls"] == 3
    assert usage["total_tokens"] == 450
    assert [(b["key"], b["calls"]) for b in usage["by_function"]] == [("generate-codex-section", 3)]

    later = await client.get(f"{BASE}/usage", params={"since": "2999-01-01T00:00:00"}, headers=admin_headers)
    assert later.json()["total_calls"] == 0
