"""Unit tests for the Codexes API endpoints."""

import pytest
import pytest_asyncio

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/codexes"


@pytest_asyncio.fixture
async def run_detail(client, auth_headers, catalog) -> dict:
    response = await client.post("/api/v1/persona-runs", json={"answers": {"q1": "a1"}}, headers=auth_headers())
    assert response.status_code == 201
    run_id = response.json()["persona_run_id"]
    return (await client.get(f"/api/v1/persona-runs/{run_id}", headers=auth_headers())).json()


async def test_regenerate_section(client, auth_headers, run_detail, fake_ai):
    section_id = run_detail["codexes"][0]["sections"][1]["id"]
    fake_ai.replies = ["A brand new mission."]

    response = await client.post(f"{BASE}/sections/{section_id}/regenerate", headers=auth_headers())

    assert response.status_code == 200, response.text
    section = response.json()
    assert section["content"] == "A brand new mission."
    assert section["status"] == "completed"
    assert section["regeneration_count"] == 1
    assert section["last_regenerated_at"] is not None


async def test_regenerate_section_respects_cooldown(client, auth_headers, run_detail, repos):
    await repos.settings.upsert("regeneration_cooldown_minutes", 15)
    url = f"{BASE}/sections/{run_detail['codexes'][0]['sections'][0]['id']}/regenerate"

    assert (await client.post(url, headers=auth_headers())).status_code == 200
    response = await client.post(url, headers=auth_headers())

    assert response.status_code == 409
    body = response.json()
    assert body["detail"] == "Section can be regenerated again in 15 minute(s)"
    assert "available_at" in body


async def test_regenerate_section_provider_failure(client, auth_headers, run_detail, fake_ai):
    fake_ai.status_code = 500
    section_id = run_detail["codexes"][0]["sections"][0]["id"]

    response = await client.post(f"{BASE}/sections/{section_id}/regenerate", headers=auth_headers())

    assert response.status_code == 502
    detail = (await client.get(f"/api/v1/persona-runs/{run_detail['id']}", headers=auth_headers())).json()
    assert detail["codexes"][0]["sections"][0]["status"] == "error"


async def test_regenerate_section_of_another_user(client, auth_headers, run_detail):
    section_id = run_detail["codexes"][0]["sections"][0]["id"]

    response = await client.post(f"{BASE}/sections/{section_id}/regenerate", headers=auth_headers("user-2"))

    assert response.status_code == 403


async def test_regenerate_unknown_section(client, auth_headers):
    response = await client.post(f"{BASE}/sections/missing/regenerate", headers=auth_headers())

    assert response.status_code == 404
    assert response.json()["detail"] == "Section not found"


async def test_regenerate_codex(client, auth_headers, run_detail, fake_ai):
    codex_id = run_detail["codexes"][0]["id"]
    fake_ai.replies = ["New origin", "New mission"]

    response = await client.post(f"{BASE}/{codex_id}/regenerate", headers=auth_headers())

    assert response.status_code == 202
    assert response.json()["status"] == "not_started"
    detail = (await client.get(f"/api/v1/persona-runs/{run_detail['id']}", headers=auth_headers())).json()
    codex = detail["codexes"][0]
    assert codex["status"] == "ready"
    assert [s["content"] for s in codex["sections"]] == ["New origin", "New mission"]


async def test_codex_pdf(client, auth_headers, run_detail):
    codex_id = run_detail["codexes"][1]["id"]

    response = await client.get(f"{BASE}/{codex_id}/pdf", headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="21_Days_Lightathon.pdf"'
    assert response.content.startswith(b"%PDF")
    assert (await client.get(f"{BASE}/{codex_id}/pdf", headers=auth_headers("user-2"))).status_code == 403
