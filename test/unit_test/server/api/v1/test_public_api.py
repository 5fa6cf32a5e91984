"""Unit tests for the unauthenticated public endpoints."""

import pytest

from codexalpha.core.database.entities.questionnaire import QuestionnaireCategory, QuestionnaireQuestion

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/public"


async def test_default_branding(client):
    response = await client.get(f"{BASE}/branding")

    assert response.status_code == 200
    assert response.json() == {"app_name": "CodeXAlpha", "app_logo_url": None, "app_tagline": None}


async def test_configured_branding(client, repos):
    await repos.settings.upsert("app_name", "LightOS")
    await repos.settings.upsert("app_tagline", "Find your light")

    body = (await client.get(f"{BASE}/branding")).json()

    assert body["app_name"] == "LightOS"
    assert body["app_tagline"] == "Find your light"


async def test_questionnaire_lists_active_entries_in_order(client, session):
    story = QuestionnaireCategory(name="Your Story", display_order=1)
    hidden = QuestionnaireCategory(name="Old", display_order=0, is_active=False)
    session.add_all([story, hidden])
    await session.commit()
    session.add_all(
        [
            QuestionnaireQuestion(category_id=story.id, question_text="Second?", display_order=2),
            QuestionnaireQuestion(category_id=story.id, question_text="First?", display_order=1),
            QuestionnaireQuestion(category_id=story.id, question_text="Retired?", display_order=0, is_active=False),
        ]
    )
    await session.commit()

    response = await client.get(f"{BASE}/questionnaire")

    assert response.status_code == 200
    categories = response.json()
    assert [c["name"] for c in categories] == ["Your Story"]
    assert [q["question_text"] for q in categories[0]["questions"]] == ["First?", "Second?"]


async def test_early_signup_once_per_address(client):
    first = await client.post(f"{BASE}/early-signups", json={"email": "Fan@Example.com", "source": "landing"})
    again = await client.post(f"{BASE}/early-signups", json={"email": "fan@example.com"})

    assert first.status_code == 201
    assert first.json() == {"success": True, "already_registered": False}
    assert again.json() == {"success": True, "already_registered": True}


async def test_early_signup_rejects_invalid_email(client):
    response = await client.post(f"{BASE}/early-signups", json={"email": "not-an-email"})
    assert response.status_code == 422
