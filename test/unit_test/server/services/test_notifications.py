"""Unit tests for the persona-run completion email."""

import json

import httpx
import pytest
import pytest_asyncio

from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.server.core.config import NotificationConfig
from codexalpha.server.services.notifications import (
    NotificationService,
    render_completion_email,
    replace_placeholders,
)
from codexalpha.server.services.persona_runs import PersonaRunService
from codexalpha.server.services.system_settings import DEFAULT_EMAIL_TEMPLATE, SettingKeys, SettingsService

pytestmark = pytest.mark.asyncio

RESEND_URL = "http://mock-resend/emails"


def test_replace_placeholders_keeps_unknown_names():
    assert replace_placeholders("Hi {{user_name}}, {{unknown}}!", {"user_name": "Ana"}) == "Hi Ana, {{unknown}}!"


def test_render_completion_email():
    subject, body = render_completion_email(
        DEFAULT_EMAIL_TEMPLATE,
        persona_title="Coach <Ana>",
        user_name="Ana",
        completed=["Brand Story"],
        failed=["21 Days Lightathon"],
        view_url="https://app.example.com/persona-run/1",
    )

    assert subject == 'Your Codexes for "Coach <Ana>" are ready!'
    assert "Coach &lt;Ana&gt;" in body
    assert "Completed Codexes (1)" in body
    assert "Failed Codexes:</strong><br>21 Days Lightathon" in body
    assert 'href="https://app.example.com/persona-run/1"' in body


def test_render_without_completed_codexes():
    _, body = render_completion_email(
        DEFAULT_EMAIL_TEMPLATE, persona_title="t", user_name="u", completed=[], failed=[], view_url="/"
    )
    assert "No codexes completed" in body
    assert "Failed Codexes" not in body


class FakeResend:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((dict(request.headers), json.loads(request.content)))
        return httpx.Response(self.status_code, json={"id": "email-1"})


@pytest.fixture
def resend():
    return FakeResend()


@pytest_asyncio.fixture
async def completed_run(repos, user, catalog):
    profile = await repos.profiles.get_or_create(user.id, user.email)
    profile.full_name = "Ana Coach"
    await repos.profiles.update(profile)
    run, codexes = await PersonaRunService(repos).create_run(user.id, title="Ana's Persona", answers={})
    codexes[0].status = "ready"
    await repos.codexes.update(codexes[0])
    codexes[1].status = "failed"
    await repos.codexes.update(codexes[1])
    return run


async def _notify(repos, resend, run_id, api_key="re_test"):
    config = NotificationConfig(resend_api_key=api_key, resend_api_url=RESEND_URL)
    async with httpx.AsyncClient(transport=httpx.MockTransport(resend.handler)) as client:
        service = NotificationService(repos, config, "https://app.example.com/", client=client)
        return await service.notify_run_completed(run_id)


class TestNotifyRunCompleted:
    async def test_sends_through_resend(self, repos, resend, completed_run, user):
        result = await _notify(repos, resend, completed_run.id)

        assert result.sent is True
        headers, payload = resend.requests[0]
        assert headers["authorization"] == "Bearer re_test"
        assert payload["to"] == [user.email]
        assert payload["from"] == "Codex Generator <onboarding@resend.dev>"
        assert payload["subject"] == "Your Codexes for \"Ana's Persona\" are ready!"
        assert "Brand Story" in payload["html"]
        assert "Failed Codexes" in payload["html"]
        assert f"https://app.example.com/persona-run/{completed_run.id}" in payload["html"]

    async def test_settings_override_key_and_sender(self, repos, resend, completed_run):
        settings = SettingsService(repos.settings)
        await settings.set(SettingKeys.resend_api_key, "re_from_settings")
        await settings.set(SettingKeys.notification_from_email, "Coach HQ <hq@example.com>")

        await _notify(repos, resend, completed_run.id, api_key=None)

        headers, payload = resend.requests[0]
        assert headers["authorization"] == "Bearer re_from_settings"
        assert payload["from"] == "Coach HQ <hq@example.com>"

    async def test_disabled_notifications_skip(self, repos, resend, completed_run):
        await SettingsService(repos.settings).set(SettingKeys.email_notifications_enabled, False)

        result = await _notify(repos, resend, completed_run.id)

        assert result.sent is False
        assert result.message == "Email notifications are disabled"
        assert resend.requests == []

    async def test_missing_key_skips(self, repos, resend, completed_run):
        result = await _notify(repos, resend, completed_run.id, api_key=None)

        assert result.sent is False
        assert result.message == "Email notifications not configured"
        assert resend.requests == []

    async def test_missing_email_skips(self, repos, resend, catalog):
        run = await repos.persona_runs.create(PersonaRun(user_id="no-profile", title="t"))

        result = await _notify(repos, resend, run.id)

        assert result.message == "Could not get user email"
        assert resend.requests == []

    async def test_rejected_request_is_reported(self, repos, completed_run):
        rejecting = FakeResend(status_code=422)

        result = await _notify(repos, rejecting, completed_run.id)

        assert result.sent is False
        assert "HTTP 422" in result.message

    async def test_unexpected_failure_is_reported_not_raised(self, repos, resend, completed_run, monkeypatch):
        async def broken_lookup(run_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(repos.codexes, "list_for_run", broken_lookup)

        result = await _notify(repos, resend, completed_run.id)

        assert result.sent is False
        assert result.message == "Failed to send notification: database went away"
        assert resend.requests == []

    async def test_malformed_template_is_reported(self, repos, resend, completed_run, monkeypatch):
        async def partial_template(self):
            return {"subject": "Done"}

        monkeypatch.setattr(SettingsService, "email_template", partial_template)

        result = await _notify(repos, resend, completed_run.id)

        assert result.sent is False
        assert result.message.startswith("Failed to send notification:")
        assert resend.requests == []
