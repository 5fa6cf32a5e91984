"""
Completion email notifications.

When every codex of a persona run has finished, the owner receives an email
listing completed and failed codexes. Emails are sent through the Resend HTTP
API; a missing API key, a missing recipient or disabled notifications skip the
send without failing the caller.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from codexalpha.core.database.entities.codexes import Codex
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import CodexStatus
from codexalpha.server.core.config import NotificationConfig

from .system_settings import SettingKeys, SettingsService

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class NotificationResult:
    sent: bool
    message: str


def replace_placeholders(text: str, data: Dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders; unknown names are left as-is."""
    return _PLACEHOLDER.sub(lambda m: data.get(m.group(1), m.group(0)), text)


def render_completion_email(
    template: Dict[str, str],
    *,
    persona_title: str,
    user_name: str,
    completed: List[str],
    failed: List[str],
    view_url: str,
) -> tuple[str, str]:
    """Build the (subject, html body) pair for a finished persona run."""
    data = {
        "persona_title": persona_title,
        "codex_count": str(len(completed)),
        "user_name": user_name,
    }
    subject = replace_placeholders(template["subject"], data)
    heading = html.escape(replace_placeholders(template["heading"], data))
    body_text = html.escape(replace_placeholders(template["body_text"], data))
    button_text = html.escape(replace_placeholders(template["button_text"], data))
    footer_text = html.escape(replace_placeholders(template["footer_text"], data))

    codex_list = "<br>".join(html.escape(name) for name in completed) or "No codexes completed"
    failed_list = ""
    if failed:
        failed_list = "<br><br><strong>Failed Codexes:</strong><br>" + "<br>".join(html.escape(n) for n in failed)

    body = f"""
<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: {template['primary_color']}; margin-bottom: 24px;">{heading}</h1>
  <p style="font-size: 16px; color: {template['text_color']}; line-height: 1.6;">{body_text}</p>
  <div style="background: {template['background_color']}; border-radius: 12px; padding: 20px; margin: 24px 0; border-left: 4px solid {template['primary_color']};">
    <h3 style="margin: 0 0 12px 0; color: {template['secondary_color']};">Completed Codexes ({len(completed)})</h3>
    <p style="margin: 0; color: {template['text_color']}; line-height: 1.8;">{codex_list}</p>
    {failed_list}
  </div>
  <a href="{html.escape(view_url)}" style="display: inline-block; background: {template['primary_color']}; color: white; padding: 14px 28px; border-radius: 8px; text-decoration: none; font-weight: 600; margin: 16px 0;">{button_text}</a>
  <p style="font-size: 14px; color: #6b7280; margin-top: 32px;">{footer_text}</p>
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 32px 0;">
  <p style="font-size: 12px; color: #9ca3af;">This is an automated notification. Please do not reply to this email.</p>
</div>
"""  # noqa: E501
    return subject, body


class NotificationService:
    """Sends the persona-run completion email through Resend."""

    def __init__(
        self,
        repos: SqlRepoBundle,
        config: NotificationConfig,
        public_app_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.repos = repos
        self.config = config
        self.public_app_url = public_app_url.rstrip("/")
        self._client = client
        self._settings = SettingsService(repos.settings)

    async def _resend_api_key(self) -> Optional[str]:
        return await self._settings.get_text(SettingKeys.resend_api_key) or self.config.resend_api_key

    async def _post(self, api_key: str, payload: Dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(self.config.resend_api_url, headers=headers, json=payload)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(self.config.resend_api_url, headers=headers, json=payload)

    async def notify_run_completed(self, persona_run_id: str) -> NotificationResult:
        """Email the run owner; any failure is logged and reported in the result, never raised."""
        try:
            return await self._send_completion_email(persona_run_id)
        except Exception as e:
            logger.error(f"Completion email failed for persona run {persona_run_id}: {e}", exc_info=True)
            return NotificationResult(False, f"Failed to send notification: {e}")

    async def _send_completion_email(self, persona_run_id: str) -> NotificationResult:
        if not await self._settings.notifications_enabled():
            logger.info("Email notifications are disabled, skipping")
            return NotificationResult(False, "Email notifications are disabled")

        api_key = await self._resend_api_key()
        if not api_key:
            logger.info("Resend API key not configured, skipping email notification")
            return NotificationResult(False, "Email notifications not configured")

        run: Optional[PersonaRun] = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            return NotificationResult(False, "Could not get persona run details")

        profile = await self.repos.profiles.get_by_id(run.user_id)
        if profile is None or not profile.email:
            logger.warning(f"No email address for user {run.user_id}, skipping notification")
            return NotificationResult(False, "Could not get user email")

        codexes: List[Codex] = await self.repos.codexes.list_for_run(persona_run_id)
        completed = [
            c.codex_name
            for c in codexes
            if c.status in (CodexStatus.ready.value, CodexStatus.ready_with_errors.value)
        ]
        failed = [c.codex_name for c in codexes if c.status == CodexStatus.failed.value]

        from_email = await self._settings.get_text(SettingKeys.notification_from_email) or self.config.from_email
        user_name = profile.full_name or profile.email.split("@")[0]
        subject, body = render_completion_email(
            await self._settings.email_template(),
            persona_title=run.title,
            user_name=user_name,
            completed=completed,
            failed=failed,
            view_url=f"{self.public_app_url}/persona-run/{persona_run_id}",
        )

        try:
            response = await self._post(
                api_key, {"from": from_email, "to": [profile.email], "subject": subject, "html": body}
            )
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed for persona run {persona_run_id}: {e}")
            return NotificationResult(False, f"Email request failed: {e}")

        if response.status_code >= 400:
            logger.error(f"Resend rejected notification ({response.status_code}): {response.text[:300]}")
            return NotificationResult(False, f"Resend API rejected the request (HTTP {response.status_code})")

        logger.info(f"Completion email sent for persona run {persona_run_id}")
        return NotificationResult(True, "Email sent")
