"""
System settings service.

Typed access to the key/value ``system_settings`` table: branding, the global
AI persona prompt and default provider, regeneration cooldown, pricing
brackets, and email notification settings.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator

from codexalpha.core.database.repositories.system_settings import SystemSettingRepository
from codexalpha.core.errors import ValidationError


class SettingKeys:
    app_name = "app_name"
    app_logo_url = "app_logo_url"
    app_tagline = "app_tagline"
    global_ai_persona_prompt = "global_ai_persona_prompt"
    global_default_ai_provider = "global_default_ai_provider"
    global_default_ai_model = "global_default_ai_model"
    regeneration_cooldown_minutes = "regeneration_cooldown_minutes"
    pricing_brackets = "pricing_brackets"
    email_notifications_enabled = "email_notifications_enabled"
    resend_api_key = "resend_api_key"
    notification_from_email = "notification_from_email"
    email_template = "email_template"


# Keys never returned by the settings listing
SECRET_SETTING_KEYS = frozenset({SettingKeys.resend_api_key})

DEFAULT_APP_NAME = "CodeXAlpha"


class PricingBracket(BaseModel):
    min: int
    max: int


class PricingBrackets(BaseModel):
    """L1/L2/L3 offer price tiers injected into the pricing codex."""

    L1: PricingBracket = PricingBracket(min=4000, max=19999)
    L2: PricingBracket = PricingBracket(min=22500, max=56500)
    L3: PricingBracket = PricingBracket(min=89999, max=325000)

    @model_validator(mode="after")
    def _check_ordering(self) -> "PricingBrackets":
        for name in ("L1", "L2", "L3"):
            bracket: PricingBracket = getattr(self, name)
            if bracket.min >= bracket.max:
                raise ValueError(f"{name} minimum must be less than maximum")
        if self.L1.max >= self.L2.min:
            raise ValueError("L1 maximum should be less than L2 minimum")
        if self.L2.max >= self.L3.min:
            raise ValueError("L2 maximum should be less than L3 minimum")
        return self


DEFAULT_EMAIL_TEMPLATE: Dict[str, str] = {
    "subject": 'Your Codexes for "{{persona_title}}" are ready!',
    "heading": "Your Codexes Are Ready!",
    "body_text": 'Great news! Your persona "{{persona_title}}" has finished generating.',
    "button_text": "View Your Codexes",
    "footer_text": "You can now download your codexes as PDFs or share them with others.",
    "primary_color": "#f97316",
    "secondary_color": "#ea580c",
    "background_color": "#fff7ed",
    "text_color": "#374151",
}


class Branding(BaseModel):
    app_name: str = DEFAULT_APP_NAME
    app_logo_url: Optional[str] = None
    app_tagline: Optional[str] = None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == "null":
        return None
    return text


class SettingsService:
    """Typed reader/writer over the system settings repository."""

    def __init__(self, repo: SystemSettingRepository) -> None:
        self.repo = repo

    async def get(self, key: str, default: Any = None) -> Any:
        setting = await self.repo.get_by_key(key)
        if setting is None or setting.setting_value is None:
            return default
        return setting.setting_value

    async def get_text(self, key: str) -> Optional[str]:
        return _as_text(await self.get(key))

    async def set(self, key: str, value: Any, *, updated_by: Optional[str] = None) -> Any:
        """Validate well-known keys and store the value."""
        if key == SettingKeys.pricing_brackets:
            value = self.validate_pricing_brackets(value).model_dump()
        elif key == SettingKeys.regeneration_cooldown_minutes:
            try:
                value = int(value)
            except (TypeError, ValueError) as e:
                raise ValidationError("regeneration_cooldown_minutes must be an integer") from e
            if value < 0:
                raise ValidationError("regeneration_cooldown_minutes must not be negative")
        elif key == SettingKeys.email_notifications_enabled and not isinstance(value, bool):
            raise ValidationError("email_notifications_enabled must be a boolean")
        elif key == SettingKeys.email_template:
            if not isinstance(value, dict):
                raise ValidationError("email_template must be an object")
            unknown = set(value) - set(DEFAULT_EMAIL_TEMPLATE)
            if unknown:
                raise ValidationError(f"Unknown email template fields: {', '.join(sorted(unknown))}")
        setting = await self.repo.upsert(key, value, updated_by=updated_by)
        return setting.setting_value

    @staticmethod
    def validate_pricing_brackets(value: Any) -> PricingBrackets:
        try:
            return PricingBrackets.model_validate(value)
        except ValueError as e:
            raise ValidationError(f"Invalid pricing brackets: {e}") from e

    async def pricing_brackets(self) -> PricingBrackets:
        value = await self.get(SettingKeys.pricing_brackets)
        if isinstance(value, dict) and {"L1", "L2", "L3"} <= set(value):
            try:
                return PricingBrackets.model_validate(value)
            except ValueError:
                pass
        return PricingBrackets()

    async def global_persona_prompt(self) -> str:
        return await self.get_text(SettingKeys.global_ai_persona_prompt) or ""

    async def default_ai_choice(self) -> tuple[Optional[str], Optional[str]]:
        """(provider id, model) configured as the global default."""
        return (
            await self.get_text(SettingKeys.global_default_ai_provider),
            await self.get_text(SettingKeys.global_default_ai_model),
        )

    async def regeneration_cooldown_minutes(self) -> int:
        value = await self.get(SettingKeys.regeneration_cooldown_minutes, 0)
        try:
            return max(int(value), 0)
        except (TypeError, ValueError):
            return 0

    async def branding(self) -> Branding:
        values = await self.repo.get_values([SettingKeys.app_name, SettingKeys.app_logo_url, SettingKeys.app_tagline])
        return Branding(
            app_name=_as_text(values.get(SettingKeys.app_name)) or DEFAULT_APP_NAME,
            app_logo_url=_as_text(values.get(SettingKeys.app_logo_url)),
            app_tagline=_as_text(values.get(SettingKeys.app_tagline)),
        )

    async def notifications_enabled(self) -> bool:
        # Only an explicit false disables notifications
        return await self.get(SettingKeys.email_notifications_enabled) is not False

    async def email_template(self) -> Dict[str, str]:
        value = await self.get(SettingKeys.email_template)
        template = dict(DEFAULT_EMAIL_TEMPLATE)
        if isinstance(value, dict):
            template.update({k: str(v) for k, v in value.items() if k in DEFAULT_EMAIL_TEMPLATE and v})
        return template
