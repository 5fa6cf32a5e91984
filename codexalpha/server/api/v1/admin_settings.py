"""
Admin Settings Endpoints.

System settings (branding, the global AI persona prompt and default provider,
regeneration cooldown, pricing brackets, email notifications) and the PDF
template used for exports.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body

from codexalpha.core.database.entities.system_settings import SystemSetting
from codexalpha.core.models.io.admin import PdfTemplateRead, SettingRead, SettingUpsert
from codexalpha.server.core.security import AdminUserDep
from codexalpha.server.services.deps import PdfExportDep, SettingsAdminDep
from codexalpha.server.services.system_settings import SECRET_SETTING_KEYS

router = APIRouter(tags=["admin-settings"])

MASKED_VALUE = "********"


def to_read(setting: SystemSetting) -> SettingRead:
    read = SettingRead.model_validate(setting)
    if setting.setting_key in SECRET_SETTING_KEYS:
        read = read.model_copy(update={"setting_value": MASKED_VALUE})
    return read


@router.get(
    "/settings",
    response_model=List[SettingRead],
    summary="List Settings",
    description="All system settings except secrets.",
)
async def list_settings(admin: AdminUserDep, admin_settings: SettingsAdminDep) -> List[SettingRead]:
    """
    List system settings.
    """
    return [to_read(s) for s in await admin_settings.list_settings()]


@router.get(
    "/settings/{key}",
    response_model=SettingRead,
    summary="Get Setting",
    responses={404: {"description": "Setting not found or secret"}},
)
async def get_setting(key: str, admin: AdminUserDep, admin_settings: SettingsAdminDep) -> SettingRead:
    """
    Get one system setting.
    """
    return to_read(await admin_settings.get_setting(key))


@router.put(
    "/settings/{key}",
    response_model=SettingRead,
    summary="Upsert Setting",
    description="Create or replace a system setting. Secret values are masked in the response.",
    responses={400: {"description": "Invalid value for a well-known key"}},
)
async def upsert_setting(
    key: str, body: SettingUpsert, admin: AdminUserDep, admin_settings: SettingsAdminDep
) -> SettingRead:
    """
    Upsert a system setting.

    Well-known keys are validated:

    - **pricing_brackets**: `{L1: {min, max}, L2: ..., L3: ...}` with strictly increasing tiers.
    - **regeneration_cooldown_minutes**: Non-negative integer.
    - **email_notifications_enabled**: Boolean.
    - **email_template**: Object with known template fields only.
    """
    return to_read(await admin_settings.upsert(key, body.value, admin))


@router.get(
    "/pdf-template",
    response_model=PdfTemplateRead,
    summary="Get PDF Template",
    description="The active PDF template, created with defaults on first use.",
)
async def get_pdf_template(admin: AdminUserDep, exports: PdfExportDep) -> PdfTemplateRead:
    """
    Get the PDF template.
    """
    return PdfTemplateRead.model_validate(await exports.active_template())


@router.patch(
    "/pdf-template",
    response_model=PdfTemplateRead,
    summary="Update PDF Template",
    description="Change fields of the active PDF template.",
    responses={400: {"description": "Unknown field or invalid color"}},
)
async def update_pdf_template(
    admin: AdminUserDep,
    exports: PdfExportDep,
    changes: Dict[str, Any] = Body(description="Template fields to change; colors are [r, g, b] lists"),
) -> PdfTemplateRead:
    """
    Update the PDF template.
    """
    return PdfTemplateRead.model_validate(await exports.update_template(changes, admin))
