"""
PDF export service.

Loads codex content, renders it with the active PDF template and records each
export. Owners and admins may export; share link holders may download the
codex PDFs of a link they can open.
"""

from __future__ import annotations

import re
import zipfile
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple

from codexalpha.core.database.entities.codexes import Codex
from codexalpha.core.database.entities.pdf import PdfExport, PdfTemplate
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import AnalyticsEventType, CodexStatus, SectionStatus
from codexalpha.server.core.security import CurrentUser

from .pdf_renderer import SectionContent, render_codex_pdf, render_master_pdf
from .share_links import ShareLinkService

logger = get_logger(__name__)

EXPORTABLE_STATUSES = (CodexStatus.ready.value, CodexStatus.ready_with_errors.value)

TEMPLATE_FIELDS = (
    "name",
    "company_name",
    "header_text",
    "footer_text",
    "show_header",
    "show_footer",
    "show_page_numbers",
    "show_cover_page",
    "show_toc",
    "margin_top",
    "margin_bottom",
    "margin_left",
    "margin_right",
    "title_font_size",
    "heading_font_size",
    "body_font_size",
    "primary_color",
    "heading_color",
    "text_color",
)


@dataclass
class ExportedFile:
    file_name: str
    content: bytes
    media_type: str = "application/pdf"


def safe_file_name(name: str, extension: str = "pdf") -> str:
    stem = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_") or "codex"
    return f"{stem[:100]}.{extension}"


class PdfExportService:
    """Render and record codex, master and ZIP exports."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _run_for(self, persona_run_id: str, user: CurrentUser) -> PersonaRun:
        run = await self.repos.persona_runs.get_by_id(persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        if run.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Unauthorized")
        return run

    async def _sections(self, codex: Codex) -> List[SectionContent]:
        return [
            (s.section_name, s.content or "")
            for s in await self.repos.sections.list_for_codex(codex.id)
            if s.status == SectionStatus.completed.value and s.content
        ]

    async def _record(
        self, user_id: Optional[str], run: PersonaRun, export_type: str, file_name: str, codex_id: Optional[str] = None
    ) -> None:
        await self.repos.pdf_exports.create(
            PdfExport(
                user_id=user_id,
                persona_run_id=run.id,
                codex_id=codex_id,
                export_type=export_type,
                file_name=file_name,
            )
        )
        await self.repos.analytics.record(
            AnalyticsEventType.pdf_exported.value,
            user_id=user_id,
            persona_run_id=run.id,
            codex_id=codex_id,
            metadata={"export_type": export_type},
        )

    async def _render_codex(self, codex: Codex, run: PersonaRun) -> ExportedFile:
        template = await self.repos.pdf_templates.get_active()
        content = render_codex_pdf(
            codex.codex_name,
            await self._sections(codex),
            persona_title=run.title,
            template=template,
        )
        return ExportedFile(safe_file_name(codex.codex_name), content)

    async def codex_pdf(self, codex_id: str, user: CurrentUser) -> ExportedFile:
        codex = await self.repos.codexes.get_by_id(codex_id)
        if codex is None:
            raise NotFoundError("Codex not found")
        run = await self._run_for(codex.persona_run_id, user)
        exported = await self._render_codex(codex, run)
        await self._record(user.id, run, "codex", exported.file_name, codex.id)
        logger.info(f"Exported codex {codex.id} as PDF ({len(exported.content)} bytes)")
        return exported

    async def _ready_codexes(self, run: PersonaRun) -> List[Codex]:
        return [c for c in await self.repos.codexes.list_for_run(run.id) if c.status in EXPORTABLE_STATUSES]

    async def master_pdf(self, persona_run_id: str, user: CurrentUser) -> ExportedFile:
        run = await self._run_for(persona_run_id, user)
        codexes = await self._ready_codexes(run)
        if not codexes:
            raise ValidationError("No completed codexes to export")
        parts: List[Tuple[str, List[SectionContent]]] = [(c.codex_name, await self._sections(c)) for c in codexes]
        profile = await self.repos.profiles.get_by_id(run.user_id)
        content = render_master_pdf(
            run.title,
            parts,
            owner_name=profile.display_name if profile else "",
            template=await self.repos.pdf_templates.get_active(),
        )
        file_name = safe_file_name(f"{run.title} Master Codex")
        await self._record(user.id, run, "master", file_name)
        return ExportedFile(file_name, content)

    async def zip_archive(self, persona_run_id: str, user: CurrentUser) -> ExportedFile:
        run = await self._run_for(persona_run_id, user)
        codexes = await self._ready_codexes(run)
        if not codexes:
            raise ValidationError("No completed codexes to export")
        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for order, codex in enumerate(codexes, start=1):
                exported = await self._render_codex(codex, run)
                archive.writestr(f"{order:02d}_{exported.file_name}", exported.content)
        file_name = safe_file_name(f"{run.title} Codexes", "zip")
        await self._record(user.id, run, "zip", file_name)
        return ExportedFile(file_name, buffer.getvalue(), media_type="application/zip")

    async def shared_codex_pdf(
        self, shares: ShareLinkService, token: str, password: Optional[str], ip_address: str, codex_id: str
    ) -> ExportedFile:
        """Codex PDF for a share link holder; the codex must belong to the shared run."""
        link = await shares.authorize(token, password, ip_address)
        codex = await self.repos.codexes.get_by_id(codex_id)
        if codex is None or codex.persona_run_id != link.persona_run_id:
            raise NotFoundError("Codex not found")
        run = await self.repos.persona_runs.get_by_id(link.persona_run_id)
        if run is None:
            raise NotFoundError("Persona run not found")
        exported = await self._render_codex(codex, run)
        await self._record(None, run, "codex", exported.file_name, codex.id)
        return exported

    async def active_template(self) -> PdfTemplate:
        """The active template, creating the default one on first use."""
        template = await self.repos.pdf_templates.get_active()
        if template is None:
            template = await self.repos.pdf_templates.create(PdfTemplate())
        return template

    async def update_template(self, changes: Dict[str, Any], admin: CurrentUser) -> PdfTemplate:
        template = await self.active_template()
        for key, value in changes.items():
            if key not in TEMPLATE_FIELDS:
                raise ValidationError(f"Unknown template field: {key}")
            if key.endswith("_color") and (not isinstance(value, list) or len(value) != 3):
                raise ValidationError(f"{key} must be an [r, g, b] list")
            setattr(template, key, value)
        template = await self.repos.pdf_templates.update(template)
        await self.repos.admin_activity.record(admin.id, "update_pdf_template", details={"fields": sorted(changes)})
        return template
