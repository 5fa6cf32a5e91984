"""Unit tests for codex PDF exports."""

import zipfile
from io import BytesIO

import pytest
import pytest_asyncio

from codexalpha.core.database.entities.codexes import CodexSection
from codexalpha.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from codexalpha.server.core.config import ShareLinkConfig
from codexalpha.server.services.pdf_export import PdfExportService, safe_file_name
from codexalpha.server.services.pdf_renderer import render_codex_pdf, render_master_pdf, sanitize_text
from codexalpha.server.services.persona_runs import PersonaRunService
from codexalpha.server.services.share_links import ShareLinkService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(repos) -> PdfExportService:
    return PdfExportService(repos)


@pytest_asyncio.fixture
async def exported_run(repos, user, catalog):
    """A run whose "Brand Story" codex is ready and "21 Days Lightathon" is still generating."""
    run, codexes = await PersonaRunService(repos).create_run(user.id, title="Coach Persona", answers={})
    brand, lightathon = codexes
    brand.status = "ready"
    await repos.codexes.update(brand)
    lightathon.status = "generating"
    await repos.codexes.update(lightathon)
    await repos.sections.add_all(
        [
            CodexSection(
                codex_id=brand.id,
                section_index=0,
                section_name="Origin",
                content="# Roots\nGrew up by the sea.\n\n- patience\n- grit",
                status="completed",
            ),
            CodexSection(
                codex_id=brand.id, section_index=1, section_name="Mission", content=None, status="error"
            ),
        ]
    )
    return run, brand, lightathon


class TestRendering:
    def test_sanitize_text(self):
        assert sanitize_text("Go → now “fast” — ok…") == 'Go -> now "fast" -- ok...'
        assert sanitize_text("café") == "caf"
        assert sanitize_text(None) == ""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Brand Story", "Brand_Story.pdf"),
            ("  Brand / Story!  ", "Brand_Story.pdf"),
            ("???", "codex.pdf"),
        ],
    )
    def test_safe_file_name(self, name, expected):
        assert safe_file_name(name) == expected

    def test_render_codex_without_template(self):
        content = render_codex_pdf("Brand Story", [("Origin", "**Bold** start\n\n## Details\ntext")], persona_title="P")
        assert content.startswith(b"%PDF")

    def test_render_master_without_sections(self):
        content = render_master_pdf("Persona", [("Brand Story", []), ("Offer", [("Pricing", "L1 tier")])])
        assert content.startswith(b"%PDF")


class TestExports:
    async def test_codex_pdf(self, service, repos, exported_run, user):
        run, brand, _ = exported_run

        exported = await service.codex_pdf(brand.id, user)

        assert exported.file_name == "Brand_Story.pdf"
        assert exported.media_type == "application/pdf"
        assert exported.content.startswith(b"%PDF")
        records = await repos.pdf_exports.list()
        assert [(r.export_type, r.codex_id, r.user_id) for r in records] == [("codex", brand.id, user.id)]
        events = await repos.analytics.latest()
        assert events[0].event_type == "pdf_exported"
        assert events[0].event_metadata == {"export_type": "codex"}

    async def test_codex_pdf_access(self, service, exported_run, other_user, admin):
        _, brand, _ = exported_run

        with pytest.raises(PermissionDeniedError):
            await service.codex_pdf(brand.id, other_user)
        assert (await service.codex_pdf(brand.id, admin)).content.startswith(b"%PDF")
        with pytest.raises(NotFoundError):
            await service.codex_pdf("missing", admin)

    async def test_master_pdf_includes_only_ready_codexes(self, service, exported_run, user):
        run, _, _ = exported_run

        exported = await service.master_pdf(run.id, user)

        assert exported.file_name == "Coach_Persona_Master_Codex.pdf"
        assert exported.content.startswith(b"%PDF")

    async def test_zip_archive(self, service, repos, exported_run, user):
        run, _, _ = exported_run

        exported = await service.zip_archive(run.id, user)

        assert exported.file_name == "Coach_Persona_Codexes.zip"
        assert exported.media_type == "application/zip"
        with zipfile.ZipFile(BytesIO(exported.content)) as archive:
            assert archive.namelist() == ["01_Brand_Story.pdf"]
            assert archive.read("01_Brand_Story.pdf").startswith(b"%PDF")
        assert [r.export_type for r in await repos.pdf_exports.list()] == ["zip"]

    async def test_nothing_ready_to_export(self, service, repos, user, catalog):
        run, _ = await PersonaRunService(repos).create_run(user.id, title="Fresh", answers={})

        with pytest.raises(ValidationError, match="No completed codexes to export"):
            await service.master_pdf(run.id, user)
        with pytest.raises(ValidationError, match="No completed codexes to export"):
            await service.zip_archive(run.id, user)

    async def test_shared_codex_pdf(self, service, repos, exported_run, user):
        run, brand, _ = exported_run
        shares = ShareLinkService(repos, ShareLinkConfig(pbkdf2_iterations=1000))
        link = await shares.create(user, run.id)

        exported = await service.shared_codex_pdf(shares, link.share_token, None, "10.0.0.1", brand.id)

        assert exported.content.startswith(b"%PDF")
        records = await repos.pdf_exports.list()
        assert records[0].user_id is None

    async def test_shared_codex_must_belong_to_the_link(self, service, repos, exported_run, user, catalog):
        run, _, _ = exported_run
        shares = ShareLinkService(repos, ShareLinkConfig(pbkdf2_iterations=1000))
        link = await shares.create(user, run.id)
        _, other_codexes = await PersonaRunService(repos).create_run("user-3", title="Other", answers={})

        with pytest.raises(NotFoundError):
            await service.shared_codex_pdf(shares, link.share_token, None, "10.0.0.1", other_codexes[0].id)


class TestTemplates:
    async def test_active_template_created_on_first_use(self, service, repos):
        template = await service.active_template()

        assert template.name == "Default"
        assert (await service.active_template()).id == template.id

    async def test_update_template(self, service, repos, admin):
        template = await service.update_template(
            {"company_name": "Light Co", "primary_color": [255, 0, 0], "show_toc": False}, admin
        )

        assert (template.company_name, template.primary_color, template.show_toc) == ("Light Co", [255, 0, 0], False)
        activity = await repos.admin_activity.list()
        assert activity[0].action == "update_pdf_template"
        assert activity[0].details == {"fields": ["company_name", "primary_color", "show_toc"]}

    @pytest.mark.parametrize(
        "changes", [{"unknown_field": 1}, {"primary_color": "#ff0000"}, {"text_color": [1, 2]}]
    )
    async def test_invalid_template_changes(self, service, admin, changes):
        with pytest.raises(ValidationError):
            await service.update_template(changes, admin)
