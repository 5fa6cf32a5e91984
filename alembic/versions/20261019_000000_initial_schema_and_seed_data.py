"""Initial schema and seed data for CodeXAlpha

Revision ID: 20261019_000000
Revises: None
Create Date: 2026-10-19 00:00:00.000000

This is the initial migration that creates all tables and seeds default data
for the CodeXAlpha service. This includes:
- User tables (profiles, roles, blocks, unlimited-run grants, early signups)
- Codex catalog tables (codex prompts, section prompts, dependencies, question
  mappings, AI steps, prompt history) and the questionnaire catalog
- Generation tables (persona runs, codexes, codex sections)
- AI provider, key and usage tables
- Sharing, PDF, Lightathon, analytics, settings and admin audit tables
- Default system settings and the default PDF template

Revision format: YYYYMMDD_HHMMSS_description

"""

from datetime import datetime
from typing import Sequence, Union
from uuid import uuid4

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def _ai_config_columns() -> list:
    return [
        sa.Column("ai_execution_mode", sa.String(32), nullable=True),
        sa.Column("primary_provider_id", sa.String(36), nullable=True),
        sa.Column("primary_model", sa.String(128), nullable=True),
        sa.Column("merge_provider_id", sa.String(36), nullable=True),
        sa.Column("merge_model", sa.String(128), nullable=True),
        sa.Column("merge_instructions", sa.String(), nullable=True),
    ]


def _ai_step_columns() -> list:
    return [
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("step_type", sa.String(16), nullable=False),
        sa.Column("provider_id", sa.String(36), nullable=True),
        sa.Column("model_name", sa.String(128), nullable=True),
        sa.Column("custom_prompt", sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables and seed initial data."""

    # Users
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("batch", sa.String(), nullable=True),
        sa.Column("photograph_url", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_profiles_email", "email"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
        sa.Index("ix_user_roles_user_id", "user_id"),
    )

    op.create_table(
        "user_blocks",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("blocked_by", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_blocks_user_id", "user_id", unique=True),
    )

    op.create_table(
        "user_unlimited_runs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("granted_by", sa.String(64), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_unlimited_runs_user_id", "user_id", unique=True),
    )

    op.create_table(
        "early_signups",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("source", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_early_signups_email", "email", unique=True),
    )

    # Questionnaire catalog
    op.create_table(
        "questionnaire_categories",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "questionnaire_questions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("category_id", sa.String(36), nullable=False),
        sa.Column("question_text", sa.String(), nullable=False),
        sa.Column("helper_text", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["category_id"], ["questionnaire_categories.id"]),
        sa.Index("ix_questionnaire_questions_category_id", "category_id"),
    )

    # AI providers
    op.create_table(
        "ai_providers",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("provider_code", sa.String(32), nullable=False),
        sa.Column("base_url", sa.String(512), nullable=True),
        sa.Column("default_model", sa.String(128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("available_models", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "ai_provider_keys",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("provider_id", sa.String(36), nullable=False),
        sa.Column("api_key", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_tested_at", sa.DateTime(), nullable=True),
        sa.Column("test_status", sa.String(16), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["provider_id"], ["ai_providers.id"]),
        sa.Index("ix_ai_provider_keys_provider_id", "provider_id"),
    )

    # Codex catalog
    op.create_table(
        "codex_prompts",
        sa.Column("id", sa.String(36), nullable=False),
        *_ai_config_columns(),
        sa.Column("codex_name", sa.String(255), nullable=False),
        sa.Column("system_prompt", sa.String(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("word_count_min", sa.Integer(), nullable=True),
        sa.Column("word_count_max", sa.Integer(), nullable=True),
        sa.Column("max_tokens", sa.Integer(), nullable=True),
        sa.Column("depends_on_transcript", sa.Boolean(), nullable=False),
        sa.Column("use_pricing_brackets", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "codex_section_prompts",
        sa.Column("id", sa.String(36), nullable=False),
        *_ai_config_columns(),
        sa.Column("codex_prompt_id", sa.String(36), nullable=False),
        sa.Column("section_name", sa.String(255), nullable=False),
        sa.Column("section_index", sa.Integer(), nullable=False),
        sa.Column("section_prompt", sa.String(), nullable=False),
        sa.Column("word_count_target", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.Index("ix_codex_section_prompts_codex_prompt_id", "codex_prompt_id"),
    )

    op.create_table(
        "codex_prompt_dependencies",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("codex_prompt_id", sa.String(36), nullable=False),
        sa.Column("depends_on_codex_prompt_id", sa.String(36), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.ForeignKeyConstraint(["depends_on_codex_prompt_id"], ["codex_prompts.id"]),
        sa.UniqueConstraint("codex_prompt_id", "depends_on_codex_prompt_id", name="uq_codex_prompt_dependency"),
        sa.Index("ix_codex_prompt_dependencies_codex_prompt_id", "codex_prompt_id"),
    )

    op.create_table(
        "codex_question_mappings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("codex_prompt_id", sa.String(36), nullable=False),
        sa.Column("question_id", sa.String(36), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.ForeignKeyConstraint(["question_id"], ["questionnaire_questions.id"]),
        sa.UniqueConstraint("codex_prompt_id", "question_id", name="uq_codex_question_mapping"),
        sa.Index("ix_codex_question_mappings_codex_prompt_id", "codex_prompt_id"),
    )

    op.create_table(
        "codex_ai_steps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("codex_prompt_id", sa.String(36), nullable=False),
        *_ai_step_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.Index("ix_codex_ai_steps_codex_prompt_id", "codex_prompt_id"),
    )

    op.create_table(
        "codex_section_ai_steps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("section_prompt_id", sa.String(36), nullable=False),
        *_ai_step_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["section_prompt_id"], ["codex_section_prompts.id"]),
        sa.Index("ix_codex_section_ai_steps_section_prompt_id", "section_prompt_id"),
    )

    op.create_table(
        "codex_prompts_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("codex_prompt_id", sa.String(36), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        sa.Column("change_description", sa.String(), nullable=True),
        sa.Column("changed_by", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.Index("ix_codex_prompts_history_codex_prompt_id", "codex_prompt_id"),
    )

    # Generation
    op.create_table(
        "persona_runs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("source_type", sa.String(32), nullable=False),
        sa.Column("original_transcript", sa.String(), nullable=True),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_persona_runs_user_id", "user_id"),
    )

    op.create_table(
        "codexes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("persona_run_id", sa.String(36), nullable=False),
        sa.Column("codex_prompt_id", sa.String(36), nullable=True),
        sa.Column("codex_name", sa.String(255), nullable=False),
        sa.Column("codex_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("total_sections", sa.Integer(), nullable=False),
        sa.Column("completed_sections", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["persona_run_id"], ["persona_runs.id"]),
        sa.ForeignKeyConstraint(["codex_prompt_id"], ["codex_prompts.id"]),
        sa.Index("ix_codexes_persona_run_id", "persona_run_id"),
    )

    op.create_table(
        "codex_sections",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("codex_id", sa.String(36), nullable=False),
        sa.Column("section_index", sa.Integer(), nullable=False),
        sa.Column("section_name", sa.String(255), nullable=False),
        sa.Column("content", sa.String(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("regeneration_count", sa.Integer(), nullable=False),
        sa.Column("last_regenerated_at", sa.DateTime(), nullable=True),
        sa.Column("error_message", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["codex_id"], ["codexes.id"]),
        sa.Index("ix_codex_sections_codex_id", "codex_id"),
    )

    op.create_table(
        "ai_usage_logs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("function_name", sa.String(64), nullable=False),
        sa.Column("model", sa.String(128), nullable=False),
        sa.Column("provider_code", sa.String(32), nullable=True),
        sa.Column("execution_mode", sa.String(32), nullable=True),
        sa.Column("prompt_tokens", sa.Integer(), nullable=False),
        sa.Column("completion_tokens", sa.Integer(), nullable=False),
        sa.Column("total_tokens", sa.Integer(), nullable=False),
        sa.Column("estimated_cost", sa.Float(), nullable=False),
        sa.Column("persona_run_id", sa.String(36), nullable=True),
        sa.Column("codex_id", sa.String(36), nullable=True),
        sa.Column("parent_run_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ai_usage_logs_user_id", "user_id"),
        sa.Index("ix_ai_usage_logs_persona_run_id", "persona_run_id"),
        sa.Index("ix_ai_usage_logs_created_at", "created_at"),
    )

    # Sharing
    op.create_table(
        "shared_links",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("persona_run_id", sa.String(36), nullable=False),
        sa.Column("share_token", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["persona_run_id"], ["persona_runs.id"]),
        sa.Index("ix_shared_links_persona_run_id", "persona_run_id"),
        sa.Index("ix_shared_links_share_token", "share_token", unique=True),
    )

    op.create_table(
        "share_link_attempts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("share_token", sa.String(128), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("attempt_type", sa.String(16), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_share_link_attempts_share_token", "share_token"),
        sa.Index("ix_share_link_attempts_created_at", "created_at"),
    )

    # PDF
    op.create_table(
        "pdf_templates",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("header_text", sa.String(), nullable=True),
        sa.Column("footer_text", sa.String(), nullable=True),
        sa.Column("show_header", sa.Boolean(), nullable=False),
        sa.Column("show_footer", sa.Boolean(), nullable=False),
        sa.Column("show_page_numbers", sa.Boolean(), nullable=False),
        sa.Column("show_cover_page", sa.Boolean(), nullable=False),
        sa.Column("show_toc", sa.Boolean(), nullable=False),
        sa.Column("margin_top", sa.Float(), nullable=False),
        sa.Column("margin_bottom", sa.Float(), nullable=False),
        sa.Column("margin_left", sa.Float(), nullable=False),
        sa.Column("margin_right", sa.Float(), nullable=False),
        sa.Column("title_font_size", sa.Float(), nullable=False),
        sa.Column("heading_font_size", sa.Float(), nullable=False),
        sa.Column("body_font_size", sa.Float(), nullable=False),
        sa.Column("primary_color", sa.JSON(), nullable=False),
        sa.Column("heading_color", sa.JSON(), nullable=False),
        sa.Column("text_color", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "pdf_exports",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("persona_run_id", sa.String(36), nullable=False),
        sa.Column("codex_id", sa.String(36), nullable=True),
        sa.Column("export_type", sa.String(16), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_pdf_exports_persona_run_id", "persona_run_id"),
    )

    # Lightathon
    op.create_table(
        "lightathon_enrollments",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("persona_run_id", sa.String(36), nullable=False),
        sa.Column("codex_id", sa.String(36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("started_by", sa.String(64), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["persona_run_id"], ["persona_runs.id"]),
        sa.ForeignKeyConstraint(["codex_id"], ["codexes.id"]),
        sa.UniqueConstraint("user_id", "persona_run_id", name="uq_lightathon_user_run"),
        sa.Index("ix_lightathon_enrollments_user_id", "user_id"),
    )

    op.create_table(
        "lightathon_daily_progress",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("enrollment_id", sa.String(36), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("mission_title", sa.String(255), nullable=False),
        sa.Column("mission_content", sa.String(), nullable=False),
        sa.Column("user_reflection", sa.String(), nullable=True),
        sa.Column("unlocked_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["enrollment_id"], ["lightathon_enrollments.id"]),
        sa.UniqueConstraint("enrollment_id", "day_number", name="uq_lightathon_enrollment_day"),
        sa.Index("ix_lightathon_daily_progress_enrollment_id", "enrollment_id"),
    )

    # Analytics, settings and audit
    op.create_table(
        "analytics_events",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("persona_run_id", sa.String(36), nullable=True),
        sa.Column("codex_id", sa.String(36), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_analytics_events_event_type", "event_type"),
        sa.Index("ix_analytics_events_created_at", "created_at"),
    )

    op.create_table(
        "system_settings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("setting_key", sa.String(128), nullable=False),
        sa.Column("setting_value", sa.JSON(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_system_settings_setting_key", "setting_key", unique=True),
    )

    op.create_table(
        "admin_activity_log",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("admin_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_user_id", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_admin_activity_log_admin_id", "admin_id"),
        sa.Index("ix_admin_activity_log_created_at", "created_at"),
    )

    # Seed default system settings
    now = datetime.utcnow()

    default_settings = [
        ("app_name", "CodeXAlpha", "Application name shown in the web app and PDFs"),
        ("app_logo_url", None, "Public URL of the application logo"),
        ("app_tagline", None, "Tagline shown under the application name"),
        ("global_ai_persona_prompt", "", "Persona instructions prepended to every codex system prompt"),
        ("regeneration_cooldown_minutes", 0, "Minutes before the same section can be regenerated again"),
        (
            "pricing_brackets",
            {
                "L1": {"min": 4000, "max": 19999},
                "L2": {"min": 22500, "max": 56500},
                "L3": {"min": 89999, "max": 325000},
            },
            "Offer price tiers injected into the pricing codex",
        ),
        ("email_notifications_enabled", True, "Email the user when all codexes of a run are ready"),
    ]

    system_settings = sa.table(
        "system_settings",
        sa.column("id", sa.String),
        sa.column("setting_key", sa.String),
        sa.column("setting_value", sa.JSON),
        sa.column("description", sa.String),
        sa.column("created_at", sa.DateTime),
        sa.column("updated_at", sa.DateTime),
    )
    op.bulk_insert(
        system_settings,
        [
            {
                "id": str(uuid4()),
                "setting_key": key,
                "setting_value": value,
                "description": description,
                "created_at": now,
                "updated_at": now,
            }
            for key, value, description in default_settings
        ],
    )

    # Seed the default PDF template
    pdf_templates = sa.table(
        "pdf_templates",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("is_active", sa.Boolean),
        sa.column("show_header", sa.Boolean),
        sa.column("show_footer", sa.Boolean),
        sa.column("show_page_numbers", sa.Boolean),
        sa.column("show_cover_page", sa.Boolean),
        sa.column("show_toc", sa.Boolean),
        sa.column("margin_top", sa.Float),
        sa.column("margin_bottom", sa.Float),
        sa.column("margin_left", sa.Float),
        sa.column("margin_right", sa.Float),
        sa.column("title_font_size", sa.Float),
        sa.column("heading_font_size", sa.Float),
        sa.column("body_font_size", sa.Float),
        sa.column("primary_color", sa.JSON),
        sa.column("heading_color", sa.JSON),
        sa.column("text_color", sa.JSON),
        sa.column("created_at", sa.DateTime),
        sa.column("updated_at", sa.DateTime),
    )
    op.bulk_insert(
        pdf_templates,
        [
            {
                "id": str(uuid4()),
                "name": "Default",
                "is_active": True,
                "show_header": True,
                "show_footer": True,
                "show_page_numbers": True,
                "show_cover_page": True,
                "show_toc": True,
                "margin_top": 20.0,
                "margin_bottom": 20.0,
                "margin_left": 20.0,
                "margin_right": 20.0,
                "title_font_size": 24.0,
                "heading_font_size": 16.0,
                "body_font_size": 11.0,
                "primary_color": [37, 99, 235],
                "heading_color": [17, 24, 39],
                "text_color": [55, 65, 81],
                "created_at": now,
                "updated_at": now,
            }
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("admin_activity_log")
    op.drop_table("system_settings")
    op.drop_table("analytics_events")
    op.drop_table("lightathon_daily_progress")
    op.drop_table("lightathon_enrollments")
    op.drop_table("pdf_exports")
    op.drop_table("pdf_templates")
    op.drop_table("share_link_attempts")
    op.drop_table("shared_links")
    op.drop_table("ai_usage_logs")
    op.drop_table("codex_sections")
    op.drop_table("codexes")
    op.drop_table("persona_runs")
    op.drop_table("codex_prompts_history")
    op.drop_table("codex_section_ai_steps")
    op.drop_table("codex_ai_steps")
    op.drop_table("codex_question_mappings")
    op.drop_table("codex_prompt_dependencies")
    op.drop_table("codex_section_prompts")
    op.drop_table("codex_prompts")
    op.drop_table("ai_provider_keys")
    op.drop_table("ai_providers")
    op.drop_table("questionnaire_questions")
    op.drop_table("questionnaire_categories")
    op.drop_table("early_signups")
    op.drop_table("user_unlimited_runs")
    op.drop_table("user_blocks")
    op.drop_table("user_roles")
    op.drop_table("profiles")
