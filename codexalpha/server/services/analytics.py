"""
Admin analytics and AI usage reporting.

Aggregates are computed from the operational tables: persona runs for
generation timing, codexes for per-codex stats, sections for regeneration
counts, share links, profiles for user growth and ``ai_usage_logs`` for cost.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlmodel import select

from codexalpha.core.database.base import as_naive_utc, utc_now
from codexalpha.core.database.entities.ai_usage_logs import AIUsageLog
from codexalpha.core.database.entities.analytics_events import AnalyticsEvent
from codexalpha.core.database.entities.codexes import Codex, CodexSection
from codexalpha.core.database.entities.persona_runs import PersonaRun
from codexalpha.core.database.entities.shared_links import SharedLink
from codexalpha.core.database.entities.users import Profile
from codexalpha.core.database.repositories.bundle import SqlRepoBundle
from codexalpha.core.logging_config import get_logger
from codexalpha.core.models.domain.enums import CodexStatus, PersonaRunStatus, UsageStatus
from codexalpha.core.models.io.analytics import (
    AnalyticsEventCreate,
    AnalyticsOverview,
    CodexStats,
    GenerationMetrics,
    RegenerationStats,
    ShareStats,
    UsageBucket,
    UsageSummary,
    UserGrowthPoint,
)

logger = get_logger(__name__)

RECENT_EVENTS = 100
GROWTH_DAYS = 30


def _bucket(logs: Iterable[AIUsageLog], key) -> List[UsageBucket]:
    buckets: Dict[str, UsageBucket] = {}
    for log in logs:
        name = key(log) or "unknown"
        bucket = buckets.setdefault(name, UsageBucket(key=name))
        bucket.calls += 1
        bucket.total_tokens += log.total_tokens or 0
        bucket.estimated_cost += log.estimated_cost or 0.0
    return sorted(buckets.values(), key=lambda b: b.estimated_cost, reverse=True)


def summarize_usage(logs: List[AIUsageLog]) -> UsageSummary:
    """Totals plus grouping by model, function and provider."""
    return UsageSummary(
        total_calls=len(logs),
        successful_calls=sum(1 for log in logs if log.status == UsageStatus.success.value),
        failed_calls=sum(1 for log in logs if log.status == UsageStatus.error.value),
        prompt_tokens=sum(log.prompt_tokens or 0 for log in logs),
        completion_tokens=sum(log.completion_tokens or 0 for log in logs),
        total_tokens=sum(log.total_tokens or 0 for log in logs),
        estimated_cost=round(sum(log.estimated_cost or 0.0 for log in logs), 6),
        by_model=_bucket(logs, lambda log: log.model),
        by_function=_bucket(logs, lambda log: log.function_name),
        by_provider=_bucket(logs, lambda log: log.provider_code),
    )


def generation_metrics(runs: List[PersonaRun]) -> GenerationMetrics:
    completed = [r for r in runs if r.status == PersonaRunStatus.completed.value]
    durations = [
        (r.completed_at - r.started_at).total_seconds() * 1000
        for r in completed
        if r.started_at is not None and r.completed_at is not None
    ]
    avg_ms = sum(durations) / len(durations) if durations else None
    return GenerationMetrics(
        total_runs=len(runs),
        completed_runs=len(completed),
        avg_completion_ms=round(avg_ms, 2) if avg_ms is not None else None,
        avg_completion_minutes=round(avg_ms / 60000, 2) if avg_ms is not None else None,
    )


def codex_stats(codexes: List[Codex]) -> List[CodexStats]:
    stats: Dict[str, CodexStats] = {}
    for codex in codexes:
        entry = stats.setdefault(codex.codex_name, CodexStats(codex_name=codex.codex_name))
        entry.total += 1
        if codex.status == CodexStatus.ready.value:
            entry.completed += 1
        elif codex.status == CodexStatus.generating.value:
            entry.generating += 1
        elif codex.status == CodexStatus.failed.value:
            entry.failed += 1
    return sorted(stats.values(), key=lambda s: s.codex_name)


def user_growth(created: Iterable[datetime]) -> List[UserGrowthPoint]:
    counts = Counter(ts.date().isoformat() for ts in created)
    return [UserGrowthPoint(date=day, count=counts[day]) for day in sorted(counts)]


class AnalyticsService:
    """Read-only reporting for the admin console."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _all(self, stmt) -> list:
        result = await self.repos.session.execute(stmt)
        return list(result.scalars().all())

    async def regeneration_stats(self) -> RegenerationStats:
        result = await self.repos.session.execute(
            select(
                func.coalesce(func.sum(CodexSection.regeneration_count), 0),
                func.count(CodexSection.id),
            ).where(CodexSection.regeneration_count > 0)
        )
        total, sections = result.one()
        total, sections = int(total or 0), int(sections or 0)
        return RegenerationStats(
            total_regenerations=total,
            sections_regenerated=sections,
            avg_regenerations_per_section=round(total / sections, 2) if sections else 0.0,
        )

    async def share_stats(self) -> ShareStats:
        links = await self._all(select(SharedLink))
        return ShareStats(
            total_links=len(links),
            active_links=sum(1 for link in links if link.is_active),
            total_views=sum(link.view_count or 0 for link in links),
            with_password=sum(1 for link in links if link.password_hash),
        )

    async def overview(self) -> AnalyticsOverview:
        runs = await self._all(select(PersonaRun))
        codexes = await self._all(select(Codex))
        events = await self.repos.analytics.latest(RECENT_EVENTS)
        since = utc_now() - timedelta(days=GROWTH_DAYS)
        profiles = await self._all(select(Profile).where(Profile.created_at >= since))
        logger.debug(f"Analytics overview over {len(runs)} runs and {len(codexes)} codexes")
        return AnalyticsOverview(
            generation=generation_metrics(runs),
            codex_stats=codex_stats(codexes),
            event_counts=dict(Counter(e.event_type for e in events)),
            regeneration=await self.regeneration_stats(),
            sharing=await self.share_stats(),
            user_growth=user_growth(p.created_at for p in profiles),
        )

    async def usage_summary(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> UsageSummary:
        logs = await self.repos.usage_logs.list_between(as_naive_utc(since), as_naive_utc(until))
        return summarize_usage(logs)

    async def recent_events(self, limit: int = RECENT_EVENTS) -> List[AnalyticsEvent]:
        return await self.repos.analytics.latest(limit)

    async def record_client_event(self, user_id: str, data: AnalyticsEventCreate) -> AnalyticsEvent:
        return await self.repos.analytics.record(
            data.event_type,
            user_id=user_id,
            persona_run_id=data.persona_run_id,
            codex_id=data.codex_id,
            metadata=data.metadata,
        )
