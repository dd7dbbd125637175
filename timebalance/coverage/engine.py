"""
Coverage Rule Engine - find source events that lack required coverage.

For each enabled rule and each matching source event:
1. Opt-out tokens (description before title by default) suppress the event
2. Required window = [start + startOffset, end + endOffset]
3. Coverage events (right calendars, matching summary) are clipped to the
   window, merged and summed
4. Below the rule's minimum percent -> CoverageGap, else CoverageFulfillment

Outputs carry createTarget/coverageColorId so a caller can draft the
missing coverage event. Nothing here writes to a calendar.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from timebalance import config as app_config
from timebalance.coverage.rules import CompiledRule, CreateTarget, DependencyConfig, OptOutConfig
from timebalance.intervals import clip_interval, merge_intervals
from timebalance.models import Event, to_jsonable
from timebalance.observability import AnalysisContext

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class CoverageGap:
    rule_id: str
    rule_name: str
    source_event_id: str
    source_summary: str
    source_calendar_name: str
    source_start: datetime
    source_end: datetime
    required_start: datetime
    required_end: datetime
    required_duration_minutes: float
    covered_duration_minutes: float
    actual_coverage_percent: float
    required_coverage_percent: float
    missing_minutes: float
    action_mode: str
    create_target: CreateTarget
    coverage_color_id: str | None

    def to_dict(self) -> dict:
        return to_jsonable(
            {
                "ruleId": self.rule_id,
                "ruleName": self.rule_name,
                "sourceEventId": self.source_event_id,
                "sourceSummary": self.source_summary,
                "sourceCalendarName": self.source_calendar_name,
                "sourceStart": self.source_start,
                "sourceEnd": self.source_end,
                "requiredStart": self.required_start,
                "requiredEnd": self.required_end,
                "requiredDurationMinutes": self.required_duration_minutes,
                "coveredDurationMinutes": self.covered_duration_minutes,
                "actualCoveragePercent": self.actual_coverage_percent,
                "requiredCoveragePercent": self.required_coverage_percent,
                "missingMinutes": self.missing_minutes,
                "actionMode": self.action_mode,
                "createTarget": self.create_target.to_dict(),
                "coverageColorId": self.coverage_color_id,
            }
        )


@dataclass(frozen=True)
class CoverageOptOutRecord:
    rule_id: str
    source_event_id: str
    source_summary: str
    matched_in: str  # "description" | "title"
    token: str

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "sourceEventId": self.source_event_id,
            "sourceSummary": self.source_summary,
            "matchedIn": self.matched_in,
            "token": self.token,
        }


@dataclass(frozen=True)
class CoverageFulfillment:
    rule_id: str
    source_event_id: str
    source_summary: str
    coverage_event_ids: tuple[str, ...]
    required_duration_minutes: float
    covered_duration_minutes: float
    actual_coverage_percent: float

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "sourceEventId": self.source_event_id,
            "sourceSummary": self.source_summary,
            "coverageEventIds": list(self.coverage_event_ids),
            "requiredDurationMinutes": self.required_duration_minutes,
            "coveredDurationMinutes": self.covered_duration_minutes,
            "actualCoveragePercent": self.actual_coverage_percent,
        }


@dataclass
class CoverageReport:
    gaps: list[CoverageGap] = field(default_factory=list)
    opted_out: list[CoverageOptOutRecord] = field(default_factory=list)
    fulfilled: list[CoverageFulfillment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "gaps": [g.to_dict() for g in self.gaps],
            "optedOut": [o.to_dict() for o in self.opted_out],
            "fulfilled": [f.to_dict() for f in self.fulfilled],
        }


# =============================================================================
# MATCHING
# =============================================================================


def event_in_calendars(event: Event, calendars: Iterable[str]) -> bool:
    """Calendar reference matches the event's calendar id exactly or its name case-insensitively."""
    name = event.calendar_name.lower()
    for ref in calendars:
        if ref == event.calendar_id and ref:
            return True
        if name and ref.lower() == name:
            return True
    return False


def matches_any(text: str, patterns: Iterable[re.Pattern]) -> bool:
    return any(p.search(text) for p in patterns)


def is_source_event(event: Event, rule: CompiledRule) -> bool:
    if not event_in_calendars(event, rule.source_calendars):
        return False
    return matches_any(event.summary, rule.trigger_patterns_for(event.is_all_day))


def find_opt_out(
    event: Event, rule: CompiledRule, opt_out: OptOutConfig
) -> CoverageOptOutRecord | None:
    """First opt-out token found, scanning fields in precedence order."""
    tokens = [opt_out.rule_token(rule.id), *opt_out.global_tokens]
    for field_name in opt_out.precedence:
        text = event.description if field_name == "description" else event.summary
        lowered = (text or "").lower()
        if not lowered:
            continue
        for token in tokens:
            if token and token.lower() in lowered:
                return CoverageOptOutRecord(
                    rule_id=rule.id,
                    source_event_id=event.id,
                    source_summary=event.summary,
                    matched_in=field_name,
                    token=token,
                )
    return None


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


# =============================================================================
# EVALUATION
# =============================================================================


def evaluate_source_event(
    source: Event, rule: CompiledRule, events: Sequence[Event], epsilon: float
) -> CoverageGap | CoverageFulfillment:
    required_start = source.start + timedelta(minutes=rule.start_offset_minutes)
    required_end = source.end + timedelta(minutes=rule.end_offset_minutes)
    required = _minutes(required_end - required_start)

    if required <= 0:
        return CoverageFulfillment(
            rule_id=rule.id,
            source_event_id=source.id,
            source_summary=source.summary,
            coverage_event_ids=(),
            required_duration_minutes=0,
            covered_duration_minutes=0,
            actual_coverage_percent=100.0,
        )

    clipped = []
    contributing = []
    for candidate in events:
        if candidate.id == source.id:
            continue
        if not event_in_calendars(candidate, rule.coverage_search_calendars):
            continue
        if not matches_any(candidate.summary, rule.coverage_summary_patterns):
            continue
        interval = clip_interval(candidate.start, candidate.end, required_start, required_end)
        if interval is None:
            continue
        clipped.append(interval)
        contributing.append(candidate.id)

    covered = sum(_minutes(i.end - i.start) for i in merge_intervals(clipped))
    percent = min(100.0, covered / required * 100)

    if percent + epsilon < rule.min_coverage_percent:
        return CoverageGap(
            rule_id=rule.id,
            rule_name=rule.name,
            source_event_id=source.id,
            source_summary=source.summary,
            source_calendar_name=source.calendar_name,
            source_start=source.start,
            source_end=source.end,
            required_start=required_start,
            required_end=required_end,
            required_duration_minutes=required,
            covered_duration_minutes=covered,
            actual_coverage_percent=percent,
            required_coverage_percent=rule.min_coverage_percent,
            missing_minutes=max(0.0, required - covered),
            action_mode=rule.action_mode,
            create_target=rule.create_target,
            coverage_color_id=rule.coverage_color_id,
        )

    return CoverageFulfillment(
        rule_id=rule.id,
        source_event_id=source.id,
        source_summary=source.summary,
        coverage_event_ids=tuple(contributing),
        required_duration_minutes=required,
        covered_duration_minutes=covered,
        actual_coverage_percent=percent,
    )


def find_coverage_gaps(
    events: Sequence[Event],
    rules: Iterable[CompiledRule] | None = None,
    config: DependencyConfig | None = None,
    *,
    epsilon: float = app_config.COVERAGE_EPSILON,
) -> CoverageReport:
    """
    Evaluate every enabled rule against the event set.

    `rules` defaults to the rules of `config`; `config` supplies opt-out
    settings. Source events are evaluated in start order.
    """
    if config is None:
        config = DependencyConfig()
    if rules is None:
        rules = config.rules

    events = list(events)
    report = CoverageReport()

    with AnalysisContext("coverage"):
        for rule in rules:
            if not rule.enabled:
                continue

            sources = sorted(
                (e for e in events if is_source_event(e, rule)),
                key=lambda e: (e.start, e.id),
            )
            for source in sources:
                opt_out = find_opt_out(source, rule, config.opt_out)
                if opt_out is not None:
                    report.opted_out.append(opt_out)
                    continue

                result = evaluate_source_event(source, rule, events, epsilon)
                if isinstance(result, CoverageGap):
                    report.gaps.append(result)
                else:
                    report.fulfilled.append(result)

        logger.info(
            "Coverage evaluated",
            extra={
                "gaps": len(report.gaps),
                "opted_out": len(report.opted_out),
                "fulfilled": len(report.fulfilled),
            },
        )
    return report
