"""
Coverage lifecycle - orphaned coverage detection.

A coverage link records that a coverage event was created for a source
event. When the source disappears but the coverage event is still on the
calendar, the rule's orphan policy decides what to propose. Nothing is
ever deleted here.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from timebalance.coverage.rules import CompiledRule
from timebalance.models import Event

logger = logging.getLogger(__name__)

PROPOSE_DELETE = "propose-delete"


@dataclass(frozen=True)
class CoverageLink:
    rule_id: str
    source_event_id: str
    coverage_event_id: str

    @classmethod
    def from_dict(cls, data: dict) -> "CoverageLink":
        return cls(
            rule_id=str(data["ruleId"]),
            source_event_id=str(data["sourceEventId"]),
            coverage_event_id=str(data["coverageEventId"]),
        )

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "sourceEventId": self.source_event_id,
            "coverageEventId": self.coverage_event_id,
        }


@dataclass(frozen=True)
class CoverageLifecycleProposal:
    rule_id: str
    source_event_id: str
    coverage_event_id: str
    coverage_summary: str
    action: str

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "sourceEventId": self.source_event_id,
            "coverageEventId": self.coverage_event_id,
            "coverageSummary": self.coverage_summary,
            "action": self.action,
        }


@dataclass
class LifecycleReport:
    orphaned_coverage: list[CoverageLifecycleProposal] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"orphanedCoverage": [p.to_dict() for p in self.orphaned_coverage]}


def reconcile_coverage_lifecycle(
    events: Sequence[Event],
    rules: Iterable[CompiledRule],
    historical_links: Iterable[CoverageLink],
) -> LifecycleReport:
    """Propose actions for coverage events whose source event is gone."""
    rules_by_id = {r.id: r for r in rules}
    events_by_id = {e.id: e for e in events}

    report = LifecycleReport()
    seen: set[tuple[str, str]] = set()

    for link in historical_links:
        rule = rules_by_id.get(link.rule_id)
        if rule is None:
            logger.debug("Skipping coverage link for unknown rule %s", link.rule_id)
            continue
        if not rule.enabled:
            continue

        if link.source_event_id in events_by_id:
            continue
        coverage = events_by_id.get(link.coverage_event_id)
        if coverage is None:
            continue

        if rule.orphan_policy != PROPOSE_DELETE:
            continue

        key = (rule.id, coverage.id)
        if key in seen:
            continue
        seen.add(key)

        report.orphaned_coverage.append(
            CoverageLifecycleProposal(
                rule_id=rule.id,
                source_event_id=link.source_event_id,
                coverage_event_id=coverage.id,
                coverage_summary=coverage.summary,
                action=PROPOSE_DELETE,
            )
        )

    if report.orphaned_coverage:
        logger.info(
            "Orphaned coverage found",
            extra={"proposals": len(report.orphaned_coverage)},
        )
    return report
