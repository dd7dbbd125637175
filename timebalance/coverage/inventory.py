"""
Dependency config validation against the calendar inventory.

The inventory maps each account label to the calendars it exposes (ids or
names). Run before analysis so a rule pointing at a calendar that doesn't
exist fails loudly instead of silently never matching.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from timebalance.coverage.rules import DependencyConfig, DependencyConfigError

logger = logging.getLogger(__name__)

Inventory = Mapping[str, Iterable[str]]


@dataclass(frozen=True)
class DependencyConfigIssue:
    rule_id: str
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"ruleId": self.rule_id, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        return f"rules[{self.rule_id}].{self.field}: {self.message}"


def _calendar_known(ref: str, calendars: Iterable[str]) -> bool:
    lowered = ref.lower()
    return any(ref == c or lowered == c.lower() for c in calendars)


def validate_dependency_config_against_inventory(
    config: DependencyConfig, inventory: Inventory
) -> list[DependencyConfigIssue]:
    """Every calendar/account a rule references that the inventory lacks."""
    accounts = {account: list(calendars) for account, calendars in inventory.items()}
    all_calendars = [c for calendars in accounts.values() for c in calendars]

    issues: list[DependencyConfigIssue] = []
    for rule in config.rules:
        target = rule.create_target

        if not target.account:
            if rule.action_mode == "create":
                issues.append(
                    DependencyConfigIssue(
                        rule.id,
                        "requirement.createTarget.account",
                        "actionMode 'create' requires a createTarget account",
                    )
                )
        elif target.account not in accounts:
            issues.append(
                DependencyConfigIssue(
                    rule.id,
                    "requirement.createTarget.account",
                    f"unknown account {target.account!r}",
                )
            )
        elif target.calendar and not _calendar_known(target.calendar, accounts[target.account]):
            issues.append(
                DependencyConfigIssue(
                    rule.id,
                    "requirement.createTarget.calendar",
                    f"calendar {target.calendar!r} not found in account {target.account!r}",
                )
            )

        for index, ref in enumerate(rule.source_calendars):
            if not _calendar_known(ref, all_calendars):
                issues.append(
                    DependencyConfigIssue(
                        rule.id,
                        f"trigger.sourceCalendars[{index}]",
                        f"calendar {ref!r} not found in any account",
                    )
                )

        for index, ref in enumerate(rule.coverage_search_calendars):
            if not _calendar_known(ref, all_calendars):
                issues.append(
                    DependencyConfigIssue(
                        rule.id,
                        f"requirement.coverageSearchCalendars[{index}]",
                        f"calendar {ref!r} not found in any account",
                    )
                )

    return issues


def validate_dependency_configuration(config: DependencyConfig, inventory: Inventory) -> None:
    """Raise DependencyConfigError listing every inventory issue."""
    issues = validate_dependency_config_against_inventory(config, inventory)
    if not issues:
        return

    lines = "\n".join(f"  - {issue}" for issue in issues)
    logger.error("Dependency configuration has %d issue(s)", len(issues))
    raise DependencyConfigError(
        f"Dependency configuration is invalid:\n{lines}",
        rule_id=issues[0].rule_id,
        field=issues[0].field,
        issues=issues,
    )
