"""
Dependency rule configuration - parsing, defaults and pattern compilation.

A dependency rule says: an event on a source calendar whose summary matches
the trigger patterns requires a coverage event (matching the coverage
patterns, on a coverage calendar) over the source window plus offsets.

Loading degrades:
- non-mapping document -> empty config
- structurally malformed rule -> skipped with a warning

Except one thing, which is fatal:
- an invalid summary-pattern regex raises DependencyConfigError naming the
  rule and field (also for disabled rules and for rules that are otherwise
  malformed)
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from timebalance import config as app_config
from timebalance import paths

logger = logging.getLogger(__name__)

ACTION_MODES = ("propose", "create")
ORPHAN_POLICIES = ("propose-delete", "keep")
OPT_OUT_FIELDS = ("description", "title")

DEFAULT_ACTION_MODE = "propose"
DEFAULT_ORPHAN_POLICY = "propose-delete"
DEFAULT_MIN_COVERAGE_PERCENT = 100.0


class DependencyConfigError(ValueError):
    """Raised when dependency configuration cannot be used safely."""

    def __init__(
        self,
        message: str,
        rule_id: str | None = None,
        field: str | None = None,
        issues: list | None = None,
    ):
        super().__init__(message)
        self.rule_id = rule_id
        self.field = field
        self.issues = issues or []


# =============================================================================
# DOCUMENT MODELS (camelCase JSON)
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTargetDoc(_CamelModel):
    account: str = ""
    calendar: str = ""


class TriggerDoc(_CamelModel):
    source_calendars: list[str] = Field(default_factory=list)
    summary_patterns: list[str] = Field(default_factory=list)
    all_day_summary_patterns: list[str] | None = None
    timed_summary_patterns: list[str] | None = None


class RequirementDoc(_CamelModel):
    coverage_summary_patterns: list[str] = Field(default_factory=list)
    coverage_search_calendars: list[str] = Field(default_factory=list)
    create_target: CreateTargetDoc = Field(default_factory=CreateTargetDoc)
    coverage_color_id: str | None = None
    start_offset_minutes: int = 0
    end_offset_minutes: int = 0
    min_coverage_percent: float = Field(default=DEFAULT_MIN_COVERAGE_PERCENT, ge=0, le=100)


class RuleDoc(_CamelModel):
    id: str = Field(min_length=1)
    enabled: bool = True
    name: str | None = None
    action_mode: str | None = None
    orphan_policy: str | None = None
    trigger: TriggerDoc = Field(default_factory=TriggerDoc)
    requirement: RequirementDoc = Field(default_factory=RequirementDoc)


class OptOutDoc(_CamelModel):
    global_tokens: list[str] | None = None
    rule_token_template: str | None = None
    precedence: list[Literal["description", "title"]] | None = None


class DefaultsDoc(_CamelModel):
    action_mode: str | None = None
    orphan_policy: str | None = None


# =============================================================================
# COMPILED CONFIG
# =============================================================================


@dataclass(frozen=True)
class CreateTarget:
    account: str = ""
    calendar: str = ""

    def to_dict(self) -> dict:
        return {"account": self.account, "calendar": self.calendar}


@dataclass(frozen=True)
class CompiledRule:
    id: str
    name: str
    enabled: bool = True
    action_mode: str = DEFAULT_ACTION_MODE
    orphan_policy: str = DEFAULT_ORPHAN_POLICY

    # Trigger
    source_calendars: tuple[str, ...] = ()
    summary_patterns: tuple[re.Pattern, ...] = ()
    all_day_summary_patterns: tuple[re.Pattern, ...] | None = None
    timed_summary_patterns: tuple[re.Pattern, ...] | None = None

    # Requirement
    coverage_summary_patterns: tuple[re.Pattern, ...] = ()
    coverage_search_calendars: tuple[str, ...] = ()
    create_target: CreateTarget = field(default_factory=CreateTarget)
    coverage_color_id: str | None = None
    start_offset_minutes: int = 0
    end_offset_minutes: int = 0
    min_coverage_percent: float = DEFAULT_MIN_COVERAGE_PERCENT

    def trigger_patterns_for(self, is_all_day: bool) -> tuple[re.Pattern, ...]:
        """All-day/timed specific set when provided, else the general set."""
        specific = self.all_day_summary_patterns if is_all_day else self.timed_summary_patterns
        return specific if specific else self.summary_patterns


@dataclass(frozen=True)
class OptOutConfig:
    global_tokens: tuple[str, ...] = field(
        default_factory=lambda: tuple(app_config.DEFAULT_OPT_OUT_TOKENS)
    )
    rule_token_template: str = app_config.DEFAULT_RULE_TOKEN_TEMPLATE
    precedence: tuple[str, ...] = tuple(app_config.DEFAULT_OPT_OUT_PRECEDENCE)

    def rule_token(self, rule_id: str) -> str:
        return self.rule_token_template.replace("{ruleId}", rule_id)


@dataclass(frozen=True)
class DependencyConfig:
    rules: tuple[CompiledRule, ...] = ()
    opt_out: OptOutConfig = field(default_factory=OptOutConfig)
    default_action_mode: str = DEFAULT_ACTION_MODE
    default_orphan_policy: str = DEFAULT_ORPHAN_POLICY

    def get_rule(self, rule_id: str) -> CompiledRule | None:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    @property
    def enabled_rules(self) -> list[CompiledRule]:
        return [r for r in self.rules if r.enabled]


# =============================================================================
# NORMALIZATION
# =============================================================================


PATTERN_FIELDS = (
    ("trigger", "summaryPatterns"),
    ("trigger", "allDaySummaryPatterns"),
    ("trigger", "timedSummaryPatterns"),
    ("requirement", "coverageSummaryPatterns"),
)


def compile_pattern(pattern: str, rule_id: str, location: str) -> re.Pattern:
    """Compile one case-insensitive pattern; an invalid one is fatal."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        logger.error("Invalid summary pattern at %s: %r (%s)", location, pattern, exc)
        raise DependencyConfigError(
            f"Invalid regex at {location}: {pattern!r} ({exc})",
            rule_id=rule_id,
            field=location,
        ) from exc


def compile_patterns(patterns: list[str], rule_id: str, field_path: str) -> tuple[re.Pattern, ...]:
    return tuple(
        compile_pattern(pattern, rule_id, f"rules[{rule_id}].{field_path}[{index}]")
        for index, pattern in enumerate(patterns)
    )


def check_raw_patterns(raw_rule: Any, index: int) -> None:
    """
    Compile the string patterns of a rule before its schema is validated.

    An invalid regex stays fatal even when the same rule has other problems
    that would get it skipped as malformed. A bare string is checked as a
    one-element list.
    """
    if not isinstance(raw_rule, dict):
        return
    rule_id = str(raw_rule.get("id") or f"#{index}")
    for section, key in PATTERN_FIELDS:
        block = raw_rule.get(section)
        if not isinstance(block, dict):
            continue
        patterns = block.get(key)
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list):
            continue
        for position, pattern in enumerate(patterns):
            if isinstance(pattern, str):
                compile_pattern(pattern, rule_id, f"rules[{rule_id}].{section}.{key}[{position}]")


def _choose(value: str | None, allowed: tuple[str, ...], default: str, what: str, rule_id: str) -> str:
    if value is None:
        return default
    if value not in allowed:
        logger.warning(
            "Unknown %s %r for rule %s, using %r", what, value, rule_id, default
        )
        return default
    return value


def compile_rule(doc: RuleDoc, default_action_mode: str, default_orphan_policy: str) -> CompiledRule:
    trigger = doc.trigger
    requirement = doc.requirement

    return CompiledRule(
        id=doc.id,
        name=doc.name or doc.id,
        enabled=doc.enabled,
        action_mode=_choose(doc.action_mode, ACTION_MODES, default_action_mode, "actionMode", doc.id),
        orphan_policy=_choose(
            doc.orphan_policy, ORPHAN_POLICIES, default_orphan_policy, "orphanPolicy", doc.id
        ),
        source_calendars=tuple(trigger.source_calendars),
        summary_patterns=compile_patterns(
            trigger.summary_patterns, doc.id, "trigger.summaryPatterns"
        ),
        all_day_summary_patterns=(
            compile_patterns(
                trigger.all_day_summary_patterns, doc.id, "trigger.allDaySummaryPatterns"
            )
            if trigger.all_day_summary_patterns is not None
            else None
        ),
        timed_summary_patterns=(
            compile_patterns(trigger.timed_summary_patterns, doc.id, "trigger.timedSummaryPatterns")
            if trigger.timed_summary_patterns is not None
            else None
        ),
        coverage_summary_patterns=compile_patterns(
            requirement.coverage_summary_patterns, doc.id, "requirement.coverageSummaryPatterns"
        ),
        coverage_search_calendars=tuple(requirement.coverage_search_calendars),
        create_target=CreateTarget(
            account=requirement.create_target.account,
            calendar=requirement.create_target.calendar,
        ),
        coverage_color_id=requirement.coverage_color_id,
        start_offset_minutes=requirement.start_offset_minutes,
        end_offset_minutes=requirement.end_offset_minutes,
        min_coverage_percent=requirement.min_coverage_percent,
    )


def _parse_section(model: type[BaseModel], raw: Any, name: str) -> Any:
    if raw is None:
        return model()
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid dependency config section %s, using defaults: %s", name, exc)
        return model()


def normalize_dependency_config(raw: Any) -> DependencyConfig:
    """
    Validate a raw dependencies document and compile its rules.

    Raises DependencyConfigError for invalid summary-pattern regexes.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Dependency config is not a mapping, ignoring it")
        return DependencyConfig()

    defaults: DefaultsDoc = _parse_section(DefaultsDoc, raw.get("defaults"), "defaults")
    default_action_mode = _choose(
        defaults.action_mode, ACTION_MODES, DEFAULT_ACTION_MODE, "actionMode", "<defaults>"
    )
    default_orphan_policy = _choose(
        defaults.orphan_policy, ORPHAN_POLICIES, DEFAULT_ORPHAN_POLICY, "orphanPolicy", "<defaults>"
    )

    opt_out_doc: OptOutDoc = _parse_section(OptOutDoc, raw.get("optOut"), "optOut")
    base = OptOutConfig()
    opt_out = OptOutConfig(
        global_tokens=(
            tuple(t for t in opt_out_doc.global_tokens if t)
            if opt_out_doc.global_tokens is not None
            else base.global_tokens
        ),
        rule_token_template=opt_out_doc.rule_token_template or base.rule_token_template,
        precedence=tuple(opt_out_doc.precedence) if opt_out_doc.precedence else base.precedence,
    )

    raw_rules = raw.get("rules") or []
    if not isinstance(raw_rules, list):
        logger.warning("Dependency config 'rules' is not a list, ignoring it")
        raw_rules = []

    rules: list[CompiledRule] = []
    seen: set[str] = set()
    for index, raw_rule in enumerate(raw_rules):
        check_raw_patterns(raw_rule, index)
        try:
            doc = RuleDoc.model_validate(raw_rule)
        except ValidationError as exc:
            logger.warning("Skipping malformed dependency rule #%d: %s", index, exc)
            continue

        if doc.id in seen:
            logger.warning("Skipping duplicate dependency rule id %r", doc.id)
            continue
        seen.add(doc.id)

        rules.append(compile_rule(doc, default_action_mode, default_orphan_policy))

    logger.debug(
        "Dependency config normalized",
        extra={"rules": len(rules), "enabled": sum(1 for r in rules if r.enabled)},
    )
    return DependencyConfig(
        rules=tuple(rules),
        opt_out=opt_out,
        default_action_mode=default_action_mode,
        default_orphan_policy=default_orphan_policy,
    )


def load_dependency_config(config_path: Path | None = None) -> DependencyConfig:
    """
    Load config/dependencies.json (JSON or YAML).

    A missing or unparsable file yields an empty config; invalid patterns
    still raise DependencyConfigError.
    """
    if config_path is None:
        config_path = paths.dependencies_path()

    if not config_path.exists():
        logger.debug("Dependency config not found at %s, no rules loaded", config_path)
        return DependencyConfig()

    try:
        raw = paths.read_config_file(config_path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Failed to read dependency config %s: %s", config_path, exc)
        return DependencyConfig()

    return normalize_dependency_config(raw)
