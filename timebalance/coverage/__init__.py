"""
Dependency coverage: rules that say one event requires another.

Usage:
    from timebalance.coverage import load_dependency_config, find_coverage_gaps

    config = load_dependency_config()
    report = find_coverage_gaps(events, config=config)
"""

from .engine import (
    CoverageFulfillment,
    CoverageGap,
    CoverageOptOutRecord,
    CoverageReport,
    find_coverage_gaps,
)
from .inventory import (
    DependencyConfigIssue,
    validate_dependency_config_against_inventory,
    validate_dependency_configuration,
)
from .lifecycle import (
    CoverageLifecycleProposal,
    CoverageLink,
    LifecycleReport,
    reconcile_coverage_lifecycle,
)
from .rules import (
    CompiledRule,
    CreateTarget,
    DependencyConfig,
    DependencyConfigError,
    OptOutConfig,
    load_dependency_config,
    normalize_dependency_config,
)

__all__ = [
    # Rules
    "CompiledRule",
    "CreateTarget",
    "DependencyConfig",
    "DependencyConfigError",
    "OptOutConfig",
    "load_dependency_config",
    "normalize_dependency_config",
    # Engine
    "CoverageFulfillment",
    "CoverageGap",
    "CoverageOptOutRecord",
    "CoverageReport",
    "find_coverage_gaps",
    # Lifecycle
    "CoverageLifecycleProposal",
    "CoverageLink",
    "LifecycleReport",
    "reconcile_coverage_lifecycle",
    # Inventory
    "DependencyConfigIssue",
    "validate_dependency_config_against_inventory",
    "validate_dependency_configuration",
]
