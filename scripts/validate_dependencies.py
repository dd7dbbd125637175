#!/usr/bin/env python3
"""
Validate dependency (coverage) rules against the calendar inventory.

Usage:
    python scripts/validate_dependencies.py --inventory inventory.json [--config dependencies.json]

The inventory file maps account label -> list of calendar ids/names:
    {"personal": ["Family", "primary"], "work": ["Team"]}

Exit 0 when valid, 1 on any issue (invalid pattern, unknown calendar/account).
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from timebalance import paths  # noqa: E402
from timebalance.coverage import (  # noqa: E402
    DependencyConfigError,
    load_dependency_config,
    validate_dependency_configuration,
)
from timebalance.observability import AnalysisContext, configure_logging  # noqa: E402

logger = logging.getLogger("validate_dependencies")


def load_inventory(path: Path) -> dict[str, list[str]]:
    data = paths.read_config_file(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Inventory {path} must map account -> calendars")
    return {str(account): [str(c) for c in calendars or []] for account, calendars in data.items()}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate dependency configuration")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Dependency rules file (default: $TIMEBALANCE_HOME/config/dependencies.json)",
    )
    parser.add_argument(
        "--inventory",
        type=Path,
        required=True,
        help="JSON or YAML (.yaml/.yml) file mapping account label -> calendar ids/names",
    )
    args = parser.parse_args(argv)

    configure_logging(json_format=False)

    config_path = args.config or paths.dependencies_path()
    try:
        with AnalysisContext("validate-dependencies"):
            inventory = load_inventory(args.inventory)
            config = load_dependency_config(config_path)
            validate_dependency_configuration(config, inventory)
            logger.info(
                "Dependency configuration valid",
                extra={"config": str(config_path), "rules": len(config.rules)},
            )
    except (DependencyConfigError, OSError, ValueError, yaml.YAMLError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print("Dependency configuration is valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
