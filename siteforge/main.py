#!/usr/bin/env python3
"""
Command-line entry point.

Usage:
    siteforge <settings.yaml> [--json] [--dry-run]

Loads the settings, validates them, compiles the static-site plan and
prints it. With --dry-run the plan is also applied to the in-memory
backend and the resulting handles are printed.
"""

import logging
import os
import sys

from siteforge.backend import DryRunBackend, apply_plan
from siteforge.compiler import compile_plan
from siteforge.config_loader import load_configuration
from siteforge.errors import ConfigError, SiteForgeError
from siteforge.plan_emitter import render_json, render_yaml

USAGE = "usage: siteforge <settings.yaml> [--json] [--dry-run]"


def print_violations(error: ConfigError):
    """Print every configuration violation, one per line."""
    print("Invalid configuration:")
    for violation in error.violations:
        print(f"  - {violation.field}: {violation.reason}")


def main(argv=None) -> int:
    """
    Run the compiler.

    Flow:
    1. Load settings (file + SITEFORGE_* environment overrides)
    2. Validate, declare, resolve and emit the plan
    3. Print the plan, optionally applying it to the dry-run backend
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    flags = {arg for arg in argv if arg.startswith("--")}
    paths = [arg for arg in argv if not arg.startswith("--")]

    unknown = flags - {"--json", "--dry-run"}
    if len(paths) != 1 or unknown:
        print(USAGE)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if os.getenv("SITEFORGE_DEBUG") else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_configuration(paths[0])
        plan = compile_plan(config)
    except ConfigError as e:
        print_violations(e)
        return 1
    except SiteForgeError as e:
        print(f"Error: {e.message}")
        return 1

    print(render_json(plan) if "--json" in flags else render_yaml(plan))

    if "--dry-run" in flags:
        backend = DryRunBackend(account=config.account, region=config.region)
        try:
            handles = apply_plan(plan, backend)
        except SiteForgeError as e:
            print(f"Error: {e.message}")
            return 1

        print("Dry run:")
        for handle in handles:
            print(f"  ✓ {handle.kind.value:<15} {handle.id:<28} {handle.physical_id}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
