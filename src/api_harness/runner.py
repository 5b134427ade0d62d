"""
Run the acceptance suite with a named profile.

Usage:
    api-harness-run [--profile smoke] [--stub] [-- extra pytest args]

A profile bundles the tag filter, worker count, rerun count, fail-fast and
output options passed to pytest. ``TAGS`` narrows any profile further using
cucumber-style tag expressions (``"@smoke and not @slow"``).
"""

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
import yaml

from api_harness.common.common import ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.log import configure_logging, get_logger
from api_harness.reports import calculate_stats, format_duration, load_results

PROFILES_PATH = Path(__file__).parent / "profiles.yaml"
ACCEPTANCE_TESTS = "tests/acceptance"
ALLURE_DIR = "reports/allure-results"

logger = get_logger("Runner")


@dataclass(frozen=True)
class Profile:
    name: str
    markers: str = ""
    parallel: int | None = None
    reruns: int | None = None
    fail_fast: bool = False
    report: str = "reports/cucumber-report.json"
    allure: bool = False
    verbose: bool = False
    log_level: str | None = None


def load_profiles(path: Path = PROFILES_PATH) -> dict[str, Profile]:
    with open(path, encoding="utf-8") as f:
        raw: dict[str, dict[str, Any]] = yaml.safe_load(f)
    return {name: Profile(name=name, **values) for name, values in raw.items()}


def tags_to_markers(expression: str) -> str:
    """Turn ``"@smoke and not @slow"`` into ``"smoke and not slow"``."""
    return " ".join(expression.replace("@", "").split())


def combine_markers(*expressions: str) -> str:
    parts = [expr for expr in expressions if expr]
    if len(parts) <= 1:
        return parts[0] if parts else ""
    return " and ".join(f"({part})" for part in parts)


def build_pytest_args(
    profile: Profile, config: HarnessConfig, extra: list[str] | None = None
) -> list[str]:
    """Translate a profile and the run configuration into pytest arguments."""
    args = [ACCEPTANCE_TESTS]

    markers = combine_markers(profile.markers, tags_to_markers(config.tags))
    if markers:
        args += ["-m", markers]

    parallel = profile.parallel if profile.parallel is not None else config.parallel
    args += ["-n", str(parallel) if parallel > 1 else "0"]

    reruns = profile.reruns if profile.reruns is not None else config.retry_count
    if reruns > 0:
        args += ["--reruns", str(reruns)]

    if profile.fail_fast:
        args.append("-x")
    if config.generate_json_report:
        args.append(f"--cucumberjson={profile.report}")
    if profile.allure:
        args.append(f"--alluredir={ALLURE_DIR}")
    if profile.verbose:
        args.append("-vv")

    return args + list(extra or [])


def log_run_summary(report: Path) -> None:
    if not report.exists():
        logger.warning(f"⚠️ No result log found at {report}")
        return
    stats = calculate_stats(load_results(report))
    logger.info(
        f"📊 {stats.total} scenarios: {stats.passed} passed, {stats.failed} failed, "
        f"{stats.skipped} skipped ({stats.success_rate}%) "
        f"in {format_duration(stats.duration_ns)}"
    )


def parse_args(args: list[str] | None, profiles: dict[str, Profile]):
    parser = argparse.ArgumentParser(
        description="Run the JSONPlaceholder acceptance suite.",
        epilog="Unrecognised arguments are passed through to pytest.",
    )
    parser.add_argument(
        "--profile",
        default="default",
        choices=sorted(profiles),
        help="Run profile (default: default)",
    )
    parser.add_argument(
        "--stub",
        action="store_true",
        help="Serve requests from the in-memory stub instead of BASE_URL",
    )
    return parser.parse_known_args(args)


def main(argv: list[str] | None = None) -> int:
    profiles = load_profiles()
    args, extra = parse_args(argv, profiles)
    profile = profiles[args.profile]

    if args.stub:
        os.environ["USE_STUB"] = "true"
    os.environ.setdefault("USE_STUB", "false")
    if profile.log_level:
        os.environ["LOG_LEVEL"] = profile.log_level

    try:
        config = HarnessConfig.from_env()
        configure_logging(config)
        config.validate()
    except ConfigurationError as err:
        logger.error(f"❌ {err}")
        return 2

    pytest_args = build_pytest_args(profile, config, extra)
    Path(profile.report).parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"🚀 Running profile '{profile.name}': pytest {' '.join(pytest_args)}")
    exit_code = int(pytest.main(pytest_args))

    if config.generate_json_report:
        log_run_summary(Path(profile.report))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
