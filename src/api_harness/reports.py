"""
Post-run report generation.

Reads the cucumber-style JSON log written by ``pytest --cucumberjson`` and
derives HTML, JUnit XML, CSV and summary JSON reports from it. Nothing here
touches a live test run; every function is a transform over the JSON file.

Usage:
    api-harness-report [--input reports/cucumber-report.json] [--open]
                       [--theme bootstrap] [--title "My API Tests"] [--multiple]
"""

import argparse
import csv
import json
import os
import platform
import sys
import webbrowser
import xml.etree.ElementTree as ET
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from jinja2 import Environment, PackageLoader, select_autoescape

from api_harness.common.common import ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.log import configure_logging, get_logger

ScenarioStatus = Literal["passed", "failed", "skipped"]

DEFAULT_INPUT = "reports/cucumber-report.json"
DEFAULT_OUTPUT_DIR = "reports"

THEMES: dict[str, dict[str, str]] = {
    "bootstrap": {
        "font": "'Helvetica Neue', Helvetica, Arial, sans-serif",
        "background": "#f8f9fa",
        "header": "#0d6efd",
        "card": "#ffffff",
        "text": "#212529",
    },
    "hierarchy": {
        "font": "Georgia, 'Times New Roman', serif",
        "background": "#fdfdf8",
        "header": "#3d5a80",
        "card": "#ffffff",
        "text": "#293241",
    },
    "foundation": {
        "font": "'Open Sans', Roboto, sans-serif",
        "background": "#fefefe",
        "header": "#1779ba",
        "card": "#f4f8fa",
        "text": "#0a0a0a",
    },
    "simple": {
        "font": "monospace",
        "background": "#ffffff",
        "header": "#333333",
        "card": "#ffffff",
        "text": "#000000",
    },
}

logger = get_logger("Reports")

_jinja = Environment(
    loader=PackageLoader("api_harness", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
)


@dataclass(frozen=True)
class ScenarioResult:
    feature: str
    name: str
    status: ScenarioStatus
    duration_ns: int
    error: str


@dataclass(frozen=True)
class RunStats:
    """
    Aggregate counts for one run.

    :param features: Number of features in the log.
    :param total: Number of scenarios.
    :param passed: Scenarios with every step passed.
    :param failed: Scenarios with at least one failed step.
    :param skipped: Scenarios with no failure but at least one step that did
        not run.
    :param success_rate: ``passed / total`` as a rounded percentage.
    :param duration_ns: Sum of all step durations.
    """

    features: int
    total: int
    passed: int
    failed: int
    skipped: int
    success_rate: int
    duration_ns: int


def load_results(path: str | Path) -> list[dict[str, Any]]:
    """
    Load a cucumber JSON log.

    :raises FileNotFoundError: If the file does not exist.
    :raises ValueError: If the file is not a JSON array of features.
    """
    with open(path, encoding="utf-8") as f:
        features = json.load(f)
    if not isinstance(features, list):
        raise ValueError(f"{path} does not contain a list of features")
    return features


def _scenario_status(steps: list[dict[str, Any]]) -> ScenarioStatus:
    statuses = [step.get("result", {}).get("status") for step in steps]
    if "failed" in statuses:
        return "failed"
    if any(status not in ("passed", None) for status in statuses):
        return "skipped"
    return "passed"


def scenario_results(features: list[dict[str, Any]]) -> list[ScenarioResult]:
    results = []
    for feature in features:
        for scenario in feature.get("elements", []):
            steps = scenario.get("steps", [])
            error = next(
                (
                    step["result"]["error_message"]
                    for step in steps
                    if step.get("result", {}).get("error_message")
                ),
                "",
            )
            results.append(
                ScenarioResult(
                    feature=feature.get("name", ""),
                    name=scenario.get("name", ""),
                    status=_scenario_status(steps),
                    duration_ns=sum(
                        step.get("result", {}).get("duration", 0) or 0
                        for step in steps
                    ),
                    error=error,
                )
            )
    return results


def calculate_stats(features: list[dict[str, Any]]) -> RunStats:
    results = scenario_results(features)
    total = len(results)
    passed = sum(1 for r in results if r.status == "passed")
    failed = sum(1 for r in results if r.status == "failed")
    skipped = sum(1 for r in results if r.status == "skipped")
    return RunStats(
        features=len(features),
        total=total,
        passed=passed,
        failed=failed,
        skipped=skipped,
        success_rate=round(passed / total * 100) if total else 0,
        duration_ns=sum(r.duration_ns for r in results),
    )


def format_duration(nanoseconds: int) -> str:
    """Render a duration as ``ms`` below a second, ``s`` below a minute, else ``m``."""
    milliseconds = nanoseconds / 1_000_000
    if milliseconds < 1000:
        return f"{round(milliseconds)}ms"
    seconds = milliseconds / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f}m"


def _metadata(config: HarnessConfig, stats: RunStats) -> dict[str, str]:
    return {
        "Test Environment": os.getenv("ENVIRONMENT", "test"),
        "Base URL": config.base_url,
        "Platform": platform.platform(),
        "Python Version": platform.python_version(),
        "Executed": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "Features": str(stats.features),
        "Scenarios": (
            f"{stats.total} ({stats.passed} passed, {stats.failed} failed)"
        ),
        "Success Rate": f"{stats.success_rate}%",
        "Duration": format_duration(stats.duration_ns),
    }


def generate_html_report(
    features: list[dict[str, Any]],
    output: Path,
    *,
    title: str,
    theme: str,
    metadata: dict[str, str],
) -> Path:
    """
    Render the HTML report.

    :raises ValueError: If ``theme`` is not one of :data:`THEMES`.
    """
    if theme not in THEMES:
        raise ValueError(
            f"Unknown theme {theme!r}; expected one of {', '.join(sorted(THEMES))}"
        )
    template = _jinja.get_template("report.html.j2")
    html = template.render(
        title=title,
        theme=THEMES[theme],
        stats=calculate_stats(features),
        results=scenario_results(features),
        metadata=metadata,
        format_duration=format_duration,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    logger.info(f"✅ HTML report generated: {output}")
    return output


def generate_junit_report(
    features: list[dict[str, Any]], output: Path, *, title: str
) -> Path:
    stats = calculate_stats(features)
    suites = ET.Element(
        "testsuites",
        name=title,
        tests=str(stats.total),
        failures=str(stats.failed),
        skipped=str(stats.skipped),
        time=f"{stats.duration_ns / 1e9:.3f}",
    )

    results = scenario_results(features)
    for feature in features:
        feature_name = feature.get("name", "")
        feature_results = [r for r in results if r.feature == feature_name]
        suite = ET.SubElement(
            suites,
            "testsuite",
            name=feature_name,
            tests=str(len(feature_results)),
            failures=str(sum(1 for r in feature_results if r.status == "failed")),
            skipped=str(sum(1 for r in feature_results if r.status == "skipped")),
        )
        for result in feature_results:
            case = ET.SubElement(
                suite,
                "testcase",
                name=result.name,
                classname=feature_name,
                time=f"{result.duration_ns / 1e9:.3f}",
            )
            if result.status == "failed":
                failure = ET.SubElement(
                    case, "failure", message=result.error or "Scenario failed"
                )
                failure.text = result.error
            elif result.status == "skipped":
                ET.SubElement(case, "skipped")

    output.parent.mkdir(parents=True, exist_ok=True)
    ET.ElementTree(suites).write(output, encoding="UTF-8", xml_declaration=True)
    logger.info(f"✅ JUnit XML report generated: {output}")
    return output


def generate_csv_report(features: list[dict[str, Any]], output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Feature", "Scenario", "Status", "Duration", "Error"])
        for result in scenario_results(features):
            writer.writerow(
                [
                    result.feature,
                    result.name,
                    result.status.upper(),
                    result.duration_ns / 1_000_000,
                    result.error,
                ]
            )
    logger.info(f"✅ CSV report generated: {output}")
    return output


def generate_summary_report(
    stats: RunStats, output: Path, config: HarnessConfig
) -> Path:
    now = datetime.now(timezone.utc).isoformat()
    summary = {
        "timestamp": now,
        "environment": os.getenv("ENVIRONMENT", "test"),
        "baseUrl": config.base_url,
        **asdict(stats),
        "generatedAt": now,
    }
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    logger.info(f"✅ Summary JSON report generated: {output}")
    return output


def generate_reports(
    input_file: Path,
    output_dir: Path,
    config: HarnessConfig,
    *,
    title: str,
    theme: str,
    multiple: bool,
) -> tuple[RunStats, list[Path]]:
    """
    Generate every requested report for one cucumber JSON log.

    :returns: The run statistics and the paths written.
    :raises FileNotFoundError: If ``input_file`` does not exist.
    """
    features = load_results(input_file)
    stats = calculate_stats(features)

    logger.bind(
        features=stats.features,
        scenarios=stats.total,
        passed=stats.passed,
        failed=stats.failed,
        skipped=stats.skipped,
    ).info(f"📈 Success rate: {stats.success_rate}%")

    written: list[Path] = []
    if config.generate_html_report:
        written.append(
            generate_html_report(
                features,
                output_dir / "cucumber-report.html",
                title=title,
                theme=theme,
                metadata=_metadata(config, stats),
            )
        )
    if multiple:
        written += [
            generate_junit_report(
                features, output_dir / "junit-report.xml", title=title
            ),
            generate_summary_report(stats, output_dir / "summary.json", config),
            generate_csv_report(features, output_dir / "results.csv"),
        ]
    return stats, written


def parse_args(args: list[str] | None, config: HarnessConfig) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate test reports from a cucumber JSON result log."
    )
    parser.add_argument(
        "--input",
        default=DEFAULT_INPUT,
        help=f"Cucumber JSON log to read (default: {DEFAULT_INPUT})",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory reports are written to (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--theme",
        default=config.report_theme,
        choices=sorted(THEMES),
        help="HTML report theme (default: REPORT_THEME or bootstrap)",
    )
    parser.add_argument(
        "--title",
        default=config.report_title,
        help="Report title (default: REPORT_TITLE)",
    )
    parser.add_argument(
        "-o",
        "--open",
        action="store_true",
        help="Open the HTML report in a browser after generation",
    )
    parser.add_argument(
        "--multiple",
        action="store_true",
        default=os.getenv("GENERATE_MULTIPLE_REPORTS", "false").lower() == "true",
        help="Also write JUnit XML, summary JSON and CSV reports",
    )
    return parser.parse_args(args)


def main(argv: list[str] | None = None) -> int:
    try:
        config = HarnessConfig.from_env()
    except ConfigurationError as err:
        logger.error(f"❌ {err}")
        return 2
    configure_logging(config)
    args = parse_args(argv, config)

    input_file = Path(args.input)
    if not input_file.exists():
        logger.error(f"❌ JSON report not found: {input_file}")
        logger.warning("💡 Run tests first to generate the JSON report")
        return 1

    logger.info(f"📊 Generating test report from {input_file} ({args.theme} theme)")
    try:
        _, written = generate_reports(
            input_file,
            Path(args.output_dir),
            config,
            title=args.title,
            theme=args.theme,
            multiple=args.multiple,
        )
    except (ValueError, OSError) as err:
        logger.error(f"❌ Failed to generate report: {err}")
        return 1

    html_reports = [path for path in written if path.suffix == ".html"]
    if args.open and html_reports:
        report_uri = html_reports[0].resolve().as_uri()
        logger.info(f"🌐 Opening report in browser: {report_uri}")
        if not webbrowser.open(report_uri):
            logger.warning(f"⚠️ Could not open browser; open manually: {report_uri}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
