"""
Microsoft Teams notification helper for E2E run results.

Builds Office 365 MessageCards from a parsed JUnit report and posts them to
an incoming-webhook URL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import requests

from shared.junit import JunitReport
from shared.logging import get_logger

logger = get_logger(__name__)

COLOR_PASSED = "00FF00"
COLOR_FAILED = "FF0000"
COLOR_MISSING = "FFA500"
MAX_ERROR_CHARS = 100


@dataclass
class RunStats:
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    failures: list[dict] = field(default_factory=list)


def parse_results(report: JunitReport) -> RunStats:
    """Collapse a JUnit report into counters plus `{name, error}` failure entries."""
    stats = RunStats(
        total=report.total,
        passed=report.passed,
        failed=report.failed,
        skipped=report.skipped,
        duration_ms=report.duration_ms,
    )
    for case in report.cases:
        if case.status == "failed":
            stats.failures.append(
                {
                    "name": f"{case.classname} > {case.title}",
                    "error": case.error or "Unknown error",
                }
            )
    return stats


def build_message_card(stats: RunStats, run_url: Optional[str] = None) -> dict:
    all_passed = stats.failed == 0
    title = "All E2E Tests Passed" if all_passed else "E2E Tests Failed"
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    sections: list[dict] = [
        {
            "activityTitle": title,
            "facts": [
                {"name": "Total", "value": str(stats.total)},
                {"name": "Passed", "value": str(stats.passed)},
                {"name": "Failed", "value": str(stats.failed)},
                {"name": "Duration", "value": f"{stats.duration_ms / 1000:.1f}s"},
                {"name": "Time", "value": now},
            ],
            "markdown": True,
        }
    ]

    if stats.failures:
        lines = []
        for failure in stats.failures:
            error = failure["error"]
            if len(error) > MAX_ERROR_CHARS:
                error = error[:MAX_ERROR_CHARS] + "..."
            lines.append(f"- **{failure['name']}**: {error}")
        sections.append({"activityTitle": "Failures", "text": "\n".join(lines)})

    card: dict = {
        "@type": "MessageCard",
        "@context": "http://schema.org/extensions",
        "themeColor": COLOR_PASSED if all_passed else COLOR_FAILED,
        "summary": f"E2E Tests: {stats.passed}/{stats.total} Passed",
        "sections": sections,
    }
    if run_url:
        card["potentialAction"] = [
            {
                "@type": "OpenUri",
                "name": "View Run",
                "targets": [{"os": "default", "uri": run_url}],
            }
        ]
    return card


def build_missing_results_card(results_path: str, run_url: Optional[str] = None) -> dict:
    card: dict = {
        "@type": "MessageCard",
        "@context": "http://schema.org/extensions",
        "themeColor": COLOR_MISSING,
        "summary": "E2E Test Results Not Available",
        "sections": [
            {
                "activityTitle": "E2E Test Results Not Available",
                "text": f"No results file found at `{results_path}`. The run may have crashed before reporting.",
            }
        ],
    }
    if run_url:
        card["potentialAction"] = [
            {
                "@type": "OpenUri",
                "name": "View Run",
                "targets": [{"os": "default", "uri": run_url}],
            }
        ]
    return card


def should_notify(stats: RunStats, notify_always: bool) -> bool:
    return notify_always or stats.failed > 0


def send_teams_card(webhook_url: str, card: dict) -> bool:
    """
    Post a MessageCard to a Teams incoming webhook.

    Returns True if successful, False otherwise.
    """
    if not webhook_url:
        return False

    try:
        response = requests.post(webhook_url, json=card, timeout=10)
        response.raise_for_status()
        logger.info("teams_notification_sent", summary=card.get("summary"))
        return True
    except Exception as e:
        logger.warning("teams_notification_failed", error=str(e), error_type=type(e).__name__)
        return False
