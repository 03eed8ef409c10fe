"""
Report writers: navigation monitoring HTML, Printbox batch JSON/HTML and
cart checkout JSON.

HTML is rendered from the jinja2 templates in `suite/templates/`.
"""

from __future__ import annotations

import json
import time
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from shared.logging import get_logger
from suite.results import (
    BatchInfo,
    CartCheckoutTestResult,
    LinkValidationResult,
    PrintboxTestSummary,
    TestSummary,
)

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def success_rate_class(rate: float) -> str:
    if rate >= 95:
        return "success"
    if rate >= 90:
        return "warning"
    return "failure"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["rate_class"] = success_rate_class
    return env


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_html_summary(summaries: Sequence[TestSummary], output_path: str | Path) -> Path:
    """Render the combined navigation monitoring report for every environment."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    html = _environment().get_template("navigation_report.html.j2").render(
        summaries=summaries,
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
    )
    path.write_text(html, encoding="utf-8")
    logger.info("navigation_report_saved", path=str(path), environments=len(summaries))
    return path


def generate_printbox_summary(
    results: Sequence[LinkValidationResult],
    batch_start: int,
    duration: int,
    batch_size: int | None = None,
) -> PrintboxTestSummary:
    total = len(results)
    passed = sum(1 for r in results if r.success)
    categories = Counter(r.error.type for r in results if not r.success and r.error)
    return PrintboxTestSummary(
        total_tested=total,
        total_passed=passed,
        total_failed=total - passed,
        success_rate=round(passed / total * 100, 2) if total else 0.0,
        batch_info=BatchInfo(
            start=batch_start,
            end=batch_start + total - 1,
            size=batch_size if batch_size is not None else total,
        ),
        duration=duration,
        timestamp=datetime.now(timezone.utc).isoformat(),
        error_categories=dict(categories),
    )


def _printbox_filename(prefix: str, summary: PrintboxTestSummary, suffix: str) -> str:
    return f"{prefix}-{summary.batch_info.start}-{summary.batch_info.end}-{_now_ms()}.{suffix}"


def save_printbox_results_json(
    results: Sequence[LinkValidationResult],
    summary: PrintboxTestSummary,
    output_dir: str | Path,
) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _printbox_filename("printbox-results", summary, "json")
    payload = {
        "summary": summary.to_json_dict(),
        "results": [r.to_json_dict() for r in results],
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("printbox_results_saved", path=str(path))
    return path


def generate_printbox_html_report(
    results: Sequence[LinkValidationResult],
    summary: PrintboxTestSummary,
    output_dir: str | Path,
) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _printbox_filename("printbox-report", summary, "html")
    error_categories = sorted(summary.error_categories.items(), key=lambda item: item[1], reverse=True)
    html = _environment().get_template("printbox_report.html.j2").render(
        summary=summary,
        error_categories=error_categories,
        failed=[r for r in results if not r.success],
        passed=[r for r in results if r.success],
    )
    path.write_text(html, encoding="utf-8")
    logger.info("printbox_report_saved", path=str(path))
    return path


def save_cart_checkout_results(
    region: str,
    results: Sequence[CartCheckoutTestResult],
    output_dir: str | Path,
) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"checkout-results-{region}-{_now_ms()}.json"
    passed = sum(1 for r in results if r.success)
    payload = {
        "region": region,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "totalTests": len(results),
        "passed": passed,
        "failed": len(results) - passed,
        "results": [r.to_json_dict() for r in results],
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("cart_checkout_results_saved", path=str(path), total=len(results))
    return path
