"""
Parser for the JUnit XML report pytest writes with `--junitxml`.

Both the jobs dashboard (per region/environment run) and the Teams notifier
read test outcomes through this module. The report is produced with
`-o junit_family=xunit1` so each testcase carries its `file` attribute and
any `screenshot` properties recorded by the browser tests.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

CaseStatus = Literal["passed", "failed", "skipped"]


@dataclass
class JunitCase:
    title: str
    classname: str
    file: Optional[str]
    status: CaseStatus
    duration_ms: int
    error: Optional[str] = None
    screenshots: list[str] = field(default_factory=list)


@dataclass
class JunitReport:
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    cases: list[JunitCase] = field(default_factory=list)


def _case_status(testcase: ET.Element) -> tuple[CaseStatus, Optional[str]]:
    for tag in ("failure", "error"):
        node = testcase.find(tag)
        if node is not None:
            message = node.get("message") or (node.text or "").strip() or "Test failed"
            return "failed", message
    if testcase.find("skipped") is not None:
        return "skipped", None
    return "passed", None


def _case_screenshots(testcase: ET.Element) -> list[str]:
    shots: list[str] = []
    for prop in testcase.iter("property"):
        if prop.get("name") == "screenshot" and prop.get("value"):
            shots.append(prop.get("value", ""))
    return shots


def parse_junit_xml(content: str) -> JunitReport:
    """
    Parse JUnit XML text into a JunitReport.

    Raises ET.ParseError on malformed XML and ValueError when the document
    holds no testsuite element.
    """
    root = ET.fromstring(content)
    suites = [root] if root.tag == "testsuite" else list(root.iter("testsuite"))
    if not suites:
        raise ValueError("JUnit report contains no testsuite element")

    report = JunitReport()
    for suite in suites:
        report.duration_ms += int(float(suite.get("time", "0") or 0) * 1000)
        for testcase in suite.iter("testcase"):
            status, error = _case_status(testcase)
            case = JunitCase(
                title=testcase.get("name", ""),
                classname=testcase.get("classname", ""),
                file=testcase.get("file"),
                status=status,
                duration_ms=int(float(testcase.get("time", "0") or 0) * 1000),
                error=error,
                screenshots=_case_screenshots(testcase),
            )
            report.cases.append(case)
            report.total += 1
            if status == "passed":
                report.passed += 1
            elif status == "failed":
                report.failed += 1
            else:
                report.skipped += 1
    return report


def parse_junit_file(path: str | Path) -> JunitReport:
    """Read and parse a JUnit XML file. Raises OSError if it cannot be read."""
    return parse_junit_xml(Path(path).read_text(encoding="utf-8"))
