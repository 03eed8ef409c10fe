"""
Result records written by the browser flows and the navigation monitor.

Everything persisted to disk uses camelCase keys (the dashboard front-end and
the historical report files read them that way), so models declare
snake_case fields with a camelCase alias generator and are dumped with
`by_alias=True`.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.logging import get_logger

logger = get_logger(__name__)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# --- Navigation monitor ---


class FailedRequest(CamelModel):
    url: str
    status: int
    status_text: str = ""
    timestamp: str


class ConsoleMessage(CamelModel):
    type: str
    text: str
    timestamp: str


class Viewport(CamelModel):
    width: int = 1280
    height: int = 720


class NavigationTestResult(CamelModel):
    link_name: str
    link_url: str
    timestamp: str
    status: Literal["pass", "fail"]
    load_time: int
    screenshot_path: Optional[str] = None
    content_loaded: bool
    failed_requests: list[FailedRequest] = Field(default_factory=list)
    console_errors: list[ConsoleMessage] = Field(default_factory=list)
    page_errors: list[str] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=Viewport)
    page_height: int = 0
    error_details: Optional[str] = None


class TestSummary(CamelModel):
    __test__ = False

    environment: str
    test_start_time: str
    test_end_time: str
    test_duration: str
    total_clicks: int
    successful_loads: int
    failed_loads: int
    success_rate: str
    failures: list[NavigationTestResult] = Field(default_factory=list)
    all_results: list[NavigationTestResult] = Field(default_factory=list)

    @property
    def success_rate_value(self) -> float:
        return float(self.success_rate.rstrip("%") or 0)


def format_duration(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60}m {total % 60}s"


def format_success_rate(passed: int, total: int) -> str:
    rate = (passed / total * 100) if total else 0.0
    return f"{rate:.1f}%"


def generate_summary(
    environment: str,
    start: datetime,
    end: datetime,
    results: list[NavigationTestResult],
) -> TestSummary:
    failures = [r for r in results if r.status == "fail"]
    passed = len(results) - len(failures)
    return TestSummary(
        environment=environment,
        test_start_time=start.isoformat(),
        test_end_time=end.isoformat(),
        test_duration=format_duration((end - start).total_seconds()),
        total_clicks=len(results),
        successful_loads=passed,
        failed_loads=len(failures),
        success_rate=format_success_rate(passed, len(results)),
        failures=failures,
        all_results=list(results),
    )


def save_summary_report(summary: TestSummary, report_dir: str | Path) -> Path:
    """Write `summary.json` into the environment's report directory."""
    path = Path(report_dir)
    path.mkdir(parents=True, exist_ok=True)
    target = path / "summary.json"
    target.write_text(json.dumps(summary.to_json_dict(), indent=2), encoding="utf-8")
    logger.info("summary_report_saved", path=str(target), total_clicks=summary.total_clicks)
    return target


def load_summary_report(path: str | Path) -> TestSummary:
    return TestSummary.model_validate_json(Path(path).read_text(encoding="utf-8"))


# --- Checkpointed flows ---


class Checkpoints(CamelModel):
    """Ordered boolean checkpoints; field order is flow order."""

    def first_unset(self) -> Optional[str]:
        for name in type(self).model_fields:
            if not getattr(self, name):
                return name
        return None

    def last_passed(self) -> Optional[str]:
        passed = None
        for name in type(self).model_fields:
            if getattr(self, name):
                passed = name
            else:
                break
        return passed

    def all_passed(self) -> bool:
        return self.first_unset() is None

    @classmethod
    def key_of(cls, name: str) -> str:
        """The camelCase key a checkpoint is persisted under."""
        return cls.model_fields[name].alias or name


class PrintboxCheckpoints(Checkpoints):
    product_page_loaded: bool = False
    theme_page_loaded: bool = False
    login_completed: bool = False
    designer_page_loaded: bool = False
    error_popup_absent: bool = False
    iframe_loaded: bool = False
    designer_ui_visible: bool = Field(default=False, alias="designerUIVisible")


class PhotoBooksCheckpoints(Checkpoints):
    category_page_loaded: bool = False
    category_selected: bool = False
    product_page_loaded: bool = False
    theme_page_loaded: bool = False
    designer_page_loaded: bool = False
    error_popup_absent: bool = False


class CartCheckoutCheckpoints(Checkpoints):
    product_page_loaded: bool = False
    added_to_cart: bool = False
    cart_page_loaded: bool = False
    checkout_page_loaded: bool = False
    shipping_form_filled: bool = False
    shipping_method_selected: bool = False
    stopped_before_payment: bool = False


class ErrorInfo(CamelModel):
    type: str
    message: str
    checkpoint: str

    def describe(self) -> str:
        return f"{self.type} at {self.checkpoint}: {self.message}"


class LinkValidationResult(CamelModel):
    url: str
    index: int
    success: bool = False
    timestamp: str
    duration: int = 0
    error: Optional[ErrorInfo] = None
    error_text: Optional[str] = None
    final_url: Optional[str] = None
    screenshot_path: Optional[str] = None
    console_errors: list[str] = Field(default_factory=list)


class PrintboxTestResult(LinkValidationResult):
    __test__ = False

    checkpoints: PrintboxCheckpoints = Field(default_factory=PrintboxCheckpoints)


class PhotoBooksTestResult(LinkValidationResult):
    __test__ = False

    checkpoints: PhotoBooksCheckpoints = Field(default_factory=PhotoBooksCheckpoints)


class CartCheckoutTestResult(CamelModel):
    __test__ = False

    product_url: str
    product_name: str
    region: str
    index: int
    success: bool = False
    timestamp: str
    duration: int = 0
    checkpoints: CartCheckoutCheckpoints = Field(default_factory=CartCheckoutCheckpoints)
    error: Optional[ErrorInfo] = None
    screenshot_path: Optional[str] = None


class BatchInfo(CamelModel):
    start: int
    end: int
    size: int


class PrintboxTestSummary(CamelModel):
    __test__ = False

    total_tested: int
    total_passed: int
    total_failed: int
    success_rate: float
    batch_info: BatchInfo
    duration: int
    timestamp: str
    error_categories: dict[str, int] = Field(default_factory=dict)
