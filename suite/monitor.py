"""
Timed navigation monitor.

Repeatedly opens top-level category pages for a fixed duration and records
whether each one rendered real content. Progress is written after every click
so the dashboard can follow along, and a stop signal written by the dashboard
ends the run after the current click.
"""

from __future__ import annotations

import asyncio
import random
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Literal, Optional, Sequence

from playwright.async_api import Page

from shared.logging import get_logger
from suite.navigation_links import TOP_LEVEL_NAVIGATION_LINKS, NavigationLink
from suite.page_monitoring import (
    ContentCheck,
    PageState,
    capture_screenshot,
    is_content_loaded,
    reset_page_state,
    save_detailed_log,
    setup_page_monitoring,
)
from suite.pages.navigation import NavigationPage
from suite.popups import dismiss_popups
from suite.progress import ProgressReporter, RecentFailure, default_progress_dir
from suite.results import (
    NavigationTestResult,
    TestSummary,
    generate_summary,
    save_summary_report,
)

logger = get_logger(__name__)

Schedule = Literal["random", "shuffle"]

MIN_DELAY_S = 0.2
MAX_DELAY_S = 0.5


def environment_dir_name(base_url: str) -> str:
    """`https://qa.printerpix.co.uk` -> `qa-printerpix-co-uk`."""
    return re.sub(r"^https?://", "", base_url).rstrip("/").replace(".", "-")


class LinkPicker:
    """
    `random` samples uniformly with replacement; `shuffle` walks a shuffled
    queue of every link and reshuffles when it runs out.
    """

    def __init__(
        self,
        links: Sequence[NavigationLink],
        schedule: Schedule = "random",
        rng: Optional[random.Random] = None,
    ) -> None:
        if not links:
            raise ValueError("At least one navigation link is required")
        if schedule not in ("random", "shuffle"):
            raise ValueError(f"Unknown link schedule: {schedule}. Must be 'random' or 'shuffle'.")
        self.links = list(links)
        self.schedule = schedule
        self.rng = rng or random.Random()
        self._queue: list[NavigationLink] = []

    def next(self) -> NavigationLink:
        if self.schedule == "random":
            return self.rng.choice(self.links)
        if not self._queue:
            self._queue = list(self.links)
            self.rng.shuffle(self._queue)
        return self._queue.pop()


class NavigationMonitor:
    def __init__(
        self,
        page: Page,
        environment_name: str,
        base_url: str,
        duration_minutes: float,
        reporter: Optional[ProgressReporter] = None,
        report_dir: Optional[str | Path] = None,
        schedule: Schedule = "random",
        links: Sequence[NavigationLink] = TOP_LEVEL_NAVIGATION_LINKS,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.page = page
        self.environment_name = environment_name
        self.base_url = base_url.rstrip("/")
        self.duration_minutes = duration_minutes
        self.reporter = reporter or ProgressReporter()
        base = Path(report_dir) if report_dir is not None else default_progress_dir()
        self.report_dir = base / environment_dir_name(self.base_url)
        self.screenshots_dir = self.report_dir / "screenshots"
        self.logs_dir = self.report_dir / "logs"
        self.rng = rng or random.Random()
        self.picker = LinkPicker(links, schedule, self.rng)
        self.clock = clock
        self.navigation_page = NavigationPage(page)
        self.page_state = PageState()
        self.results: list[NavigationTestResult] = []
        self.stopped = False

    async def check_link(self, link: NavigationLink, click_index: int) -> NavigationTestResult:
        """Open one link, validate its content, and record artifacts on failure."""
        started = self.clock()
        timestamp = datetime.now(timezone.utc).isoformat()
        reset_page_state(self.page_state)
        screenshot_path: Optional[str] = None

        try:
            await self.navigation_page.navigate_to_link(link, self.base_url)
            check = await is_content_loaded(self.page)
            if not check.loaded:
                screenshot_path = await capture_screenshot(self.page, link.name, self.screenshots_dir)
        except Exception as e:
            check = ContentCheck(False, f"Navigation error: {e}")
            try:
                screenshot_path = await capture_screenshot(self.page, link.name, self.screenshots_dir)
            except Exception:
                logger.debug("navigation_error_screenshot_failed", link=link.name)

        load_time = int((self.clock() - started) * 1000)
        result = NavigationTestResult(
            link_name=link.name,
            link_url=link.url,
            timestamp=timestamp,
            status="pass" if check.loaded else "fail",
            load_time=load_time,
            screenshot_path=screenshot_path,
            content_loaded=check.loaded,
            failed_requests=list(self.page_state.failed_requests),
            console_errors=list(self.page_state.console_errors),
            page_errors=list(self.page_state.page_errors),
            viewport=await self.navigation_page.get_viewport(),
            page_height=await self.navigation_page.get_page_height(),
            error_details=check.error_details,
        )

        if result.status == "fail":
            save_detailed_log(result, self.logs_dir, click_index)
            logger.warning(
                "navigation_check_failed",
                link=link.name,
                click=click_index,
                error=result.error_details,
            )
        else:
            logger.info("navigation_check_passed", link=link.name, click=click_index, load_time=load_time)
        return result

    def _record_progress(self, link: NavigationLink, result: NavigationTestResult) -> None:
        successful = sum(1 for r in self.results if r.status == "pass")
        self.reporter.update_progress(
            total_clicks=len(self.results),
            successful_clicks=successful,
            failed_clicks=len(self.results) - successful,
            current_link=link.name,
        )
        if result.status == "fail" and result.screenshot_path:
            self.reporter.add_failure(
                RecentFailure(
                    link_name=link.name,
                    timestamp=result.timestamp,
                    screenshot_path=result.screenshot_path,
                    error_details=result.error_details or "Unknown error",
                )
            )

    async def run(self) -> TestSummary:
        self.reporter.init_progress_file(self.base_url, self.duration_minutes)
        setup_page_monitoring(self.page, self.page_state)

        logger.info(
            "navigation_monitor_started",
            environment=self.environment_name,
            base_url=self.base_url,
            duration_minutes=self.duration_minutes,
            schedule=self.picker.schedule,
        )

        await self.navigation_page.go_to_homepage(self.base_url)
        await dismiss_popups(self.page)

        start = datetime.now(timezone.utc)
        deadline = self.clock() + self.duration_minutes * 60

        while self.clock() < deadline:
            link = self.picker.next()
            result = await self.check_link(link, len(self.results) + 1)
            self.results.append(result)
            self._record_progress(link, result)

            if self.reporter.should_stop_test():
                logger.info("navigation_monitor_stop_requested", clicks=len(self.results))
                self.reporter.mark_test_stopped()
                self.stopped = True
                break

            if self.clock() < deadline:
                await asyncio.sleep(self.rng.uniform(MIN_DELAY_S, MAX_DELAY_S))

        summary = generate_summary(self.base_url, start, datetime.now(timezone.utc), self.results)
        save_summary_report(summary, self.report_dir)
        if not self.stopped:
            self.reporter.mark_test_complete()

        logger.info(
            "navigation_monitor_finished",
            environment=self.environment_name,
            total_clicks=summary.total_clicks,
            success_rate=summary.success_rate,
            stopped=self.stopped,
        )
        return summary
