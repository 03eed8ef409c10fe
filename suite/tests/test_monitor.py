"""
Unit tests for the timed navigation monitor.

Runs the loop against a mocked page with a fake clock; content checks are
patched so each click's outcome is scripted.
"""

from __future__ import annotations

import itertools
import json
import random
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from suite.monitor import LinkPicker, NavigationMonitor, environment_dir_name
from suite.navigation_links import TOP_LEVEL_NAVIGATION_LINKS
from suite.page_monitoring import ContentCheck
from suite.progress import ProgressReporter


def test_environment_dir_name():
    assert environment_dir_name("https://qa.printerpix.co.uk/") == "qa-printerpix-co-uk"
    assert environment_dir_name("http://localhost:3000") == "localhost:3000"


def test_shuffle_visits_every_link_per_cycle():
    picker = LinkPicker(TOP_LEVEL_NAVIGATION_LINKS, "shuffle", random.Random(1))
    n = len(TOP_LEVEL_NAVIGATION_LINKS)
    first = [picker.next() for _ in range(n)]
    second = [picker.next() for _ in range(n)]
    assert set(first) == set(TOP_LEVEL_NAVIGATION_LINKS)
    assert set(second) == set(TOP_LEVEL_NAVIGATION_LINKS)


def test_random_picks_from_links():
    picker = LinkPicker(TOP_LEVEL_NAVIGATION_LINKS, "random", random.Random(2))
    assert all(picker.next() in TOP_LEVEL_NAVIGATION_LINKS for _ in range(20))


def test_picker_validation():
    with pytest.raises(ValueError):
        LinkPicker([], "random")
    with pytest.raises(ValueError, match="Unknown link schedule"):
        LinkPicker(TOP_LEVEL_NAVIGATION_LINKS, "round-robin")


def _page() -> MagicMock:
    page = MagicMock()
    page.url = "https://qa.printerpix.co.uk/"
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value=2400)
    page.screenshot = AsyncMock()
    page.viewport_size = {"width": 1280, "height": 720}
    return page


def _clock(step: float = 1.0):
    counter = itertools.count()
    return lambda: next(counter) * step


@pytest.fixture
def patched_io():
    with patch("suite.monitor.asyncio.sleep", new_callable=AsyncMock), patch(
        "suite.pages.navigation.asyncio.sleep", new_callable=AsyncMock
    ), patch("suite.monitor.dismiss_popups", new_callable=AsyncMock):
        yield


def _monitor(tmp_path, reporter, duration=1.0, step=1.0) -> NavigationMonitor:
    return NavigationMonitor(
        _page(),
        "QA UK",
        "https://qa.printerpix.co.uk",
        duration,
        reporter=reporter,
        report_dir=tmp_path / "reports",
        rng=random.Random(3),
        clock=_clock(step),
    )


@pytest.mark.asyncio
async def test_run_until_deadline(tmp_path, patched_io):
    reporter = ProgressReporter(tmp_path)
    monitor = _monitor(tmp_path, reporter, duration=0.5, step=5.0)

    with patch("suite.monitor.is_content_loaded", AsyncMock(return_value=ContentCheck(True))):
        summary = await monitor.run()

    assert summary.total_clicks == len(monitor.results) > 0
    assert summary.failed_loads == 0
    assert not monitor.stopped
    progress = reporter.get_current_progress()
    assert progress.status == "completed"
    assert progress.total_clicks == summary.total_clicks
    assert (tmp_path / "reports" / "qa-printerpix-co-uk" / "summary.json").exists()


@pytest.mark.asyncio
async def test_stop_signal_ends_run_after_current_click(tmp_path, patched_io):
    reporter = ProgressReporter(tmp_path)
    monitor = _monitor(tmp_path, reporter, duration=60)
    checks = AsyncMock(side_effect=[ContentCheck(True), ContentCheck(False, "Page too short")])

    with patch("suite.monitor.is_content_loaded", checks), patch.object(
        reporter, "should_stop_test", side_effect=[False, True]
    ):
        summary = await monitor.run()

    assert monitor.stopped
    assert summary.total_clicks == 2
    assert summary.failed_loads == 1
    progress = reporter.get_current_progress()
    assert progress.status == "stopped"
    assert progress.failed_clicks == 1
    assert progress.recent_failures[0].error_details == "Page too short"

    logs = list((tmp_path / "reports" / "qa-printerpix-co-uk" / "logs").glob("*.json"))
    assert len(logs) == 1
    assert logs[0].name.startswith("00002-")
    assert json.loads(logs[0].read_text())["status"] == "fail"


@pytest.mark.asyncio
async def test_navigation_error_recorded_as_failure(tmp_path, patched_io):
    reporter = ProgressReporter(tmp_path)
    monitor = _monitor(tmp_path, reporter)
    monitor.page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_ABORTED"))

    result = await monitor.check_link(TOP_LEVEL_NAVIGATION_LINKS[0], 1)

    assert result.status == "fail"
    assert result.error_details.startswith("Navigation error: net::ERR_ABORTED")
    assert result.screenshot_path is not None
