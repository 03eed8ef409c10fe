"""
Browser fixtures for the storefront tests.

Each test gets its own Chromium browser, a context pointed at the resolved
base URL (BASE_URL, or TEST_REGION + TEST_ENV), and a page. Link and product
batches run one test case per item on a module-scoped `batch_page`, so the
batch signs in once and every item still shows up as its own JUnit case. A failing test
leaves a full-page screenshot which is recorded as a `screenshot` property
in the JUnit report.
"""

from __future__ import annotations

import re
import time
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from playwright.async_api import async_playwright

load_dotenv()

from shared.config import get_config
from shared.logging import bind_run_context, get_logger
from suite.browser import create_browser_context, headless_from_env
from suite.environments import TestConfig, get_current_base_url, get_test_config
from suite.errors import MissingCredentialsError
from suite.flows.auth import Credentials, get_credentials

logger = get_logger(__name__)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    config = get_test_config()
    bind_run_context(region=config.region.code, environment=config.environment)
    return config


@pytest.fixture(scope="session")
def base_url(test_config: TestConfig) -> str:
    return get_current_base_url()


@pytest.fixture(scope="session")
def credentials() -> Credentials:
    try:
        return get_credentials()
    except MissingCredentialsError as e:
        pytest.skip(str(e))


@pytest.fixture(scope="session")
def results_dir() -> Path:
    path = Path(get_config().results_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest_asyncio.fixture
async def browser():
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless_from_env())
        yield browser
        await browser.close()


@pytest_asyncio.fixture
async def context(browser, base_url, test_config):
    context = await create_browser_context(browser, base_url=base_url, region=test_config.region)
    yield context
    await context.close()


@pytest_asyncio.fixture
async def page(context, request, results_dir):
    page = await context.new_page()
    yield page

    report = getattr(request.node, "rep_call", None)
    if report is None or not report.failed:
        return
    screenshots_dir = results_dir / "screenshots"
    screenshots_dir.mkdir(parents=True, exist_ok=True)
    name = re.sub(r"[^a-zA-Z0-9_-]+", "-", request.node.name).strip("-")
    path = screenshots_dir / f"{name}-{int(time.time() * 1000)}.png"
    try:
        await page.screenshot(path=str(path), full_page=True)
        request.node.user_properties.append(("screenshot", str(path)))
    except Exception as e:
        logger.warning("failure_screenshot_failed", test=request.node.name, error=str(e))


# --- Batch fixtures: one browser session shared by every item in a module ---


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def batch_browser():
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless_from_env())
        yield browser
        await browser.close()


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def batch_context(batch_browser, base_url, test_config):
    context = await create_browser_context(batch_browser, base_url=base_url, region=test_config.region)
    yield context
    await context.close()


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def batch_page(batch_context):
    page = await batch_context.new_page()
    yield page
    await page.close()

