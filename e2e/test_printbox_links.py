"""
Printbox designer links: every link in the configured batch must open a
designer without the error popup. Each link is its own test case.

Run standalone with LINKS_FILE / BATCH_START / BATCH_SIZE, or as one worker of
`run_parallel_tests.py`, which sets CHUNK_FILE and CHUNK_ID. The batch JSON and
HTML reports are written once the module's last link has run.
"""

from __future__ import annotations

import time

import pytest
import pytest_asyncio

from shared.logging import get_logger
from suite.data_loader import load_links
from suite.errors import LinkLoadError
from suite.flow_config import PrintboxConfig, get_printbox_config
from suite.flows.printbox import clear_session, login_for_batch, validate_product_link
from suite.reports import (
    generate_printbox_html_report,
    generate_printbox_summary,
    save_printbox_results_json,
)

pytestmark = pytest.mark.e2e

logger = get_logger(__name__)


def pytest_generate_tests(metafunc):
    if "link_url" not in metafunc.fixturenames:
        return
    config = get_printbox_config()
    try:
        links = load_links(config.links_file, config.batch_start, config.batch_size)
    except LinkLoadError as e:
        logger.warning("printbox_links_unavailable", error=str(e))
        links = []
    indexed = [(config.batch_start + offset, url) for offset, url in enumerate(links)]
    metafunc.parametrize(
        ("link_index", "link_url"),
        indexed,
        ids=[f"chunk{config.chunk_id}-link{index}" for index, _ in indexed],
    )


@pytest.fixture(scope="module")
def printbox_config() -> PrintboxConfig:
    config = get_printbox_config()
    config.paths.ensure()
    return config


@pytest.fixture(scope="module")
def batch_results(printbox_config):
    results = []
    started = time.monotonic()
    yield results
    if not results:
        return
    summary = generate_printbox_summary(
        results,
        printbox_config.batch_start,
        int((time.monotonic() - started) * 1000),
        batch_size=printbox_config.batch_size,
    )
    save_printbox_results_json(results, summary, printbox_config.paths.reports_dir)
    generate_printbox_html_report(results, summary, printbox_config.paths.reports_dir)
    print(f"\nChunk {printbox_config.chunk_id}: {summary.total_passed}/{summary.total_tested} links passed")


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def signed_in_page(batch_page, credentials):
    if not await login_for_batch(batch_page, credentials):
        pytest.fail("Initial sign-in failed")
    return batch_page


@pytest.mark.asyncio(loop_scope="module")
async def test_printbox_link(
    link_index, link_url, signed_in_page, batch_context, printbox_config, credentials, batch_results
):
    offset = link_index - printbox_config.batch_start
    if offset and offset % printbox_config.batch_refresh_interval == 0:
        await clear_session(batch_context)
        await login_for_batch(signed_in_page, credentials)

    result = await validate_product_link(signed_in_page, link_url, link_index, printbox_config, credentials)
    batch_results.append(result)

    assert result.success, f"{link_url}: {result.error.describe() if result.error else 'unknown error'}"
