"""
Add-to-cart through checkout for each configured product, stopping before payment.

One test case per product in the BATCH_START / BATCH_SIZE window, all on one
signed-in session. The region's results file is written after the last product.
"""

from __future__ import annotations

import os

import pytest
import pytest_asyncio

from shared.logging import get_logger
from suite.data_loader import get_shipping_address_for_region, load_products_for_region
from suite.flow_config import get_cart_checkout_config
from suite.flows.auth import authenticate_user
from suite.flows.checkout import run_cart_checkout_product
from suite.regions import RegionConfig, get_region
from suite.reports import save_cart_checkout_results

pytestmark = pytest.mark.e2e

logger = get_logger(__name__)


def _region_code() -> str:
    return os.getenv("TEST_REGION", "GB").upper()


def pytest_generate_tests(metafunc):
    if "product" not in metafunc.fixturenames:
        return
    config = get_cart_checkout_config()
    try:
        products = load_products_for_region(_region_code(), config.products_dir)
    except (FileNotFoundError, ValueError) as e:
        logger.warning("cart_checkout_products_unavailable", region=_region_code(), error=str(e))
        products = []
    start = max(config.batch_start - 1, 0)
    window = [(start + offset + 1, product) for offset, product in enumerate(products[start : start + config.batch_size])]
    metafunc.parametrize(
        ("product_index", "product"),
        window,
        ids=[f"{_region_code()}-{index}-{product.id}" for index, product in window],
    )


@pytest.fixture(scope="module")
def region() -> RegionConfig:
    return get_region(_region_code())


@pytest.fixture(scope="module")
def environment() -> str:
    return os.getenv("TEST_ENV", "live")


@pytest.fixture(scope="module")
def checkout_config():
    config = get_cart_checkout_config()
    config.paths.ensure()
    return config


@pytest.fixture(scope="module")
def address(region, checkout_config):
    return get_shipping_address_for_region(region.code, checkout_config.products_dir)


@pytest.fixture(scope="module")
def checkout_results(region, checkout_config):
    results = []
    yield results
    if results:
        save_cart_checkout_results(region.code, results, checkout_config.paths.reports_dir)


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def signed_in_page(batch_page, region, credentials, environment):
    auth = await authenticate_user(batch_page, region, credentials, environment=environment)
    if not auth.success:
        pytest.fail(f"Sign-in failed on {auth.base_url}")
    return batch_page


@pytest.mark.asyncio(loop_scope="module")
async def test_cart_checkout_product(
    product_index, product, signed_in_page, region, address, checkout_config, environment, checkout_results
):
    result = await run_cart_checkout_product(
        signed_in_page, product, product_index, region, address, checkout_config, environment=environment
    )
    checkout_results.append(result)

    assert result.success, f"{product.name}: {result.error.describe() if result.error else 'unknown error'}"
