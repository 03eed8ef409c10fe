"""
Fixture loading: link lists for the batch validators and the per-region
product and address files used by the cart-checkout flow.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from shared.logging import get_logger
from suite.errors import LinkLoadError
from suite.results import CamelModel

logger = get_logger(__name__)

DEFAULT_DATA_DIR = Path("data/cart-checkout")

LINKS_HEADER = "link"
CHUNK_FILE_MARKER = "links-chunk-"


class ProductTestData(CamelModel):
    id: str
    name: str
    category: str
    url: str
    has_designer: bool = False
    expected_price: Optional[str] = None


class RegionProducts(CamelModel):
    region: str
    base_url: str
    products: list[ProductTestData]


class ShippingAddress(CamelModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str


def strip_links_header(links: list) -> list:
    if links and links[0] == LINKS_HEADER:
        return links[1:]
    return links


def load_links(path: str | Path, start: int = 1, size: Optional[int] = None) -> list[str]:
    """
    Load product links from a JSON array file.

    Chunk files (written by the splitter) are returned whole. Any other file
    is windowed to `[start-1, start-1+size)`.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise LinkLoadError(f"Failed to load links from {path}: {e}") from e
    if not isinstance(raw, list):
        raise LinkLoadError(f"Failed to load links from {path}: expected a JSON array")

    links = [str(link) for link in strip_links_header(raw)]

    if CHUNK_FILE_MARKER in path.name:
        logger.info("links_loaded", path=str(path), count=len(links), chunk=True)
        return links

    begin = max(0, start - 1)
    window = links[begin:] if size is None else links[begin : begin + size]
    logger.info(
        "links_loaded",
        path=str(path),
        count=len(window),
        start=start,
        end=start + len(window) - 1,
    )
    return window


def _products_file(region_code: str, data_dir: Path) -> Path:
    return data_dir / f"products-{region_code.lower()}.json"


def load_region_products(region_code: str, data_dir: str | Path = DEFAULT_DATA_DIR) -> RegionProducts:
    path = _products_file(region_code, Path(data_dir))
    if not path.exists():
        raise FileNotFoundError(
            f"Product data file not found for region: {region_code}. Expected path: {path}"
        )
    return RegionProducts.model_validate_json(path.read_text(encoding="utf-8"))


def load_products_for_region(
    region_code: str, data_dir: str | Path = DEFAULT_DATA_DIR
) -> list[ProductTestData]:
    return load_region_products(region_code, data_dir).products


def get_shipping_address_for_region(
    region_code: str, data_dir: str | Path = DEFAULT_DATA_DIR
) -> ShippingAddress:
    path = Path(data_dir) / "checkout-data.json"
    if not path.exists():
        raise FileNotFoundError(f"Checkout data file not found. Expected path: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    address = (data.get("testAddresses") or {}).get(region_code.upper())
    if not address:
        raise KeyError(f"No shipping address configured for region: {region_code}")
    try:
        return ShippingAddress.model_validate(address)
    except ValidationError as e:
        raise ValueError(f"Invalid shipping address for region {region_code}: {e}") from e


def get_available_regions(data_dir: str | Path = DEFAULT_DATA_DIR) -> list[str]:
    directory = Path(data_dir)
    if not directory.is_dir():
        return []
    codes = []
    for path in sorted(directory.glob("products-*.json")):
        code = path.stem[len("products-") :]
        if code:
            codes.append(code.upper())
    return codes


def build_product_url(base_url: str, product: ProductTestData | str) -> str:
    product_path = product.url if isinstance(product, ProductTestData) else product
    if product_path.startswith("http"):
        return product_path
    return f"{base_url.rstrip('/')}/{product_path.lstrip('/')}"
