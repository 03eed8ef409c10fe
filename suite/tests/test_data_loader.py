"""Unit tests for links, product and checkout-address loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from suite.data_loader import (
    build_product_url,
    get_available_regions,
    get_shipping_address_for_region,
    load_links,
    load_products_for_region,
    load_region_products,
    strip_links_header,
)
from suite.errors import LinkLoadError

REPO_DATA_DIR = Path(__file__).resolve().parents[2] / "data" / "cart-checkout"


def _write_links(path: Path, links: list) -> Path:
    path.write_text(json.dumps(links), encoding="utf-8")
    return path


def test_strip_links_header():
    assert strip_links_header(["link", "a", "b"]) == ["a", "b"]
    assert strip_links_header(["a", "link"]) == ["a", "link"]
    assert strip_links_header([]) == []


def test_load_links_windows_regular_file(tmp_path):
    path = _write_links(tmp_path / "final.json", ["link"] + [f"https://x/{i}" for i in range(1, 11)])
    assert load_links(path, start=3, size=2) == ["https://x/3", "https://x/4"]


def test_load_links_without_size_returns_rest(tmp_path):
    path = _write_links(tmp_path / "final.json", ["a", "b", "c"])
    assert load_links(path, start=2) == ["b", "c"]


def test_load_links_chunk_file_ignores_window(tmp_path):
    path = _write_links(tmp_path / "links-chunk-3.json", ["a", "b", "c"])
    assert load_links(path, start=2, size=1) == ["a", "b", "c"]


def test_load_links_window_past_end_is_empty(tmp_path):
    path = _write_links(tmp_path / "final.json", ["a"])
    assert load_links(path, start=5, size=10) == []


def test_load_links_missing_file(tmp_path):
    with pytest.raises(LinkLoadError, match="Failed to load links"):
        load_links(tmp_path / "missing.json")


def test_load_links_not_an_array(tmp_path):
    path = tmp_path / "final.json"
    path.write_text('{"link": "a"}', encoding="utf-8")
    with pytest.raises(LinkLoadError, match="expected a JSON array"):
        load_links(path)


def test_load_region_products_from_repo_data():
    products = load_region_products("gb", REPO_DATA_DIR)
    assert products.region == "GB"
    assert products.base_url == "https://qa.printerpix.co.uk"
    assert any(not p.has_designer for p in products.products)


def test_load_products_missing_region(tmp_path):
    with pytest.raises(FileNotFoundError, match="Product data file not found for region: FR"):
        load_products_for_region("FR", tmp_path)


def test_shipping_address_for_region():
    address = get_shipping_address_for_region("gb", REPO_DATA_DIR)
    assert address.country
    assert address.email.endswith("@example.com")


def test_shipping_address_unknown_region():
    with pytest.raises(KeyError):
        get_shipping_address_for_region("NL", REPO_DATA_DIR)


def test_shipping_address_invalid(tmp_path):
    (tmp_path / "checkout-data.json").write_text(
        json.dumps({"testAddresses": {"GB": {"firstName": "Only"}}}), encoding="utf-8"
    )
    with pytest.raises(ValueError, match="Invalid shipping address for region GB"):
        get_shipping_address_for_region("GB", tmp_path)


def test_available_regions():
    assert get_available_regions(REPO_DATA_DIR) == ["GB", "US"]


def test_available_regions_missing_dir(tmp_path):
    assert get_available_regions(tmp_path / "nope") == []


def test_build_product_url():
    assert build_product_url("https://qa.printerpix.co.uk/", "/canvas-prints/") == (
        "https://qa.printerpix.co.uk/canvas-prints/"
    )
    assert build_product_url("https://a", "https://b/x") == "https://b/x"
