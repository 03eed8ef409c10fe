"""
Environment resolution: qa/live base URLs and the region/env a run targets.

A run is configured through BASE_URL, TEST_REGION and TEST_ENV. BASE_URL wins
when set; otherwise the URL is built from the region's domain.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import urlparse

from suite.regions import REGIONS, RegionConfig, get_region

EnvironmentName = Literal["qa", "live"]

VALID_ENVIRONMENTS: tuple[str, ...] = ("qa", "live")

_HOST_PATTERN = re.compile(r"printerpix\.(com|co\.uk|de|fr|it|es|nl)$", re.IGNORECASE)


@dataclass(frozen=True)
class TestConfig:
    region: RegionConfig
    environment: EnvironmentName
    base_url: str

    # pytest collects classes named Test*; this one is plain data.
    __test__ = False


def get_base_url(region: RegionConfig, env: EnvironmentName = "qa") -> str:
    prefix = "qa" if env == "qa" else "www"
    return f"https://{prefix}.{region.domain}"


def get_api_url(region: RegionConfig, env: EnvironmentName = "qa") -> str:
    prefix = "qa-api" if env == "qa" else "api"
    return f"https://{prefix}.{region.domain}"


def _hostname(url_or_host: str) -> str:
    if "://" in url_or_host:
        return (urlparse(url_or_host).hostname or "").lower()
    return url_or_host.split("/", 1)[0].split(":", 1)[0].lower()


def parse_region_from_host(url_or_host: str) -> Optional[RegionConfig]:
    """
    Map a URL or hostname onto its region.

    Returns None for hosts outside the storefront domains; callers decide
    what to fall back to.
    """
    host = _hostname(url_or_host or "")
    match = _HOST_PATTERN.search(host)
    if not match:
        return None
    domain = f"printerpix.{match.group(1).lower()}"
    for region in REGIONS.values():
        if region.domain == domain:
            return region
    return None


def _validate_env(value: str) -> EnvironmentName:
    if value not in VALID_ENVIRONMENTS:
        raise ValueError(f"Invalid TEST_ENV: {value}. Must be 'qa' or 'live'.")
    return value  # type: ignore[return-value]


def get_test_config() -> TestConfig:
    """Resolve region and environment from TEST_REGION / BASE_URL / TEST_ENV."""
    environment = _validate_env(os.getenv("TEST_ENV", "qa").strip().lower())

    region: Optional[RegionConfig] = None
    region_code = os.getenv("TEST_REGION")
    base_url = os.getenv("BASE_URL")
    if region_code:
        region = get_region(region_code)
    elif base_url:
        region = parse_region_from_host(base_url)
    if region is None:
        region = get_region("US")

    return TestConfig(
        region=region,
        environment=environment,
        base_url=get_base_url(region, environment),
    )


def get_current_base_url() -> str:
    base_url = os.getenv("BASE_URL")
    if base_url:
        return base_url.rstrip("/")
    return get_test_config().base_url
