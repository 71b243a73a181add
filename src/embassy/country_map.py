"""
Print a ``COUNTRY_ROLE_MAP`` suggestion from the live WarEra country list.

Run with ``python -m embassy.country_map`` and paste the output into
``embassy/provisioning/countries.py`` after review.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import sys
from typing import Dict, Iterable

from dotenv import load_dotenv

from .config import DEFAULT_WARERA_API_BASE
from .logging_setup import setup_logging
from .provisioning.countries import COUNTRY_ROLE_MAP
from .services.warera import WarEraClient, WarEraCountry, WarEraUnavailable

log = logging.getLogger("embassy.country_map")

ROLE_NAME_OVERRIDES = {
    "United States": "USA",
    "United Kingdom": "UK",
    "United Arab Emirates": "UAE",
}

_LEADING_THE_RE = re.compile(r"^The\s+", re.IGNORECASE)
_OF_RE = re.compile(r"\s+of\s+", re.IGNORECASE)


def suggest_role_name(country_name: str) -> str:
    """Suggest a Discord role name for a WarEra country name."""
    if country_name in ROLE_NAME_OVERRIDES:
        return ROLE_NAME_OVERRIDES[country_name]
    name = _LEADING_THE_RE.sub("", country_name.strip())
    return _OF_RE.sub(" ", name).strip()


def build_mapping(countries: Iterable[WarEraCountry]) -> Dict[str, str]:
    """Existing entries win; new countries get a suggested name."""
    mapping: Dict[str, str] = {}
    for country in sorted(countries, key=lambda c: c.name):
        if not country.name:
            continue
        mapping[country.name] = COUNTRY_ROLE_MAP.get(country.name) or suggest_role_name(country.name)
    return mapping


async def _run(base_url: str) -> int:
    async with WarEraClient(base_url) as client:
        try:
            countries = await client.get_all_countries()
        except WarEraUnavailable as e:
            log.error("Could not fetch countries: %s", e)
            return 1

    if not countries:
        log.error("WarEra returned no countries")
        return 1

    mapping = build_mapping(countries)
    new = sorted(set(mapping) - set(COUNTRY_ROLE_MAP))
    gone = sorted(set(COUNTRY_ROLE_MAP) - set(mapping))
    log.info("Fetched %d countries (%d new, %d no longer listed)", len(mapping), len(new), len(gone))

    print("COUNTRY_ROLE_MAP = {")
    for country, role_name in mapping.items():
        print(f"    {country!r}: {role_name!r},")
    print("}")
    for country in new:
        log.info("New country: %s", country)
    for country in gone:
        log.warning("Mapped country missing from WarEra: %s", country)
    return 0


def main() -> None:
    load_dotenv()
    setup_logging("INFO")

    base_url = os.getenv("WARERA_API_BASE", "").strip() or DEFAULT_WARERA_API_BASE
    sys.exit(asyncio.run(_run(base_url)))


if __name__ == "__main__":
    main()
