"""Static WarEra country tables.

``COUNTRY_ROLE_MAP`` maps the country name reported by the WarEra API to the
Discord role name used for that country. ``CONTINENT_EMBASSIES`` groups the
same country names under the embassy category each one lives in. Refresh the
map with ``python -m embassy.country_map`` when the game adds countries.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

HOME_COUNTRY = "Lithuania"

_ABBREVIATIONS = {
    "United States": "USA",
    "United Kingdom": "UK",
    "United Arab Emirates": "UAE",
    "Bosnia and Herzegovina": "Bosnia",
    "Democratic Republic of the Congo": "DR Congo",
    "Central African Republic": "CAR",
}

_CONTINENTS: dict[str, Tuple[str, ...]] = {
    "🇪🇺 NORTH & WEST EUROPE": (
        "Lithuania",
        "Latvia",
        "Estonia",
        "Finland",
        "Sweden",
        "Norway",
        "Denmark",
        "Iceland",
        "Ireland",
        "United Kingdom",
        "France",
        "Belgium",
        "Netherlands",
        "Luxembourg",
        "Germany",
        "Switzerland",
        "Austria",
        "Portugal",
        "Spain",
        "Italy",
    ),
    "🏰 CENTRAL & EAST EUROPE": (
        "Poland",
        "Czech Republic",
        "Slovakia",
        "Hungary",
        "Slovenia",
        "Croatia",
        "Bosnia and Herzegovina",
        "Serbia",
        "Montenegro",
        "Albania",
        "North Macedonia",
        "Greece",
        "Bulgaria",
        "Romania",
        "Moldova",
        "Ukraine",
        "Belarus",
        "Russia",
        "Cyprus",
        "Turkey",
    ),
    "🌏 ASIA": (
        "China",
        "Japan",
        "South Korea",
        "North Korea",
        "Mongolia",
        "Taiwan",
        "India",
        "Pakistan",
        "Bangladesh",
        "Sri Lanka",
        "Nepal",
        "Thailand",
        "Vietnam",
        "Cambodia",
        "Malaysia",
        "Singapore",
        "Indonesia",
        "Philippines",
        "Kazakhstan",
        "Uzbekistan",
    ),
    "🕌 MIDDLE EAST": (
        "Israel",
        "Lebanon",
        "Syria",
        "Jordan",
        "Iraq",
        "Iran",
        "Saudi Arabia",
        "United Arab Emirates",
        "Qatar",
        "Kuwait",
        "Oman",
        "Yemen",
        "Georgia",
        "Armenia",
        "Azerbaijan",
        "Afghanistan",
    ),
    "🌍 AFRICA": (
        "Egypt",
        "Libya",
        "Tunisia",
        "Algeria",
        "Morocco",
        "Nigeria",
        "Ghana",
        "Senegal",
        "Ethiopia",
        "Kenya",
        "Tanzania",
        "Democratic Republic of the Congo",
        "Central African Republic",
        "Angola",
        "South Africa",
        "Madagascar",
    ),
    "🌎 AMERICAS": (
        "United States",
        "Canada",
        "Mexico",
        "Cuba",
        "Guatemala",
        "Panama",
        "Colombia",
        "Venezuela",
        "Ecuador",
        "Peru",
        "Bolivia",
        "Brazil",
        "Paraguay",
        "Uruguay",
        "Argentina",
        "Chile",
    ),
    "🌊 OCEANIA": (
        "Australia",
        "New Zealand",
        "Papua New Guinea",
        "Fiji",
    ),
}

CONTINENT_EMBASSIES: Mapping[str, Tuple[str, ...]] = MappingProxyType(_CONTINENTS)

COUNTRY_ROLE_MAP: Mapping[str, str] = MappingProxyType(
    {
        country: _ABBREVIATIONS.get(country, country)
        for countries in _CONTINENTS.values()
        for country in countries
    }
)


def role_name_for(country_name: str) -> str | None:
    """Role name for a WarEra country, or ``None`` if the country is unmapped."""
    return COUNTRY_ROLE_MAP.get(country_name)
