from __future__ import annotations

from types import MappingProxyType

import pytest

from embassy.provisioning import Pacer
from embassy.provisioning.spec import TopologyProfile
from embassy.testing.fakes import FakeGuild


@pytest.fixture
def guild() -> FakeGuild:
    g = FakeGuild()
    g.add_bot_member()
    return g


@pytest.fixture
def pacer() -> Pacer:
    return Pacer(0)


@pytest.fixture
def small_profile() -> TopologyProfile:
    """A profile with a handful of countries so assertions stay readable."""
    continents = {
        "🇪🇺 EUROPE": ("Lithuania", "Latvia", "Poland", "Czech Republic", "United Kingdom"),
        "🌎 AMERICAS": ("United States", "Brazil"),
    }
    roles = {
        "Lithuania": "Lithuania",
        "Latvia": "Latvia",
        "Poland": "Poland",
        "Czech Republic": "Czech Republic",
        "United Kingdom": "UK",
        "United States": "USA",
        "Brazil": "Brazil",
    }
    return TopologyProfile(
        name="test",
        country_roles=MappingProxyType(roles),
        continents=MappingProxyType(continents),
    )
