import pytest

from nexmark import GeneratorConfig, Proportion


@pytest.fixture
def config():
    """Default config pinned to a fixed base time."""
    return GeneratorConfig(base_time=0)


@pytest.fixture
def canonical():
    """The 1:3:46 proportion with a 1000 events/sec clock."""
    return GeneratorConfig(proportion=Proportion(1, 3, 46), base_rate=1000, base_time=1_700_000_000_000)
