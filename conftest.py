import pytest

from litmarkup.cache import DEFAULT_TEMPLATE_CACHE
from litmarkup.components import COMPONENT_REGISTRY


@pytest.fixture(autouse=True, scope='function')
def clean_component_registry():
    """Layers a fresh, clean component registry over the default one
    for testing. Note that this only takes effect WITHIN tests, so it
    only applies to components registered within the test functions
    themselves. Components registered at a test module level will be
    unaffected.
    """
    token = COMPONENT_REGISTRY.set({})
    try:
        yield
    finally:
        COMPONENT_REGISTRY.reset(token)


@pytest.fixture(autouse=True, scope='function')
def clean_default_template_cache():
    """Makes sure that no test sees trees cached by another test.
    Templates defined in different tests can share the exact same
    literal segments object (the compiler deduplicates constants), and
    those trees may reference components that only existed within the
    other test's registry.
    """
    DEFAULT_TEMPLATE_CACHE.clear()
    try:
        yield
    finally:
        DEFAULT_TEMPLATE_CACHE.clear()
