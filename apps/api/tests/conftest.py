from __future__ import annotations

import pytest

from mdtree_api.dependencies import get_settings, get_workspace


@pytest.fixture(autouse=True)
def clear_provider_caches():
    get_settings.cache_clear()
    get_workspace.cache_clear()
    yield
    get_settings.cache_clear()
    get_workspace.cache_clear()
