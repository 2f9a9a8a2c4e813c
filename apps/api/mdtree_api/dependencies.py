from functools import lru_cache

from mdtree_api.config import load_settings
from mdtree_api.workspace import Workspace


@lru_cache()
def get_settings():
    return load_settings()


@lru_cache()
def get_workspace():
    return Workspace.from_settings(get_settings())
