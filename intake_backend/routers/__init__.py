from __future__ import annotations

import logging
from importlib import import_module
from types import ModuleType
from typing import List

logger = logging.getLogger(__name__)

# Router submodules that can be lazily imported.
_ROUTER_MODULES: List[str] = [
    "admin_leads",
    "admin_users",
    "auth",
    "files",
    "intake",
    "leads",
]

__all__ = _ROUTER_MODULES


def __getattr__(name: str) -> ModuleType:
    """
    Lazy import router submodules so that:

        from intake_backend.routers import files as files_router

    works without eagerly importing everything (and avoids circular imports).
    """
    if name not in _ROUTER_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    full_name = f"{__name__}.{name}"
    logger.debug("Lazy-importing router module %s", full_name)
    module = import_module(full_name)
    return module
