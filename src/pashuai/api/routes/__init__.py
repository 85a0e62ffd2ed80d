# API router aggregation.
# Created: 2026-10-13
#
# mount_routers(app) registers all domain routers under /api.

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# (module_path, attr_name, tag)
_ROUTERS: list[tuple[str, str, str]] = [
    ("pashuai.api.routes.health", "router", "Health"),
    ("pashuai.api.routes.conversations", "router", "Conversations"),
    ("pashuai.api.routes.chat", "router", "Chat"),
    ("pashuai.api.routes.media", "router", "Media"),
    ("pashuai.api.routes.weather", "router", "Weather"),
    ("pashuai.api.routes.market", "router", "Market"),
]


def mount_routers(app: FastAPI) -> None:
    """Mount every domain router on *app* at ``/api``."""
    for module_path, attr_name, tag in _ROUTERS:
        mod = importlib.import_module(module_path)
        app.include_router(getattr(mod, attr_name), prefix=API_PREFIX)
        logger.debug("Mounted router: %s (%s)", module_path, tag)
