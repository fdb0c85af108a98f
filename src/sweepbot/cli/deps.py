"""CLI dependencies (overridable in tests)."""

from __future__ import annotations

from sweepbot.clients.openml_platform import OpenMLPlatform, Platform
from sweepbot.config.settings import apply_openml_config, settings


def get_platform() -> Platform:
    apply_openml_config(settings)
    return OpenMLPlatform()
