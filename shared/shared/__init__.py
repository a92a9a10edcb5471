"""Boutique shared utilities package."""

from shared.config import BaseServiceSettings
from shared.logging import setup_logging
from shared.tracing import setup_tracing

__all__ = ["setup_logging", "setup_tracing", "BaseServiceSettings"]
