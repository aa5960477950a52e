"""CLI configuration overrides for runtime tunables.

Applied after the YAML config so command line flags have the highest
precedence.
"""

from __future__ import annotations

import logging

from .constants import Constants

logger = logging.getLogger(__name__)


def apply_overrides(args) -> None:
    """Copy registry and ELM_HOME flags onto Constants."""
    registry = getattr(args, "REGISTRY", None)
    if registry:
        Constants.REGISTRY_URL = registry.rstrip("/")
        logger.debug("Registry overridden from CLI: %s", Constants.REGISTRY_URL)
    home = getattr(args, "ELM_HOME", None)
    if home:
        Constants.ELM_HOME = home
        logger.debug("ELM_HOME overridden from CLI: %s", home)
