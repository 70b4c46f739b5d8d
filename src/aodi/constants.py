"""Constants used throughout aodi.

This module defines the framework logger and the defaults shared by the
injector and its configuration layer.
"""

import logging

LOGGER_NAME: str = "aodi"
"""Default logger name for aodi."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Pre-configured logger instance for aodi internal diagnostics."""

ENV_PREFIX: str = "AODI_"
"""Prefix used by :class:`~aodi.config_builder.EnvSource` when none is given to :func:`~aodi.config_runtime.settings_from_env`."""

SETTINGS_SECTION: str = "injector"
"""Tree-config section holding :class:`~aodi.config_runtime.InjectorSettings` fields."""
