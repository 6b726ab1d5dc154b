# SPDX-License-Identifier: MIT
"""CLI command implementations."""

from . import build, validate

__all__ = ["build", "validate"]
