"""Domain error definitions."""

from __future__ import annotations


class DataIntegrityError(RuntimeError):
    """Raised when snapshot or matcher output is inconsistent.

    These indicate an upstream bug and must stop the run.
    """


class TierParseError(ValueError):
    """Raised when a tier string cannot be interpreted."""
