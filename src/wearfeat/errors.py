"""Exception types raised by wearfeat.

Missing or insufficient data is never an error: extractors return ``None``
features and diagnostic notes instead.  These exceptions cover programming
level mistakes only.
"""

from __future__ import annotations


class FeatureBuildError(Exception):
    """Base class for wearfeat errors."""


class InvalidAnchorError(FeatureBuildError, ValueError):
    """The anchor time is missing or is not a valid point in time."""


class ConfigError(FeatureBuildError, ValueError):
    """Explicitly supplied configuration is malformed."""
