"""wearfeat: anchored feature vectors from wearable time series."""

from wearfeat.config import FeatureConfig, LocationCluster
from wearfeat.errors import ConfigError, FeatureBuildError, InvalidAnchorError
from wearfeat.features.pipeline import RawInputs, build_all_features, build_all_features_async
from wearfeat.features.record import FeatureRecord

__version__ = "0.1.0"

__all__ = [
    "FeatureConfig",
    "LocationCluster",
    "ConfigError",
    "FeatureBuildError",
    "InvalidAnchorError",
    "RawInputs",
    "build_all_features",
    "build_all_features_async",
    "FeatureRecord",
]
