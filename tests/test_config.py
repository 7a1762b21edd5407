"""Tests for wearfeat.config -- clusters and environment configuration."""

import json
import logging

import pytest

from wearfeat.config import (
    DEFAULT_COMMUTE_BANDS,
    FeatureConfig,
    LocationCluster,
    load_location_clusters,
)
from wearfeat.errors import ConfigError

CLUSTERS = [
    {"key": "home", "lat": 47.6062, "lon": -122.3321, "radiusMeters": 150},
    {"key": "gym", "lat": "47.61", "lon": "-122.34"},
]


class TestLocationCluster:
    def test_from_dict(self):
        cluster = LocationCluster.from_dict(CLUSTERS[0])
        assert cluster == LocationCluster("home", 47.6062, -122.3321, 150.0)

    def test_numeric_strings_and_default_radius(self):
        cluster = LocationCluster.from_dict(CLUSTERS[1])
        assert cluster.lat == 47.61
        assert cluster.radius_meters is None

    def test_snake_case_radius(self):
        cluster = LocationCluster.from_dict({"key": "x", "lat": 0, "lon": 0, "radius_meters": 80})
        assert cluster.radius_meters == 80.0

    @pytest.mark.parametrize("raw", [
        {"lat": 1, "lon": 2},
        {"key": "x", "lat": "north", "lon": 2},
        {"key": "", "lat": 1, "lon": 2},
        {"key": "x", "lat": float("nan"), "lon": 2},
        {"key": "x", "lat": 1, "lon": 2, "radiusMeters": "wide"},
        "home",
    ])
    def test_invalid(self, raw):
        with pytest.raises(ConfigError):
            LocationCluster.from_dict(raw)


class TestLoadLocationClusters:
    def test_from_list(self):
        assert [c.key for c in load_location_clusters(CLUSTERS)] == ["home", "gym"]

    def test_from_file(self, tmp_path):
        path = tmp_path / "clusters.json"
        path.write_text(json.dumps(CLUSTERS))
        assert len(load_location_clusters(path)) == 2
        assert len(load_location_clusters(str(path))) == 2

    def test_none(self):
        assert load_location_clusters(None) == ()

    def test_not_a_list(self):
        with pytest.raises(ConfigError, match="array"):
            load_location_clusters({"key": "home"})

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_location_clusters(tmp_path / "missing.json")
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ConfigError):
            load_location_clusters(bad)


class TestFeatureConfig:
    def test_defaults(self):
        config = FeatureConfig()
        assert config.location_clusters == ()
        assert config.commute_bands == DEFAULT_COMMUTE_BANDS == ((6, 9), (16, 19))
        assert config.default_cluster_radius_m == 200.0
        assert config.sleep_target_hrs == 8.0
        assert config.post_exercise_window_min == 90.0

    def test_from_env(self):
        env = {
            "LOCATION_CLUSTERS": json.dumps(CLUSTERS),
            "WEARFEAT_WEATHER_URL": "http://weather.test",
            "WEARFEAT_HTTP_TIMEOUT": "2.5",
        }
        config = FeatureConfig.from_env(env)
        assert [c.key for c in config.location_clusters] == ["home", "gym"]
        assert config.weather_url == "http://weather.test"
        assert config.http_timeout_s == 2.5

    def test_from_env_empty(self):
        assert FeatureConfig.from_env({}) == FeatureConfig()

    def test_invalid_clusters_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wearfeat.config"):
            config = FeatureConfig.from_env({"LOCATION_CLUSTERS": "[{broken"})
        assert config.location_clusters == ()
        assert "LOCATION_CLUSTERS" in caplog.text

    def test_invalid_timeout_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wearfeat.config"):
            config = FeatureConfig.from_env({"WEARFEAT_HTTP_TIMEOUT": "soon"})
        assert config.http_timeout_s == 10.0
        assert "WEARFEAT_HTTP_TIMEOUT" in caplog.text

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("WEARFEAT_AIR_QUALITY_URL", "http://aq.test")
        monkeypatch.delenv("LOCATION_CLUSTERS", raising=False)
        assert FeatureConfig.from_env().air_quality_url == "http://aq.test"
