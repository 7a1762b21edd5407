"""Typed feature groups and the flat Feature Record.

Each extractor returns a dataclass derived from :class:`FeatureGroup`.  Every
field is one named feature; its public name is the camelCase form of the
field name unless the field declares an explicit ``key``.  ``notes`` is not a
feature: it carries diagnostic codes for degraded paths.

The final :class:`FeatureRecord` is built with :func:`merge_layers`, which
applies named layers in a fixed order with later layers winning.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Iterable, Mapping

FeatureValue = int | float | bool | str | None


def feature(key: str | None = None, default: Any = None) -> Any:
    """Declare a feature field, optionally with an irregular public name."""
    metadata = {"key": key} if key else {}
    return field(default=default, metadata=metadata)


def feature_map() -> Any:
    """Declare a field holding dynamically named features (merged flat)."""
    return field(default_factory=dict, metadata={"expand": True})


def camel_case(name: str) -> str:
    """``steps_last_5m`` -> ``stepsLast5m``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass
class FeatureGroup:
    """Base class for per-extractor feature dataclasses."""

    notes: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def feature_keys(cls) -> list[str]:
        """Statically declared feature names, in field order."""
        return [_key(f) for f in fields(cls) if _is_feature(f)]

    def to_dict(self) -> dict[str, FeatureValue]:
        """Flat ``{featureName: value}`` mapping (notes excluded)."""
        out: dict[str, FeatureValue] = {}
        for f in fields(self):
            if f.metadata.get("expand"):
                out.update(getattr(self, f.name))
            elif _is_feature(f):
                out[_key(f)] = getattr(self, f.name)
        return out


def _is_feature(f: Any) -> bool:
    return f.name != "notes" and not f.metadata.get("expand")


def _key(f: Any) -> str:
    return f.metadata.get("key") or camel_case(f.name)


# ---------------------------------------------------------------------------
# Layered merge
# ---------------------------------------------------------------------------


# Later layers win on key collision.
MERGE_ORDER = ("base", "composite", "client", "geo")


def merge_layers(layers: Mapping[str, Mapping[str, Any] | None]) -> dict[str, Any]:
    """Merge named layers in :data:`MERGE_ORDER`.

    Layers missing from *layers* (or given as None) are skipped.

    Raises:
        ValueError: on a layer name that is not part of the merge order.
    """
    unknown = set(layers) - set(MERGE_ORDER)
    if unknown:
        raise ValueError(f"unknown feature layer(s): {sorted(unknown)}")

    merged: dict[str, Any] = {}
    for name in MERGE_ORDER:
        layer = layers.get(name)
        if layer:
            merged.update(layer)
    return merged


def merge_groups(groups: Iterable[FeatureGroup]) -> tuple[dict[str, FeatureValue], list[str]]:
    """Flatten feature groups in order and collect their notes."""
    merged: dict[str, FeatureValue] = {}
    notes: list[str] = []
    for group in groups:
        merged.update(group.to_dict())
        notes.extend(group.notes)
    return merged, notes


# ---------------------------------------------------------------------------
# Output record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeatureRecord:
    """The single artifact of a feature build."""

    anchor: datetime
    timezone: str
    features: dict[str, Any]
    notes: tuple[str, ...] = ()

    def __getitem__(self, key: str) -> Any:
        return self.features[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.features.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """The flat feature mapping (JSON-friendly)."""
        return dict(self.features)

    def to_json(self, indent: int | None = None, include_notes: bool = False) -> str:
        """Serialize to JSON; identical inputs give identical output."""
        payload: dict[str, Any] = self.to_dict()
        if include_notes:
            payload = {
                "anchor": self.anchor.isoformat(),
                "timezone": self.timezone,
                "features": payload,
                "notes": list(self.notes),
            }
        return json.dumps(payload, indent=indent, allow_nan=False)

    def __repr__(self) -> str:
        non_null = sum(1 for v in self.features.values() if v is not None)
        return (
            f"FeatureRecord({self.anchor.isoformat()} {self.timezone}: "
            f"{non_null}/{len(self.features)} features, "
            f"notes={len(self.notes)})"
        )
