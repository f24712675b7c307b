"""Tunable constants of the segment engine.

Values default to the ones the coding UI was tuned with and can be
overridden through environment variables (or a ``.env`` file).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineConfig:
    # 1-2 character selections are never kept as coding
    min_coding_length: int = 3

    snap_enabled: bool = True
    snap_min_overlap_to_segment: float = 0.88
    snap_min_overlap_to_selection: float = 0.75
    snap_min_edge_tolerance: int = 4
    snap_edge_tolerance_ratio: float = 0.12

    region_tolerance: float = 0.0015

    absorb_tiny_remnants: bool = False

    def __post_init__(self) -> None:
        if self.min_coding_length < 1:
            raise ValueError("min_coding_length must be at least 1")
        for name in (
            "snap_min_overlap_to_segment",
            "snap_min_overlap_to_selection",
            "snap_edge_tolerance_ratio",
        ):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        if self.snap_min_edge_tolerance < 0:
            raise ValueError("snap_min_edge_tolerance must be non-negative")
        if self.region_tolerance < 0:
            raise ValueError("region_tolerance must be non-negative")

    def edge_tolerance(self, segment_length: int) -> int:
        """Maximum boundary drift, in characters, accepted when snapping."""

        scaled = _round_half_up(segment_length * self.snap_edge_tolerance_ratio)
        return max(self.snap_min_edge_tolerance, scaled)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``CODING_*`` environment variables."""

        if environ is None:
            load_dotenv()
            environ = os.environ

        return cls(
            min_coding_length=_read(environ, "CODING_MIN_LENGTH", int, cls.min_coding_length),
            snap_enabled=_read(environ, "CODING_SNAP_ENABLED", _parse_bool, cls.snap_enabled),
            snap_min_overlap_to_segment=_read(
                environ,
                "CODING_SNAP_MIN_OVERLAP_TO_SEGMENT",
                float,
                cls.snap_min_overlap_to_segment,
            ),
            snap_min_overlap_to_selection=_read(
                environ,
                "CODING_SNAP_MIN_OVERLAP_TO_SELECTION",
                float,
                cls.snap_min_overlap_to_selection,
            ),
            snap_min_edge_tolerance=_read(
                environ, "CODING_SNAP_MIN_EDGE_TOLERANCE", int, cls.snap_min_edge_tolerance
            ),
            snap_edge_tolerance_ratio=_read(
                environ,
                "CODING_SNAP_EDGE_TOLERANCE_RATIO",
                float,
                cls.snap_edge_tolerance_ratio,
            ),
            region_tolerance=_read(environ, "CODING_REGION_TOLERANCE", float, cls.region_tolerance),
            absorb_tiny_remnants=_read(
                environ, "CODING_ABSORB_TINY_REMNANTS", _parse_bool, cls.absorb_tiny_remnants
            ),
        )


def _read(environ: Mapping[str, str], name: str, parse: Callable[[str], T], default: T) -> T:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(value)


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
