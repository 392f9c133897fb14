"""
Configuration management for scopegrid.

Loads YAML configuration with sensible defaults for every engine stage.
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Optional

import yaml


@dataclass
class InspectConfig:
    """Configuration for oriented-rectangle extraction."""
    point_tolerance: float = 1e-9
    in_plane_tolerance: float = 1e-6  # |dir . normal| for a segment to count as in-plane
    min_edge_length: float = 1e-12
    degenerate_size: float = 1e-9
    axis_aligned_degrees: float = 0.01
    reject_degenerate: bool = True


@dataclass
class TilingConfig:
    """Configuration for seed-to-grid tiling."""
    apply_zero_gap_nudge: bool = True
    zero_gap_nudge: float = 1e-6
    zero_overlap_epsilon: float = 1e-9
    min_span_length: float = 1e-12
    include_seed: bool = True
    base_name: Optional[str] = None


@dataclass
class InferenceConfig:
    """Configuration for grid inference."""
    tolerance_fraction: float = 0.01
    tolerance_floor: float = 1e-4
    min_sample: float = 1e-9
    outlier_factor: float = 3.0
    min_step: float = 1e-8
    compact_sparse_indices: bool = True
    reprojection_check: str = "warn"  # "off", "warn" or "strict"
    allowed_relative_deviation: float = 0.25


@dataclass
class GuideConfig:
    """Configuration for seam guide lines."""
    padding: float = 0.5
    parallel_tolerance: float = 1e-12
    segment_tolerance: float = 1e-9


@dataclass
class AnchorConfig:
    """Configuration for seam anchor placement."""
    inset: float = 0.75
    normal_offset: float = 0.25
    view_scale: int = 100
    include_crossings: bool = True


@dataclass
class ValidationConfig:
    """Configuration for grid validation rules."""
    size_tolerance: float = 1e-6
    angle_tolerance_degrees: float = 0.01
    seam_tolerance: float = 1e-5


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: Optional[str] = None
    json_output: bool = False


@dataclass
class EngineConfig:
    """Complete engine configuration."""
    inspect: InspectConfig = field(default_factory=InspectConfig)
    tiling: TilingConfig = field(default_factory=TilingConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    guides: GuideConfig = field(default_factory=GuideConfig)
    anchors: AnchorConfig = field(default_factory=AnchorConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


SECTIONS = ("inspect", "tiling", "inference", "guides", "anchors", "validation", "tracing")

REPROJECTION_MODES = ("off", "warn", "strict")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = EngineConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section_name in SECTIONS:
        section_data = yaml_data.get(section_name)
        if not section_data:
            continue
        section = getattr(config, section_name)
        for key, value in section_data.items():
            if hasattr(section, key):
                setattr(section, key, value)

    mode = config.inference.reprojection_check
    if mode not in REPROJECTION_MODES:
        raise ValueError(f"inference.reprojection_check must be one of {REPROJECTION_MODES}, got {mode!r}")

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(EngineConfig())

    # file_path is run-specific
    yaml_data["tracing"].pop("file_path", None)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
