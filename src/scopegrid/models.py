"""
Pydantic data models for the scopegrid engine.

All geometry flows through these validated models. Points and vectors are
stored as 3-element float lists so every result serializes to JSON directly;
computation converts them to numpy arrays through the ``vec`` helpers.
Content-based ID generation keeps outputs deterministic.
"""

import hashlib
import math
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import networkx as nx
import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator
from shapely.geometry import Polygon

from scopegrid.geometry.vectors import as_vec, plane_coords, plane_to_world, to_list, unit


Vec3 = List[float]


class Severity(str, Enum):
    """Severity levels for validation checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class SegmentKind(str, Enum):
    LINE = "line"
    CURVE = "curve"


class Side(str, Enum):
    """Side of a cell, or direction of a single adjacent copy."""
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    CROSSING = "crossing"


class GuideAxis(str, Enum):
    COLUMN = "column"
    ROW = "row"


def _check_vec3(value):
    if len(value) != 3:
        raise ValueError(f"expected 3 components, got {len(value)}")
    return [float(x) for x in value]


class PlaneFrame(BaseModel):
    """
    Working plane basis: right, up and normal.

    Vectors are normalized on construction. right and up only need to be
    orthogonal to normal, not to each other.
    """
    right: Vec3
    up: Vec3
    normal: Vec3

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("right", "up", "normal")
    @classmethod
    def _normalized(cls, value):
        value = _check_vec3(value)
        v, length = unit(np.asarray(value))
        if length == 0.0:
            raise ValueError("frame vectors must be non-zero")
        return to_list(v)

    @classmethod
    def plan(cls):
        """World XY plane viewed from +Z."""
        return cls(right=[1.0, 0.0, 0.0], up=[0.0, 1.0, 0.0], normal=[0.0, 0.0, 1.0])

    @classmethod
    def rotated(cls, angle):
        """Plan frame rotated counter-clockwise about +Z by angle radians."""
        c, s = math.cos(angle), math.sin(angle)
        return cls(right=[c, s, 0.0], up=[-s, c, 0.0], normal=[0.0, 0.0, 1.0])

    @property
    def right_vec(self):
        return as_vec(self.right)

    @property
    def up_vec(self):
        return as_vec(self.up)

    @property
    def normal_vec(self):
        return as_vec(self.normal)

    def to_plane(self, point):
        """(r, u) coordinates of a 3D point."""
        return plane_coords(as_vec(point), self.right_vec, self.up_vec)

    def from_plane(self, r, u, reference):
        """3D point with plane coordinates (r, u), in the plane through reference."""
        return plane_to_world(r, u, self.right_vec, self.up_vec, as_vec(reference))


class BoundarySegment(BaseModel):
    """One boundary curve; only its endpoints are used."""
    start: Vec3
    end: Vec3
    kind: SegmentKind = SegmentKind.LINE

    model_config = ConfigDict(extra="forbid")

    @field_validator("start", "end")
    @classmethod
    def _endpoint(cls, value):
        return _check_vec3(value)


class BoundaryInstance(BaseModel):
    """Nested boundary geometry under a 4x4 row-major homogeneous transform."""
    transform: List[List[float]] = Field(
        default_factory=lambda: [[1.0, 0.0, 0.0, 0.0], [0.0, 1.0, 0.0, 0.0],
                                 [0.0, 0.0, 1.0, 0.0], [0.0, 0.0, 0.0, 1.0]]
    )
    children: List[Union["BoundarySegment", "BoundaryInstance"]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("transform")
    @classmethod
    def _check_transform(cls, value):
        if len(value) != 4 or any(len(row) != 4 for row in value):
            raise ValueError("transform must be 4x4")
        return value


BoundaryInstance.model_rebuild()


class OrientedRect(BaseModel):
    """
    Rotation-invariant snapshot of a rectangular region in a PlaneFrame.

    width and height are edge-midpoint distances, not bounding-box extents.
    """
    region_id: Optional[str] = None
    frame: PlaneFrame

    center: Vec3
    corner_top_left: Vec3
    corner_top_right: Vec3
    corner_bottom_left: Vec3
    corner_bottom_right: Vec3

    mid_top: Vec3
    mid_right: Vec3
    mid_bottom: Vec3
    mid_left: Vec3

    edge_right: Vec3
    edge_down: Vec3
    dir_right: Vec3
    dir_down: Vec3

    width: float
    height: float
    angle_to_frame_right: float
    is_degenerate: bool = False
    is_axis_aligned: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def angle_degrees(self):
        return math.degrees(self.angle_to_frame_right)

    @property
    def corners(self):
        """Corners in loop order TL, TR, BR, BL."""
        return [self.corner_top_left, self.corner_top_right,
                self.corner_bottom_right, self.corner_bottom_left]

    def footprint(self):
        """Shapely polygon of the corners in frame (r, u) coordinates."""
        return Polygon([self.frame.to_plane(p) for p in self.corners])

    def translated(self, vector, region_id=None):
        """Copy of this snapshot moved by vector; orientation and size are unchanged."""
        offset = as_vec(vector)
        moved = {
            name: to_list(as_vec(getattr(self, name)) + offset)
            for name in _POINT_FIELDS
        }
        return self.model_copy(update=dict(moved, region_id=region_id))


_POINT_FIELDS = (
    "center",
    "corner_top_left", "corner_top_right", "corner_bottom_left", "corner_bottom_right",
    "mid_top", "mid_right", "mid_bottom", "mid_left",
)


def vec(model, name):
    """numpy view of a vector field on a model."""
    return as_vec(getattr(model, name))


class GridCellIndex(BaseModel):
    """(row, col) with value equality; usable as a dict key."""
    row: int
    col: int

    model_config = ConfigDict(extra="forbid", frozen=True)

    def key(self):
        return (self.row, self.col)

    def __lt__(self, other):
        return self.key() < other.key()


class CellNeighbors(BaseModel):
    """Which of the four direct neighbours of a cell are present."""
    row: int
    col: int
    has_left: bool = False
    has_right: bool = False
    has_up: bool = False
    has_down: bool = False

    model_config = ConfigDict(extra="forbid")


class GridInferenceResult(BaseModel):
    """Row/column assignment and adjacency recovered from a set of regions."""
    row_count: int
    col_count: int
    index_by_region: Dict[str, GridCellIndex] = Field(default_factory=dict)
    neighbors: List[CellNeighbors] = Field(default_factory=list)

    step_right: float = 0.0
    step_up: float = 0.0
    tolerance: float = 0.0
    basis_right: Vec3 = Field(default_factory=lambda: [1.0, 0.0, 0.0])
    basis_up: Vec3 = Field(default_factory=lambda: [0.0, 1.0, 0.0])
    compacted: bool = False
    deviations: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def region_at(self, row, col):
        """Region id at (row, col), or None."""
        for region_id, index in self.index_by_region.items():
            if index.row == row and index.col == col:
                return region_id
        return None

    def neighbors_at(self, row, col):
        for record in self.neighbors:
            if record.row == row and record.col == col:
                return record
        return None

    def ordered_region_ids(self):
        """Region ids in row-major order."""
        return [rid for rid, _ in sorted(self.index_by_region.items(), key=lambda item: item[1].key())]

    def to_graph(self):
        """
        networkx graph with one node per (row, col) and an edge per
        left/right or up/down adjacency. Node attribute ``region_id``.
        """
        graph = nx.Graph()
        for region_id, index in self.index_by_region.items():
            graph.add_node(index.key(), region_id=region_id)
        for record in self.neighbors:
            if record.has_right:
                graph.add_edge((record.row, record.col), (record.row, record.col + 1), axis="col")
            if record.has_down:
                graph.add_edge((record.row, record.col), (record.row + 1, record.col), axis="row")
        return graph


class CellPlacement(BaseModel):
    """One placed cell of a tiled grid, relative to the seed."""
    index: GridCellIndex
    translation: Vec3
    label: Optional[str] = None
    is_seed: bool = False
    rect: Optional[OrientedRect] = None

    model_config = ConfigDict(extra="forbid")


class GridPlan(BaseModel):
    """Output of the tile builder: steps plus row-major placements."""
    rows: int
    cols: int
    overlap_x: float
    overlap_y: float
    col_step: Vec3
    row_step: Vec3
    placements: List[CellPlacement] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def placement_at(self, row, col):
        for placement in self.placements:
            if placement.index.row == row and placement.index.col == col:
                return placement
        return None


class GuideLineSegment(BaseModel):
    """An internal seam line, clipped to the grid boundary and padded."""
    start: Vec3
    end: Vec3
    axis: GuideAxis
    boundary_index: int
    clip_start: Vec3
    clip_end: Vec3
    padding: float = 0.0

    model_config = ConfigDict(extra="forbid")

    @property
    def length(self):
        return float(np.linalg.norm(as_vec(self.end) - as_vec(self.start)))


class GuideCrossing(BaseModel):
    """Labelled intersection of one column guide and one row guide."""
    label: str
    point: Vec3
    row_boundary: int
    col_boundary: int

    model_config = ConfigDict(extra="forbid")


class SeamAnchor(BaseModel):
    """Placement point and orientation for a marker near a shared edge."""
    cell: GridCellIndex
    side: Side
    point: Vec3
    orientation: Vec3
    region_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class CheckResult(BaseModel):
    """Result of a single validation check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of validation check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def error_count(self):
        """Count of failed error-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.ERROR and not c.passed)

    @property
    def warning_count(self):
        """Count of failed warning-level checks."""
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


class RegionInput(BaseModel):
    """A region in a scene file: boundary geometry or four explicit corners."""
    region_id: Optional[str] = None
    boundary: List[Union[BoundarySegment, BoundaryInstance]] = Field(default_factory=list)
    corners: Optional[List[Vec3]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("corners")
    @classmethod
    def _four_corners(cls, value):
        if value is not None and len(value) != 4:
            raise ValueError("corners must list exactly four points")
        return value


class Scene(BaseModel):
    """Input document: a working plane and the regions drawn in it."""
    frame: PlaneFrame = Field(default_factory=PlaneFrame.plan)
    regions: List[RegionInput] = Field(default_factory=list)
    seed: Optional[RegionInput] = None

    model_config = ConfigDict(extra="forbid")


class InferenceRun(BaseModel):
    """Everything produced by one inference pipeline run."""
    regions: List[OrientedRect] = Field(default_factory=list)
    result: GridInferenceResult
    guides: List[GuideLineSegment] = Field(default_factory=list)
    crossings: List[GuideCrossing] = Field(default_factory=list)
    anchors: List[SeamAnchor] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)

    model_config = ConfigDict(extra="forbid")


# ID generation

def generate_region_id(corners, round_digits=6):
    """
    Generate a deterministic region ID from corner coordinates.

    Rounds coordinates to avoid floating point instability.
    """
    rounded = [[round(float(c), round_digits) for c in p] for p in corners]
    h = hashlib.sha256(str(rounded).encode()).hexdigest()[:12]
    return f"region_{h}"
