"""
Error taxonomy for the scopegrid engine.

Every failure is a deterministic validation failure on malformed or ambiguous
geometry, so all of them derive from ValueError and carry a stable ``kind``
string that callers can switch on or print.
"""


class GeometryError(ValueError):
    """Base class for all engine failures."""
    kind = "GeometryError"

    def __init__(self, message, **details):
        super().__init__(message)
        self.details = details

    def to_dict(self):
        """Structured form used by the CLI and report writers."""
        return {"kind": self.kind, "message": str(self), "details": dict(self.details)}


class InsufficientGeometry(GeometryError):
    """Fewer than four distinct in-plane boundary points."""
    kind = "InsufficientGeometry"


class DegenerateRegion(GeometryError):
    """Zero-length edge, or width/height at or below tolerance."""
    kind = "DegenerateRegion"


class DegenerateSpan(GeometryError):
    """Midpoint-to-midpoint span too short to define a step axis."""
    kind = "DegenerateSpan"


class ArgumentRange(GeometryError):
    kind = "ArgumentRange"


class EmptyInput(GeometryError):
    kind = "EmptyInput"


class DegenerateSpacing(GeometryError):
    """No usable row or column spacing could be estimated."""
    kind = "DegenerateSpacing"


class NonRectangularSelection(GeometryError):
    """The inferred indices do not form a dense rows x cols rectangle."""
    kind = "NonRectangularSelection"

    def __init__(self, rows, cols, actual, message=None):
        if message is None:
            message = f"Detected {rows}×{cols} = {rows * cols}, but selection has {actual}"
        super().__init__(message, rows=rows, cols=cols, expected=rows * cols, actual=actual)
        self.rows = rows
        self.cols = cols
        self.actual = actual


class ParallelIntersection(GeometryError):
    """A guide line is parallel to the boundary edge it must be clipped by."""
    kind = "ParallelIntersection"


class IntersectionOutsideEdge(GeometryError):
    """A guide line hits the boundary edge's line outside the edge segment."""
    kind = "IntersectionOutsideEdge"


class ExcessiveJitter(GeometryError):
    """A region center deviates too far from its quantized grid position."""
    kind = "ExcessiveJitter"
