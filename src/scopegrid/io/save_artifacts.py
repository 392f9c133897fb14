"""
Artifact saving utilities for scopegrid.

Handles writing JSON outputs for grid plans, inference results and guides.
"""

import json
import os

from scopegrid.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def _to_jsonable(data):
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [_to_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: _to_jsonable(value) for key, value in data.items()}
    return data


def save_json(data, path, indent=2):
    """
    Save a dictionary, list or Pydantic model (or lists of models) to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    with open(path, "w", encoding="utf-8") as f:
        json.dump(_to_jsonable(data), f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")
