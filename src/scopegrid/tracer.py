"""
Hierarchical runtime tracing for the scopegrid engine.

Nested spans with timing let a caller see how a tiling, inference or guide run
unfolded (step lengths, tolerances, rejected samples) without a debugger.
Disabled by default; the engine calls into it unconditionally.
"""

import functools
import hashlib
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime

import networkx as nx
import numpy as np
from pydantic import BaseModel
from shapely.geometry.base import BaseGeometry


class TracerConfig:
    """Output settings for the tracer."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        """Configure tracer settings, reopening the trace file if needed."""
        self.enabled = enabled
        self.level = level.upper()
        self.file_path = file_path
        self.json_output = json_output

        self.close()
        if file_path and enabled:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def close(self):
        """Close file handle if open."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """
    Hierarchical tracer for structured engine logging.

    Text lines look like ``12:00:01.123 INFO    grid_inference:infer_grid  start n=6``;
    with json_output each line is followed by an equivalent JSON record.
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._depth = 0
        self._span_stack = []

    def _should_log(self, level):
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _format_timestamp(self):
        now = datetime.now()
        return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"

    def _emit(self, line):
        print(line, file=sys.stderr)
        if self.config._file_handle:
            self.config._file_handle.write(line + "\n")
            self.config._file_handle.flush()

    def _write(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        timestamp = self._format_timestamp()
        location = f"{module}:{func}" if func else module
        self._emit(f"{timestamp} {level:<5} {'  ' * self._depth}{location}  {message}")

        if self.config.json_output:
            record = {
                "timestamp": timestamp,
                "level": level,
                "depth": self._depth,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }
            self._emit(json.dumps(record))

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Context manager for a traced span.

        Logs start and end with elapsed time; an exception is logged at ERROR
        level with its kind and re-raised unchanged.
        """
        if not self.config.enabled:
            yield
            return

        start_time = time.perf_counter()
        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write("INFO", module, name, f"start {meta_str}".strip(), meta)
        self._depth += 1
        self._span_stack.append((name, module))

        try:
            yield
        except Exception as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            self._depth -= 1
            self._span_stack.pop()
            kind = getattr(e, "kind", type(e).__name__)
            self._write("ERROR", module, name, f"failed dt={elapsed:.1f}ms error={kind}: {str(e)[:120]}")
            raise

        elapsed = (time.perf_counter() - start_time) * 1000
        self._depth -= 1
        self._span_stack.pop()
        self._write("INFO", module, name, f"end ok dt={elapsed:.1f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event within the current span."""
        if not self._should_log(level):
            return

        module = ""
        func = ""
        if self._span_stack:
            func, module = self._span_stack[-1]

        meta_str = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._write(level, module, func, f"{message} {meta_str}".strip(), meta)


def summarize(obj, max_len=200):
    """
    Summarize an object for logging.

    Returns a compact string that never exceeds max_len characters. Knows
    about numpy arrays, pydantic models, shapely geometries, networkx graphs
    and plain containers.
    """
    try:
        result = _summarize_impl(obj)
    except (TypeError, ValueError, AttributeError):
        result = f"<{type(obj).__name__}>"
    if len(result) > max_len:
        return result[:max_len - 3] + "..."
    return result


def _summarize_impl(obj):
    if obj is None:
        return "None"

    type_name = type(obj).__name__

    if isinstance(obj, np.ndarray):
        shape_str = "x".join(str(s) for s in obj.shape)
        if obj.size <= 4:
            values = ",".join(f"{v:.6g}" for v in obj.ravel())
            return f"ndarray({shape_str},[{values}])"
        h = hashlib.md5(obj.tobytes()).hexdigest()[:8]
        return f"ndarray({obj.dtype},{shape_str},h={h})"

    if isinstance(obj, BaseGeometry):
        bounds_str = ",".join(f"{b:.3f}" for b in obj.bounds)
        return f"{type_name}(bounds=[{bounds_str}])"

    if isinstance(obj, nx.Graph):
        return f"{type_name}(nodes={obj.number_of_nodes()},edges={obj.number_of_edges()})"

    if isinstance(obj, BaseModel):
        label = getattr(obj, "region_id", None)
        if label:
            return f"{type_name}({label})"
        fields = list(type(obj).model_fields.keys())[:3]
        return f"{type_name}(fields={fields}...)"

    if isinstance(obj, str):
        if len(obj) > 50:
            h = hashlib.md5(obj.encode()).hexdigest()[:8]
            return f"str(len={len(obj)},h={h})"
        return repr(obj)

    if isinstance(obj, (list, tuple)):
        if len(obj) == 0:
            return f"{type_name}(len=0)"
        if len(obj) <= 3 and all(isinstance(v, (int, float)) for v in obj):
            return f"{type_name}({','.join(f'{v:.6g}' for v in obj)})"
        return f"{type_name}(len={len(obj)},first={type(obj[0]).__name__})"

    if isinstance(obj, dict):
        keys_str = ",".join(str(k) for k in list(obj.keys())[:5])
        return f"dict(len={len(obj)},keys=[{keys_str}])"

    if isinstance(obj, float):
        return f"{obj:.6g}"

    if isinstance(obj, (int, bool)):
        return str(obj)

    return f"<{type_name}>"


def trace(label=None, arg_names=None):
    """
    Decorator to trace function execution.

    Wraps a function in a span; keyword arguments listed in arg_names are
    summarized into the span's start line.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)

            func_module = func.__module__.split(".")[-1] if func.__module__ else ""
            meta = {name: kwargs[name] for name in (arg_names or ()) if name in kwargs}

            with _tracer.span(label or func.__name__, module=func_module, **meta):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )


def configure_from_config(tracing_config):
    """Configure the global tracer from a TracingConfig section."""
    configure_tracer(
        enabled=tracing_config.enabled,
        level=tracing_config.level,
        file_path=tracing_config.file_path,
        json_output=tracing_config.json_output,
    )
