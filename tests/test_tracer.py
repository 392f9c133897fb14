"""Tests for the tracer module."""

import json
import os

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def reset_tracer():
    """Leave the global tracer disabled after every test."""
    yield
    from scopegrid.tracer import configure_tracer
    configure_tracer(enabled=False)


class TestSummarize:
    """Tests for object summarization."""

    def test_numpy_array_summary(self):
        """Test that large arrays are summarized with dtype and shape."""
        from scopegrid.tracer import summarize

        summary = summarize(np.zeros((100, 3), dtype=np.float32))

        assert "ndarray" in summary
        assert "100x3" in summary
        assert "float32" in summary

    def test_small_vector_summary(self):
        """Test that 3D vectors show their values."""
        from scopegrid.tracer import summarize

        assert summarize(np.array([1.0, 2.5, 0.0])) == "ndarray(3,[1,2.5,0])"

    def test_summary_capped_length(self):
        """Test that summary never exceeds max length."""
        from scopegrid.tracer import summarize

        large_dict = {f"key_{i}": f"value_{i}" for i in range(100)}

        assert len(summarize(large_dict, max_len=30)) <= 30

    def test_list_summary(self):
        """Test short numeric and long list summaries."""
        from scopegrid.tracer import summarize

        assert summarize([1, 2, 3]) == "list(1,2,3)"
        summary = summarize([1, 2, 3, 4, 5])
        assert "list" in summary
        assert "len=5" in summary

    def test_string_summary(self):
        """Test long string summarization."""
        from scopegrid.tracer import summarize

        summary = summarize("a" * 1000)

        assert "len=1000" in summary
        assert len(summary) <= 200

    def test_none_summary(self):
        """Test None summarization."""
        from scopegrid.tracer import summarize

        assert summarize(None) == "None"

    def test_region_summary(self, make_rect):
        """Test that snapshots are labelled by region id."""
        from scopegrid.tracer import summarize

        assert summarize(make_rect(region_id="A")) == "OrientedRect(A)"

    def test_model_without_id_summary(self):
        """Test Pydantic models without an id list their fields."""
        from scopegrid.models import GridCellIndex
        from scopegrid.tracer import summarize

        summary = summarize(GridCellIndex(row=1, col=2))

        assert "GridCellIndex" in summary
        assert "row" in summary

    def test_geometry_and_graph_summary(self, make_rect):
        """Test shapely and networkx summaries."""
        import networkx as nx

        from scopegrid.tracer import summarize

        footprint = make_rect(10.0, 4.0).footprint()
        graph = nx.path_graph(3)

        assert summarize(footprint).startswith("Polygon(bounds=[-5.000")
        assert summarize(graph) == "Graph(nodes=3,edges=2)"


class TestTracerSpan:
    """Tests for tracer span functionality."""

    def test_span_nesting(self, capsys):
        """Test that spans produce start, end and indented events."""
        from scopegrid.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()

        with tracer.span("outer", module="test"):
            with tracer.span("inner", module="test"):
                tracer.event("inside")

        lines = capsys.readouterr().err.strip().split("\n")

        assert len(lines) == 5
        assert "test:outer  start" in lines[0]
        assert "    test:inner  inside" in lines[2]
        assert "end ok" in lines[-1]

    def test_tracer_disabled_no_output(self, capsys):
        """Test that disabled tracer produces no output."""
        from scopegrid.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=False)
        tracer = get_tracer()

        with tracer.span("test", module="test"):
            tracer.event("should not appear")

        assert capsys.readouterr().err == ""

    def test_level_filter(self, capsys):
        """Test that events below the configured level are dropped."""
        from scopegrid.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="WARN")
        tracer = get_tracer()
        tracer.event("quiet", level="DEBUG")
        tracer.event("loud", level="WARN")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err

    def test_span_logs_error_kind(self, capsys):
        """Test that a failing span logs the error kind and re-raises."""
        from scopegrid.errors import DegenerateSpan
        from scopegrid.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True)
        tracer = get_tracer()

        with pytest.raises(DegenerateSpan):
            with tracer.span("step", module="test"):
                raise DegenerateSpan("too short")

        err = capsys.readouterr().err
        assert "error=DegenerateSpan: too short" in err

    def test_json_output(self, capsys):
        """Test that JSON mode adds a parseable record per line."""
        from scopegrid.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, json_output=True)
        get_tracer().event("measured", step=np.array([8.0, 0.0, 0.0]))

        lines = capsys.readouterr().err.strip().split("\n")
        record = json.loads(lines[1])

        assert record["message"].startswith("measured")
        assert record["meta"]["step"] == "ndarray(3,[8,0,0])"

    def test_file_output(self, temp_dir):
        """Test that trace lines are also written to the trace file."""
        from scopegrid.tracer import configure_tracer, get_tracer

        path = os.path.join(temp_dir, "trace.log")
        configure_tracer(enabled=True, file_path=path)
        get_tracer().event("to file")
        configure_tracer(enabled=False)

        with open(path, "r", encoding="utf-8") as f:
            assert "to file" in f.read()

    def test_configure_from_config(self, capsys):
        """Test that a TracingConfig section drives the tracer."""
        from scopegrid.config import TracingConfig
        from scopegrid.tracer import configure_from_config, get_tracer

        configure_from_config(TracingConfig(enabled=True, level="DEBUG"))
        get_tracer().event("detail", level="DEBUG")

        assert "detail" in capsys.readouterr().err


class TestTraceDecorator:
    """Tests for the @trace decorator."""

    def test_decorator_runs_function(self):
        """Test that decorated function executes normally."""
        from scopegrid.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="test_func")
        def my_func(x):
            return x * 2

        assert my_func(5) == 10

    def test_decorator_traces_when_enabled(self, capsys):
        """Test that an enabled tracer wraps the call in a span."""
        from scopegrid.tracer import configure_tracer, trace

        configure_tracer(enabled=True)

        @trace(label="double", arg_names=["x"])
        def double(x):
            return x * 2

        assert double(x=4) == 8
        err = capsys.readouterr().err
        assert "double  start x=4" in err
        assert "end ok" in err

    def test_decorator_with_exception(self):
        """Test that decorator propagates exceptions unchanged."""
        from scopegrid.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="failing_func")
        def failing_func():
            raise ValueError("test error")

        with pytest.raises(ValueError):
            failing_func()
