"""Tests for the typed filter-graph builder."""

import pytest

from shorts_factory.utils.filter_graph import Filter, FilterGraph, Quoted, escape_filter_path, format_number


@pytest.mark.parametrize(
    "value,expected",
    [(1.0, "1"), (1.15, "1.15"), (3.1666666, "3.166667"), (30, "30"), (0.0, "0"), (-0.0000001, "0"), (True, "1")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_filter_render_keeps_option_order():
    """Test options render as name=k=v:k=v in declaration order."""
    f = Filter.make("scale", w=1080, h=1920, force_original_aspect_ratio="decrease")

    assert f.render() == "scale=w=1080:h=1920:force_original_aspect_ratio=decrease"
    assert f.option("h") == 1920
    assert f.option("missing", "x") == "x"


def test_quoted_values_are_single_quoted():
    f = Filter.make("zoompan", z=Quoted("min(zoom+0.001,1.15)"), d=90)

    assert f.render() == "zoompan=z='min(zoom+0.001,1.15)':d=90"


def test_filter_without_options():
    assert Filter.make("null").render() == "null"


def test_graph_render_joins_chains():
    """Test chains serialize as [in]f1,f2[out] joined by semicolons."""
    graph = FilterGraph()
    graph.add(["0:v"], [Filter.make("setsar", sar=1), Filter.make("format", pix_fmts="yuv420p")], ["v0"])
    graph.add(["1:v"], [Filter.make("setsar", sar=1)], ["v1"])
    graph.add(["v0", "v1"], [Filter.make("xfade", transition="fade", duration=0.5, offset=2.5)], ["x1"])

    assert graph.render() == (
        "[0:v]setsar=sar=1,format=pix_fmts=yuv420p[v0];"
        "[1:v]setsar=sar=1[v1];"
        "[v0][v1]xfade=transition=fade:duration=0.5:offset=2.5[x1]"
    )
    assert graph.output_labels() == ["v0", "v1", "x1"]
    assert graph.chain_producing("x1").inputs == ["v0", "v1"]
    assert graph.chain_producing("nope") is None
    assert len(graph.filters_named("setsar")) == 2


def test_graph_rejects_unknown_input_label():
    graph = FilterGraph()

    with pytest.raises(ValueError, match="not produced"):
        graph.add(["v7"], [Filter.make("setsar", sar=1)], ["out"])


def test_graph_rejects_duplicate_output_label():
    graph = FilterGraph()
    graph.add(["0:v"], [Filter.make("setsar", sar=1)], ["v0"])

    with pytest.raises(ValueError, match="already defined"):
        graph.add(["1:v"], [Filter.make("setsar", sar=1)], ["v0"])


def test_graph_rejects_empty_chain():
    with pytest.raises(ValueError):
        FilterGraph().add(["0:v"], [], ["v0"])


def test_escape_filter_path():
    assert escape_filter_path("/tmp/job/captions.srt") == "/tmp/job/captions.srt"
    assert escape_filter_path("C:\\work\\captions.srt") == "C\\:/work/captions.srt"
