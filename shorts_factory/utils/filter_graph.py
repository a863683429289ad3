"""Typed filter-graph builder, serialized to ffmpeg's -filter_complex syntax.

The compiler works with ``Filter`` / ``FilterChain`` / ``FilterGraph`` objects
so tests can assert on structure (labels, node names, option values) and the
textual form is produced only by ``FilterGraph.render()`` at the command
boundary.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


class Quoted(str):
    """Option value that must be single-quoted (expressions containing commas)."""


def format_number(value: float) -> str:
    """Render a number without float noise: 3.1666666 -> '3.166667', 1.0 -> '1'."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def escape_filter_path(path: str) -> str:
    """Escape a file path for use as a quoted filter option value."""
    return path.replace("\\", "/").replace(":", "\\:")


def _format_value(value: Any) -> str:
    if isinstance(value, Quoted):
        return f"'{value}'"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


@dataclass(frozen=True)
class Filter:
    """One filter node with ordered keyword options."""

    name: str
    options: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def make(cls, name: str, **options: Any) -> "Filter":
        return cls(name, tuple(options.items()))

    def option(self, key: str, default: Any = None) -> Any:
        for option_key, value in self.options:
            if option_key == key:
                return value
        return default

    def render(self) -> str:
        if not self.options:
            return self.name
        rendered = ":".join(f"{key}={_format_value(value)}" for key, value in self.options)
        return f"{self.name}={rendered}"


@dataclass
class FilterChain:
    """Linear run of filters between labelled input and output pads."""

    inputs: list[str]
    filters: list[Filter]
    outputs: list[str]

    def render(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return f"{ins}{','.join(f.render() for f in self.filters)}{outs}"


@dataclass
class FilterGraph:
    """Ordered set of chains forming one -filter_complex expression."""

    chains: list[FilterChain] = field(default_factory=list)

    def add(self, inputs: list[str], filters: list[Filter], outputs: list[str]) -> FilterChain:
        if not filters:
            raise ValueError("A filter chain needs at least one filter")
        produced = self.output_labels()
        for label in inputs:
            if not _is_stream_specifier(label) and label not in produced:
                raise ValueError(f"Input label [{label}] is not produced by an earlier chain")
        for label in outputs:
            if label in produced:
                raise ValueError(f"Output label [{label}] is already defined")
        chain = FilterChain(list(inputs), list(filters), list(outputs))
        self.chains.append(chain)
        return chain

    def output_labels(self) -> list[str]:
        return [label for chain in self.chains for label in chain.outputs]

    def filters_named(self, name: str) -> list[Filter]:
        return [f for chain in self.chains for f in chain.filters if f.name == name]

    def chain_producing(self, label: str) -> Optional[FilterChain]:
        for chain in self.chains:
            if label in chain.outputs:
                return chain
        return None

    def render(self) -> str:
        return ";".join(chain.render() for chain in self.chains)


def _is_stream_specifier(label: str) -> bool:
    # Input pads such as "0:v" or "3:a" refer to command-line inputs.
    head, _, tail = label.partition(":")
    return head.isdigit() and tail in ("v", "a")
