"""Readable multi-line log blocks for fetch outcomes and provider waterfalls."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from textwrap import wrap
from typing import Union

DEFAULT_WRAP_WIDTH = 110
DEFAULT_LABEL_WIDTH = 20
DEFAULT_INDENT = "    "

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _as_text(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_as_text(item) for item in value) or "-"
    return str(value).strip() or "-"


class LogBlockBuilder:
    """Accumulate a titled block of ``label: value`` lines and bullet sections.

    Example:
        builder = LogBlockBuilder("Poster Fetched")
        builder.add_fields({"Release": 42, "Provider": "tmdb"})
        builder.add_section("Attempts", ["tmdb: hit"])
        LOGGER.info(builder.render())
    """

    def __init__(
        self,
        title: str,
        *,
        wrap_width: int = DEFAULT_WRAP_WIDTH,
        label_width: int = DEFAULT_LABEL_WIDTH,
        indent: str = DEFAULT_INDENT,
        pad_top: bool = True,
    ) -> None:
        self.wrap_width = wrap_width
        self.label_width = label_width
        self.indent = indent
        self.lines: list[str] = [""] if pad_top else []
        self.lines.extend([title, "-" * len(title)])

    def add_fields(self, fields: FieldMapping | None) -> None:
        items = list(fields.items()) if isinstance(fields, Mapping) else list(fields or ())
        if not items:
            return
        width = max(8, min(self.label_width, max(len(str(key)) for key, _ in items)))
        value_width = max(self.wrap_width - len(self.indent) - width - 2, 32)
        for key, value in items:
            wrapped = wrap(_as_text(value), width=value_width) or [""]
            self.lines.append(f"{self.indent}{str(key):<{width}}: {wrapped[0]}")
            self.lines.extend(f"{self.indent}{'':<{width}}  {line}" for line in wrapped[1:])

    def add_section(self, heading: str, items: Iterable[str], *, empty_label: str = "(none)") -> None:
        if self.lines and self.lines[-1] != "":
            self.lines.append("")
        self.lines.append(f"{heading}:")
        entries = [item for item in items if item]
        if not entries:
            self.lines.append(f"{self.indent}{empty_label}")
            return
        for entry in entries:
            wrapped = wrap(entry, width=max(self.wrap_width - len(self.indent) - 2, 24)) or [""]
            self.lines.append(f"{self.indent}- {wrapped[0]}")
            self.lines.extend(f"{self.indent}  {line}" for line in wrapped[1:])

    def render(self) -> str:
        return "\n".join(self.lines).rstrip()


def render_fields_block(title: str, fields: FieldMapping, *, pad_top: bool = True) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    builder.add_fields(fields)
    return builder.render()
