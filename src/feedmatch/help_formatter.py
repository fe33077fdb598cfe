from __future__ import annotations

import argparse
import shutil
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table
from rich.text import Text

SECTION_STYLE = "bold bright_cyan"


@dataclass
class CommandHelp:
    """Extra help sections rendered after the argparse options of one command."""

    examples: list[tuple[str, str]] = field(default_factory=list)
    env_vars: list[tuple[str, str]] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)

    def sections(self) -> list[tuple[str, list[tuple[str, str]]]]:
        """``(title, [(label, detail), ...])`` for every non-empty section."""
        sections: list[tuple[str, list[tuple[str, str]]]] = []
        if self.examples:
            sections.append(("Examples", [(description, f"$ {command}") for description, command in self.examples]))
        if self.env_vars:
            sections.append(("Environment Variables", list(self.env_vars)))
        if self.tips:
            sections.append(("Tips", [("*", tip) for tip in self.tips]))
        return sections


class RichHelpFormatter(argparse.HelpFormatter):
    """Argparse formatter that appends examples, environment variables and tips.

    On a terminal, section titles are styled and the extra sections are laid
    out as Rich tables. Piped output stays plain text.
    """

    def __init__(
        self,
        prog: str,
        indent_increment: int = 2,
        max_help_position: int = 24,
        width: int | None = None,
        console: Console | None = None,
    ) -> None:
        if width is None:
            width = min(shutil.get_terminal_size().columns, 120)
        super().__init__(
            prog=prog,
            indent_increment=indent_increment,
            max_help_position=max_help_position,
            width=width,
        )
        self.console = console or Console()
        self.command_help = CommandHelp()

    def add_command_help(self, content: CommandHelp | None) -> None:
        if content is not None:
            self.command_help = content

    def format_help(self) -> str:
        text = super().format_help()
        sections = self.command_help.sections()
        if not self.console.is_terminal:
            return text + "".join(_plain_section(title, rows) for title, rows in sections)

        with self.console.capture() as capture:
            for line in text.rstrip("\n").split("\n"):
                # argparse section headers are unindented and end with ':'
                is_header = bool(line) and not line[0].isspace() and line.endswith(":")
                self.console.print(Text(line, style=SECTION_STYLE if is_header else ""))
            for title, rows in sections:
                self.console.print()
                self.console.print(Text(f"{title}:", style=SECTION_STYLE))
                table = Table(show_header=False, box=None, padding=(0, 2))
                table.add_column(style="bright_green", no_wrap=True)
                table.add_column(style="bright_white")
                for label, detail in rows:
                    table.add_row(Text(label), Text(detail))
                self.console.print(table)
        return capture.get()


def _plain_section(title: str, rows: list[tuple[str, str]]) -> str:
    lines = [f"\n{title}:"]
    lines.extend(f"  {label}\n      {detail}" if label != "*" else f"  * {detail}" for label, detail in rows)
    return "\n".join(lines) + "\n"


class RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that feeds its :class:`CommandHelp` into the Rich formatter."""

    def __init__(self, *args, command_help: CommandHelp | None = None, **kwargs) -> None:
        kwargs.setdefault("formatter_class", RichHelpFormatter)
        self.command_help = command_help
        super().__init__(*args, **kwargs)

    def _get_formatter(self) -> argparse.HelpFormatter:
        formatter = super()._get_formatter()
        if isinstance(formatter, RichHelpFormatter):
            formatter.add_command_help(self.command_help)
        return formatter
