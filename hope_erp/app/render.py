"""Plain-text rendering of screen state."""

from __future__ import annotations

from typing import Any, List

from ..data.models import Phase, ScreenState
from .screens import Column, ScreenDefinition

MAX_CELL_WIDTH = 40


def format_cell(row: Any, column: Column) -> str:
    if column.fmt is not None:
        return column.fmt(row)
    value = getattr(row, column.attr, None)
    if value is None or value == "":
        return "-"
    if isinstance(value, float):
        return f"{value:,.2f}"
    text = str(value)
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text


def render_table(columns: List[Column], rows: List[Any]) -> str:
    """Fixed-width table with a header rule."""
    cells = [[format_cell(row, col) for col in columns] for row in rows]
    widths = [len(col.header) for col in columns]
    for line in cells:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell))

    def fmt_line(values):
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out = [fmt_line([c.header for c in columns]), "  ".join("-" * w for w in widths)]
    out.extend(fmt_line(line) for line in cells)
    return "\n".join(out)


def render_state(definition: ScreenDefinition, state: ScreenState) -> str:
    """Render a screen as text for the terminal."""
    header = f"== {definition.title} =="

    if state.phase == Phase.LOADING:
        return f"{header}\nLoading..."

    if state.phase == Phase.ERROR:
        return "\n".join([
            header,
            f"Error: {state.error_message}",
            f"Retry with `hope-erp show {definition.name}`. If the backend has been fixed, "
            f"run `hope-erp cache reset {definition.resource}` first.",
        ])

    lines = [header]
    if state.rows:
        lines.append(render_table(definition.columns, state.rows))
        if definition.summary is not None:
            lines.extend(["", definition.summary(state.rows), ""])
    else:
        lines.append("No rows.")

    footer = f"{len(state.rows)} row(s)"
    if state.strategy:
        footer += f" via {state.strategy}"
    if state.updated_at:
        footer += f" at {state.updated_at:%Y-%m-%d %H:%M:%S}"
    lines.append(footer)
    return "\n".join(lines)
