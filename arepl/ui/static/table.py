#!/usr/bin/env python3
# arepl/ui/static/table.py
from __future__ import annotations

from typing import List, Optional, Sequence

from arepl.ui.utils import strip_ansi

ELLIPSIS = "..."


def _visible_len(cell: str) -> int:
    return len(strip_ansi(cell))


def _truncate(cell: str, width: int) -> str:
    plain = strip_ansi(cell)
    if len(plain) <= width:
        return cell
    if width <= len(ELLIPSIS):
        return plain[:width]
    return plain[: width - len(ELLIPSIS)] + ELLIPSIS


def format_table(
    rows: Sequence[Sequence[object]],
    headers: Optional[Sequence[object]] = None,
    *,
    max_width: Optional[int] = None,
) -> str:
    """
    Render rows as a bordered ASCII table.

    Widths ignore ANSI sequences. When `max_width` is given and the table
    would be wider, the last column is shortened (ending in '...').
    """
    body: List[List[str]] = [[str(cell) for cell in row] for row in rows]
    head = [str(h) for h in headers] if headers is not None else None
    every_row = ([head] if head else []) + body
    if not every_row:
        return ""

    columns = max(len(row) for row in every_row)
    widths = [0] * columns
    for row in every_row:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], _visible_len(cell))

    # "| " + " | ".join(cells) + " |"
    total = sum(widths) + 3 * columns + 1
    if max_width is not None and total > max_width:
        widths[-1] = max(len(ELLIPSIS) + 1, widths[-1] - (total - max_width))

    def render(row: Sequence[str]) -> str:
        cells = []
        for index in range(columns):
            cell = _truncate(row[index], widths[index]) if index < len(row) else ""
            cells.append(cell + " " * (widths[index] - _visible_len(cell)))
        return "| " + " | ".join(cells) + " |"

    rule = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
    lines = [rule]
    if head:
        lines += [render(head), rule]
    lines += [render(row) for row in body]
    lines.append(rule)
    return "\n".join(lines)
