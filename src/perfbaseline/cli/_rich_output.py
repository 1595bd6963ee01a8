"""Theme-aware Rich rendering helpers shared across commands."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.box import ROUNDED
from rich.panel import Panel
from rich.table import Table

from ._theme import PANEL_PADDING, STATUS_ICONS


def key_value_panel(
    data: dict[str, Any],
    *,
    title: str | None = None,
    border: str = "pb.border",
) -> Panel:
    """Render a dict as an aligned key-value panel."""
    max_key_len = max((len(str(k)) for k in data), default=0)
    lines: list[str] = []
    for key, value in data.items():
        padded = str(key).ljust(max_key_len)
        lines.append(f"[pb.label]{padded}[/pb.label]  {value}")
    return Panel(
        "\n".join(lines),
        title=title,
        border_style=border,
        box=ROUNDED,
        padding=PANEL_PADDING,
    )


def status_table(
    rows: Sequence[tuple[str, ...]],
    *,
    columns: Sequence[str],
    title: str | None = None,
) -> Table:
    """Render rows led by a status key (``pass``, ``fail``, ``warn``, ``info``).

    The first element of each row picks the glyph; the rest fill ``columns``.
    """
    table = Table(title=title, show_lines=False, padding=(0, 1))
    table.add_column("", width=3, no_wrap=True)
    for index, name in enumerate(columns):
        table.add_column(name, style="pb.label" if index == 0 else None, no_wrap=index == 0)

    style_map = {
        "pass": "pb.ok",
        "fail": "pb.err",
        "warn": "pb.caution",
        "info": "pb.info",
    }
    for status_key, *values in rows:
        icon = STATUS_ICONS.get(status_key, STATUS_ICONS["info"])
        style = style_map.get(status_key, "pb.info")
        table.add_row(f"[{style}]{icon}[/{style}]", *values)
    return table


def result_banner(
    *,
    passed: bool,
    title: str | None = None,
    lines: Sequence[str] = (),
) -> Panel:
    """Render a PASS / FAIL banner panel."""
    if passed:
        default_title = f"{STATUS_ICONS['pass']} PASS"
        border = "pb.border.success"
    else:
        default_title = f"{STATUS_ICONS['fail']} FAIL"
        border = "pb.border.error"

    return Panel(
        "\n".join(lines),
        title=title or default_title,
        border_style=border,
        box=ROUNDED,
        padding=PANEL_PADDING,
    )
