"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from xlog.output.console import create_console, get_output, style_for_delta, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from xlog.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # For list results, return names only
    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item.get("name", "")) for item in items if isinstance(item, dict))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _signed(value: float) -> str:
    return f"{value:+d}" if isinstance(value, int) else f"{value:+.2f}"


def _delta(value: int) -> Text:
    return Text(_signed(value), style=style_for_delta(value))


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    console.print(Text("OK", style="xlog.ok"), Text(f"  {result.op}", style="xlog.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="xlog.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="xlog.id")
    elif key in ("name", "task", "element"):
        v = Text(str(value), style="xlog.name")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _rank_bar(rank: dict[str, Any], *, width: int = 30) -> Table:
    """One-line rank summary with a progress bar towards the next level."""
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="xlog.rank", no_wrap=True)
    grid.add_column(no_wrap=True)
    grid.add_column(no_wrap=True)
    grid.add_column(style="dim", no_wrap=True)
    fraction = float(rank.get("fraction", 0.0))
    grid.add_row(
        f"{rank['name']} (level {rank['level']})",
        ProgressBar(total=1.0, completed=fraction, width=width),
        f"{fraction * 100:5.1f}%",
        "max rank" if not rank.get("xp_to_next") else f"{rank['xp_to_next']:.0f} XP to next",
    )
    return grid


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{ak}={av}" for ak, av in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="xlog.error"),
        Text(f"  {result.op}{code}", style="xlog.op"),
        Text(" — "),
        msg,
        sep="",
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Progression renderers ─────────────────────────────────────────────


def _render_completion(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    line = Text("  ")
    line.append(d["task"], style="xlog.name")
    line.append("  ")
    line.append_text(_delta(d["major_xp"]))
    line.append(" major  ")
    line.append_text(_delta(d["minor_xp"]))
    line.append(" minor  ")
    line.append(f"streak {d['streak']}")
    if d.get("focus"):
        line.append("  focus", style="xlog.focus")
    if d.get("late"):
        line.append("  late", style="xlog.loss")
    console.print(line)


def _render_completion_batch(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Task", style="xlog.name")
    table.add_column("Major", justify="right")
    table.add_column("Minor", justify="right")
    table.add_column("Streak", justify="right")
    table.add_column("Notes")
    for item in result.data.get("completed", []):
        notes = [n for n in ("focus", "late") if item.get(n)]
        table.add_row(
            item["task"],
            _delta(item["major_xp"]),
            _delta(item["minor_xp"]),
            str(item["streak"]),
            ", ".join(notes),
        )
    console.print(table)


def _render_grant(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "type", d["type"])
    console.print(Text("  major: "), _delta(d["major_xp"]), sep="")
    console.print(Text("  minor: "), _delta(d["minor_xp"]), sep="")
    if d.get("focus"):
        console.print(Text("  focus bonus applied", style="xlog.focus"))


def _render_focus(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "element", result.data["element"])
    _field(console, "domain_id", result.data["domain_id"])


def _render_rank(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _field(console, "xp", f"{d['xp']:.2f}")
    console.print(_rank_bar(d))
    if verbose:
        _field(console, "level_xp", f"{d['level_xp']:.2f}")
        _field(console, "next_level_xp", f"{d['next_level_xp']:.2f}")


def _penalty_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Task", style="xlog.name")
    table.add_column("Due")
    table.add_column("Major", justify="right")
    table.add_column("Minor", justify="right")
    for item in items:
        table.add_row(
            item["task"],
            str(item.get("due") or ""),
            _delta(item["major_xp"]),
            _delta(item["minor_xp"]),
        )
    return table


def _render_sweep(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "date", d["date"])
    if not d["penalties"]:
        console.print("  No overdue tasks.")
        return
    console.print(_penalty_table(d["penalties"]))
    console.print(f"\n{d['count']} penalties")


def _render_snapshot(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "date", d["date"])
    if not d["logged"]:
        console.print("  Already logged today.")
        return
    login = d.get("daily_login")
    if login:
        console.print(
            Text(f"  {login['task']}: "),
            _delta(login["major_xp"]),
            Text(f"  streak {login['streak']}"),
            sep="",
        )
    if d.get("penalties"):
        console.print(_penalty_table(d["penalties"]))
    _field(console, "profile_xp", f"{d['profile_xp']:.2f}")
    for name, total in (d.get("domain_xp") or {}).items():
        _field(console, name, f"{total:.0f}")


def _render_history(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    domains = d.get("domains") or ["Domain 1", "Domain 2", "Domain 3", "Domain 4"]
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Date", no_wrap=True)
    table.add_column("Profile XP", style="xlog.rank", justify="right")
    for name in domains:
        table.add_column(name, justify="right")
    for item in d.get("items", []):
        domain_xp = item["domain_xp"][: len(domains)]
        table.add_row(
            item["date"],
            f"{item['profile_xp']:.2f}",
            *(f"{v:.0f}" for v in domain_xp),
        )
    console.print(table)
    console.print(f"\n{d.get('count', 0)} entries")


# ── Task renderers ────────────────────────────────────────────────────


def _render_task(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("id", "name", "type", "frequency_days", "major", "minor", "active", "changed"):
        if key in d:
            _field(console, key, d[key])


def _render_task_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="xlog.id", no_wrap=True)
    table.add_column("Name", style="xlog.name")
    table.add_column("Type")
    table.add_column("Every", justify="right")
    table.add_column("Major")
    table.add_column("Minor")
    table.add_column("Streak", justify="right")
    table.add_column("Due")
    if verbose:
        table.add_column("Last done", style="dim")

    for item in items:
        due = str(item.get("due") or "")
        if item.get("overdue"):
            due_cell = Text(f"{due} (overdue)", style="xlog.loss")
        elif not item.get("active", True):
            due_cell = Text("paused", style="dim")
        else:
            due_cell = Text(due)
        row: list[Any] = [
            str(item["id"]),
            item["name"],
            Text(item["type"], style=style_for_type(item["type"])),
            f"{item['frequency_days']}d" if item["frequency_days"] else "once",
            item.get("major", ""),
            item.get("minor", ""),
            str(item["streak"]),
            due_cell,
        ]
        if verbose:
            row.append(str(item.get("last_done") or ""))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} tasks")


# ── Profile renderers ─────────────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "user", d["user_name"])
    _field(console, "data_dir", d["data_dir"])
    for domain in d["domains"]:
        names = ", ".join(e["name"] for e in domain["elements"])
        console.print(Text(f"  {domain['name']}: ", style="xlog.key"), names, sep="")
    if d.get("login_task"):
        _field(console, "login_task", d["login_task"]["name"])


def _render_profile(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    header = Text()
    header.append(d["user_name"], style="xlog.name")
    header.append(f"   profile XP {d['profile_xp']:.2f}")
    console.print(Panel(_rank_bar(d["rank"]), title=header, expand=False))

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Domain", style="xlog.name")
    table.add_column("XP", justify="right")
    table.add_column("Rank", style="xlog.rank")
    table.add_column("Focus", style="xlog.focus")
    for domain in d["domains"]:
        table.add_row(domain["name"], f"{domain['xp']:.0f}", domain["rank"], domain["focus"] or "")
    console.print(table)

    days_left = d["days_left"]
    if days_left >= 0:
        console.print(f"\n{days_left} days left of {d['horizon_years']} years")
    else:
        console.print(f"\nHorizon passed {-days_left} days ago")


def _render_domain(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    console.print(Text(f"{d['name']}  {d['xp']:.0f} XP", style="xlog.name"))
    console.print(_rank_bar(d["rank"]))
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Element", style="xlog.name")
    table.add_column("XP", justify="right")
    table.add_column("")
    for element in d["elements"]:
        table.add_row(
            element["name"],
            Text(str(element["xp"]), style=style_for_delta(min(element["xp"], 0))),
            Text("focus", style="xlog.focus") if element["is_focus"] else "",
        )
    console.print(table)


# ── Upgrade renderer ──────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    if "pending" in d:
        _field(console, "current", d.get("current"))
        _field(console, "head", d.get("head"))
        for rev in d["pending"]:
            console.print(f"  pending: {rev['revision']}  {rev['description']}")
        if not d["pending"]:
            console.print("  Database is up to date.")
        return
    for key in ("applied_count", "current", "backup_path", "message", "stamped"):
        if key in d:
            _field(console, key, d[key])


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    # Progression
    "complete_task": _render_completion,
    "complete_tasks": _render_completion_batch,
    "grant_xp": _render_grant,
    "set_focus": _render_focus,
    "compute_rank": _render_rank,
    # Daily cycle
    "sweep_penalties": _render_sweep,
    "log_today": _render_snapshot,
    "history": _render_history,
    # Tasks
    "create_task": _render_task,
    "edit_task": _render_task,
    "delete_task": _render_task,
    "set_active": _render_task,
    "list_tasks": _render_task_table,
    "due_tasks": _render_task_table,
    # Profile
    "init": _render_init,
    "profile": _render_profile,
    "domain": _render_domain,
    # Upgrade
    "upgrade": _render_upgrade,
}
