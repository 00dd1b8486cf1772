"""Commands: task completion, ad-hoc XP grants, and focus."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand
from xlog.domain.types import TaskType
from xlog.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from xlog.commands._context import AppContext


def merge_completions(results: list[ServiceResult]) -> ServiceResult:
    """Fold per-task completion results into one ``complete_tasks`` result.

    Tasks that could not be completed become warnings; the merged result
    only fails when nothing was completed.
    """
    op = "complete_tasks"
    completed = [r.data for r in results if r.ok]
    warnings = [w for r in results for w in r.warnings]
    errors = [r.error for r in results if not r.ok and r.error is not None]

    if not completed:
        first = errors[0] if errors else None
        return failure(
            op,
            first.code if first else "NOT_FOUND",
            "; ".join(e.message for e in errors) or "No tasks completed",
            detail={"errors": [e.model_dump() for e in errors]},
            warnings=warnings,
        )
    warnings.extend(e.message for e in errors)
    return ServiceResult(
        ok=True,
        op=op,
        data={"count": len(completed), "completed": completed},
        warnings=warnings,
    )


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog done "Morning run"
  xlog done "Morning run" "Read SICP ch.1"
  xlog --today 2025-03-01 done 'Morning run'""",
)
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def done(app: AppContext, names: tuple[str, ...]) -> None:
    """Complete one or more tasks by name."""
    from xlog.services.progression import ProgressionService

    svc = ProgressionService(app.open_store())
    results = [svc.complete_task_by_name(name, today=app.today) for name in names]
    app.emit(results[0] if len(results) == 1 else merge_completions(results))


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog grant quick Strength Discipline
  xlog grant grind Coding Mind/Reading""",
)
@click.argument(
    "task_type",
    metavar="TYPE",
    type=click.Choice([t.value for t in TaskType], case_sensitive=False),
)
@click.argument("major")
@click.argument("minor")
@click.pass_obj
def grant(app: AppContext, task_type: str, major: str, minor: str) -> None:
    """Award a task type's base XP to two elements without a task."""
    from xlog.services.progression import ProgressionService

    app.emit(ProgressionService(app.open_store()).grant_xp(task_type, major, minor))


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog focus Coding
  xlog focus Mind/Discipline""",
)
@click.argument("element")
@click.pass_obj
def focus(app: AppContext, element: str) -> None:
    """Make ELEMENT the focus of its domain (+10% XP on tasks it leads)."""
    from xlog.services.progression import ProgressionService

    app.emit(ProgressionService(app.open_store()).set_focus_by_name(element))
