"""Command group: task management, plus the ``today`` list."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand, XlogGroup
from xlog.domain.types import TaskType

if TYPE_CHECKING:
    from xlog.commands._context import AppContext

_TYPE_CHOICE = click.Choice([t.value for t in TaskType], case_sensitive=False)

_TASK_EXAMPLES = """\
  xlog task create "Morning run" --type session --every 2 --major Endurance --minor Discipline
  xlog task create "Read SICP ch.1" --type grind --major Coding --minor Mind/Reading
  xlog task edit "Morning run" --every 3
  xlog task pause "Morning run"
  xlog task list --active"""


@click.group(cls=XlogGroup, examples=_TASK_EXAMPLES)
def task() -> None:
    """Create, edit, pause and list tasks."""


@task.command(
    "create",
    examples="""\
  xlog task create "Morning run" --type session --every 2 --major Endurance --minor Discipline
  xlog task create "File taxes" --type grind --major Mind/Discipline --minor Craft/Coding""",
)
@click.argument("name")
@click.option("--type", "task_type", type=_TYPE_CHOICE, default="quick", show_default=True)
@click.option(
    "--every",
    "frequency_days",
    type=int,
    default=0,
    show_default=True,
    help="Repeat every N days (0 = one-time task).",
)
@click.option("--major", required=True, help="Major element (Element or Domain/Element).")
@click.option("--minor", required=True, help="Minor element (Element or Domain/Element).")
@click.pass_obj
def create(
    app: AppContext,
    name: str,
    task_type: str,
    frequency_days: int,
    major: str,
    minor: str,
) -> None:
    """Create a task that awards XP to a major and a minor element."""
    from xlog.services.tasks import TaskService

    app.emit(
        TaskService(app.open_store()).create_task(name, task_type, frequency_days, major, minor)
    )


@task.command(
    "edit",
    examples="""\
  xlog task edit "Morning run" --every 3
  xlog task edit "Morning run" --name "Evening run" --type grind""",
)
@click.argument("ref")
@click.option("--name", "new_name", default=None, help="Rename the task.")
@click.option("--type", "task_type", type=_TYPE_CHOICE, default=None)
@click.option("--every", "frequency_days", type=int, default=None, help="New frequency in days.")
@click.option("--major", default=None, help="New major element.")
@click.option("--minor", default=None, help="New minor element.")
@click.pass_obj
def edit(
    app: AppContext,
    ref: str,
    new_name: str | None,
    task_type: str | None,
    frequency_days: int | None,
    major: str | None,
    minor: str | None,
) -> None:
    """Change some fields of a task; the rest are kept."""
    from xlog.services.tasks import TaskService

    app.emit(
        TaskService(app.open_store()).edit_task(
            ref,
            name=new_name,
            task_type=task_type,
            frequency_days=frequency_days,
            major=major,
            minor=minor,
        )
    )


@task.command("delete")
@click.argument("ref")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def delete(app: AppContext, ref: str, yes: bool) -> None:
    """Delete a task. XP it already awarded is kept."""
    interactive = not app.settings.no_interact and sys.stdin.isatty()
    if interactive and not yes:
        click.confirm(f"Delete task {ref!r}?", abort=True)

    from xlog.services.tasks import TaskService

    app.emit(TaskService(app.open_store()).delete_task(ref))


@task.command("enable")
@click.argument("ref")
@click.pass_obj
def enable(app: AppContext, ref: str) -> None:
    """Re-activate a paused task."""
    from xlog.services.tasks import TaskService

    app.emit(TaskService(app.open_store()).set_active(ref, True))


@task.command("pause")
@click.argument("ref")
@click.pass_obj
def pause(app: AppContext, ref: str) -> None:
    """Pause a task: it is neither listed as due nor penalized."""
    from xlog.services.tasks import TaskService

    app.emit(TaskService(app.open_store()).set_active(ref, False))


@task.command("list")
@click.option("--active", "active_only", is_flag=True, help="Hide paused tasks.")
@click.pass_obj
def list_cmd(app: AppContext, active_only: bool) -> None:
    """List all tasks."""
    from xlog.services.tasks import TaskService

    app.emit(TaskService(app.open_store()).list_tasks(include_inactive=not active_only))


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog today
  xlog --today 2025-03-01 today
  xlog -q today | xargs -d '\\n' xlog done""",
)
@click.pass_obj
def today(app: AppContext) -> None:
    """List the tasks due today."""
    from xlog.services.tasks import TaskService

    app.emit(TaskService(app.open_store()).due_tasks(today=app.today))
