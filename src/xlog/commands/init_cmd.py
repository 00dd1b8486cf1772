"""Command: profile initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand

if TYPE_CHECKING:
    from xlog.commands._context import AppContext

_INIT_EXAMPLES = """\
  xlog init
  xlog init --name Sam \\
    --domain "Body:Strength,Endurance" --domain "Mind:Focus,Discipline" \\
    --domain "Craft:Coding,Writing" --domain "Social:Family,Friends"
  xlog --no-interact --data-dir /tmp/xlog init --name test --domain ..."""

DOMAIN_COUNT = 4


def parse_domain_spec(raw: str) -> tuple[str, list[str]]:
    """Parse ``"Domain:Element1,Element2"`` into a name and element list."""
    name, sep, rest = raw.partition(":")
    if not sep or not name.strip():
        msg = f"Expected 'Domain:Element1,Element2', got {raw!r}"
        raise click.BadParameter(msg, param_hint="--domain")
    elements = [e.strip() for e in rest.split(",") if e.strip()]
    return name.strip(), elements


@click.command("init", cls=XlogCommand, examples=_INIT_EXAMPLES)
@click.option("--name", default=None, help="Your name.")
@click.option(
    "--domain",
    "domain_specs",
    multiple=True,
    help="A domain and its elements as 'Domain:Element1,Element2' (give exactly four).",
)
@click.pass_obj
def init_cmd(app: AppContext, name: str | None, domain_specs: tuple[str, ...]) -> None:
    """Create your profile, its four domains and their elements."""
    interactive = not app.settings.no_interact and sys.stdin.isatty()

    if name is None:
        if not interactive:
            raise click.UsageError("--name is required with --no-interact")
        name = click.prompt("Your name")

    domains: dict[str, list[str]] = {}
    for spec in domain_specs:
        domain_name, elements = parse_domain_spec(spec)
        domains[domain_name] = elements

    if not domain_specs and interactive:
        for index in range(1, DOMAIN_COUNT + 1):
            domain_name = click.prompt(f"Domain {index} name").strip()
            raw = click.prompt(f"Elements of {domain_name} (comma-separated)")
            domains[domain_name] = [e.strip() for e in raw.split(",") if e.strip()]

    from xlog.services.setup import SetupService

    daily = app.settings.daily
    app.emit(
        SetupService(app.open_store(daily=False)).initialize(
            name,
            domains,
            today=app.today,
            login_task=daily.login_task,
            login_element=daily.login_element,
        )
    )
