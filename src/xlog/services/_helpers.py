"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import date, datetime


def today_local() -> date:
    """Today's calendar date in the user's local time zone."""
    return datetime.now().astimezone().date()


def resolve_today(today: date | None) -> date:
    """Use the caller's date when given, else the local clock."""
    return today if today is not None else today_local()
