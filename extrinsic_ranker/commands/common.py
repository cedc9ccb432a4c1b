from __future__ import annotations

from datetime import date, datetime

import typer

from extrinsic_ranker.analysis.expiry import upcoming_fridays


def _parse_date(value: str) -> date:
    value = value.strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise typer.BadParameter("Invalid date format. Use YYYY-MM-DD (recommended).")


def _resolve_target(value: str | None, *, today: date | None = None) -> date:
    """Explicit --expiry, or the next Friday when omitted."""
    if value is None or not value.strip():
        return upcoming_fridays(1, today=today)[0]
    return _parse_date(value)
