from __future__ import annotations

import typer

from extrinsic_ranker.commands.rank import expiries, fridays, rank


def register(app: typer.Typer) -> None:
    app.command("rank")(rank)
    app.command("expiries")(expiries)
    app.command("fridays")(fridays)


__all__ = ["expiries", "fridays", "rank", "register"]
