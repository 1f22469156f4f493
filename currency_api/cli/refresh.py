"""CLI for running one rate refresh cycle."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from currency_api.services.refresh import RefreshStatus, get_coordinator


@click.command("refresh-rates")
@with_appcontext
def refresh_rates() -> None:
    """Fetch today's rates and install them in this process and the cache."""

    coordinator = get_coordinator(current_app)
    if coordinator is None:
        raise click.ClickException("Refresh coordinator is not configured.")

    click.echo("Fetching latest exchange rates...")
    outcome = coordinator.trigger("cli")
    if outcome.status is RefreshStatus.INSTALLED:
        cache_note = "" if outcome.cache_written else " (cache not updated)"
        click.echo(f"Installed rates for {outcome.snapshot_date.isoformat()}{cache_note}.")
        return
    if outcome.status is RefreshStatus.COALESCED:
        click.echo("A refresh is already in progress.")
        return
    raise click.ClickException(f"Refresh failed: {outcome.error}")
