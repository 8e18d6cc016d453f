#!/usr/bin/python3

from pathlib import Path

import click
from ape.cli import ConnectedProviderCommand

from magnetar.constants import RECORD_FIELDS, ROUTERS_FIELD
from magnetar.options import address_option, records_dir_option
from magnetar.registry import DeploymentRecordStore
from magnetar.utils import get_chain_name


def _format_chain_name(chain_id: int) -> str:
    """Format the chain name to capitalize each word and join with slashes."""
    try:
        chain_name = get_chain_name(chain_id)
    except ValueError:
        return f"Chain {chain_id}"
    return "/".join(word.capitalize() for word in chain_name.split())


def _display_record(chain_id: int, record: dict) -> None:
    click.secho(f"\n{_format_chain_name(chain_id)} ({chain_id})", fg="yellow")
    for field in RECORD_FIELDS:
        if field not in record:
            continue
        if field == ROUTERS_FIELD:
            click.secho(f"    {field}:", fg="green")
            for index, router in enumerate(record[field], start=1):
                click.secho(f"        {index}. {router}", fg="cyan")
        else:
            click.secho(f"    {field}: ", fg="green", nl=False)
            click.secho(record[field], fg="cyan")


@click.command(cls=ConnectedProviderCommand, name="list-deployments")
@records_dir_option
@address_option
def cli(records_dir: Path, address):
    """List every deployment record, grouped by chain id. Optionally filter by address."""
    store = DeploymentRecordStore(directory=records_dir)
    if address:
        chain_ids = sorted({chain_id for chain_id, _ in store.find(address)})
    else:
        chain_ids = store.chain_ids()
    if not chain_ids:
        click.echo(f"No deployment records found in {records_dir}")
        return
    for chain_id in chain_ids:
        _display_record(chain_id, store.load(chain_id))


if __name__ == "__main__":
    cli()
