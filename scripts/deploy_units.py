#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from magnetar.options import (
    autosign_option,
    constants_network_option,
    constants_option,
    records_dir_option,
)
from magnetar.orchestrator import DeploymentOrchestrator


@click.command(cls=ConnectedProviderCommand, name="deploy-units")
@account_option()
@network_option(required=True)
@constants_option
@constants_network_option
@records_dir_option
@autosign_option
def cli(account, network, constants_filepath, constants_network, records_dir, autosign):
    """Deploy the standalone V2SwapExecutor and V3SwapExecutor."""
    network_name = constants_network or network.name
    click.echo(f"Connected to {network.name} network (chain id {network.chain_id}).")

    orchestrator = DeploymentOrchestrator.from_ape(
        constants_filepath=constants_filepath,
        records_dir=records_dir,
        account=account,
        autosign=autosign,
    )
    result = orchestrator.deploy_units(network=network_name, chain_id=network.chain_id)

    click.secho(f"V2SwapExecutor: {result.v2_swap_executor.address}", fg="cyan")
    click.secho(f"V3SwapExecutor: {result.v3_swap_executor.address}", fg="cyan")
    click.secho(f"(i) Deployment record written to {result.record_filepath}", fg="green")


if __name__ == "__main__":
    cli()
