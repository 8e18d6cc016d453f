from pathlib import Path

import click

from magnetar.constants import DEPLOYMENTS_DIR, NETWORK_CONSTANTS_FILEPATH
from magnetar.types import ChecksumAddress

constants_option = click.option(
    "--constants",
    "-c",
    "constants_filepath",
    help="Filepath of the network constants YAML.",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=NETWORK_CONSTANTS_FILEPATH,
    show_default=True,
)

constants_network_option = click.option(
    "--constants-network",
    help="Network name to look up in the constants file; defaults to the connected network.",
    type=str,
    required=False,
)

records_dir_option = click.option(
    "--records-dir",
    "-r",
    help="Directory holding the per-chain deployment records.",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEPLOYMENTS_DIR,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign and send every transaction without confirmation prompts.",
    is_flag=True,
)

address_option = click.option(
    "--address",
    "-a",
    help="Only show records that reference this contract address.",
    type=ChecksumAddress(),
    required=False,
)
