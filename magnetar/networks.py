from pathlib import Path
from typing import Dict, List, NamedTuple, Tuple

from ape import networks
from ape.utils import ZERO_ADDRESS
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from magnetar.constants import LOCAL_NETWORKS, NETWORK_CONSTANTS_FILEPATH
from magnetar.utils import ConfigurationError, _load_yaml

NetworkName = str


def is_local_network() -> bool:
    """Returns True if the connected provider is a local development network."""
    return networks.provider.network.name in LOCAL_NETWORKS


class NetworkConstants(NamedTuple):
    """Per-network addresses consumed by the deployment procedures."""

    team: ChecksumAddress
    magnetar_v2_router: ChecksumAddress
    magnetar_v3_router: ChecksumAddress
    magnetar_v3_factory: ChecksumAddress
    weth: ChecksumAddress
    trusted_tokens: Tuple[ChecksumAddress, ...]


# YAML key -> NetworkConstants field
_ADDRESS_KEYS = {
    "team": "team",
    "magnetarV2Router": "magnetar_v2_router",
    "magnetarV3Router": "magnetar_v3_router",
    "magnetarV3Factory": "magnetar_v3_factory",
    "weth": "weth",
}
_TRUSTED_TOKENS_KEY = "trustedTokens"


def _checksum(network: NetworkName, key: str, value) -> ChecksumAddress:
    try:
        address = to_checksum_address(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{key}' for network '{network}' is not a valid address: {value}")
    if address == ZERO_ADDRESS:
        raise ConfigurationError(f"'{key}' for network '{network}' is the zero address")
    return address


def _parse_constants(network: NetworkName, values: dict) -> NetworkConstants:
    if not isinstance(values, dict):
        raise ConfigurationError(f"Malformed constants for network '{network}'.")

    missing = [key for key in (*_ADDRESS_KEYS, _TRUSTED_TOKENS_KEY) if key not in values]
    if missing:
        raise ConfigurationError(
            f"Constants for network '{network}' are missing: {', '.join(missing)}"
        )

    fields = {
        field: _checksum(network, key, values[key]) for key, field in _ADDRESS_KEYS.items()
    }

    trusted_tokens = values[_TRUSTED_TOKENS_KEY]
    if not isinstance(trusted_tokens, list):
        raise ConfigurationError(f"'{_TRUSTED_TOKENS_KEY}' for network '{network}' must be a list")
    fields["trusted_tokens"] = tuple(
        _checksum(network, _TRUSTED_TOKENS_KEY, token) for token in trusted_tokens
    )

    return NetworkConstants(**fields)


class NetworkConstantTable:
    """
    Immutable lookup of network name -> NetworkConstants.

    Every entry is validated when the table is built, so a loaded table
    either resolves a network completely or not at all.
    """

    def __init__(self, entries: Dict[NetworkName, NetworkConstants]):
        self._entries = dict(entries)

    @classmethod
    def from_dict(cls, data: Dict[NetworkName, dict]) -> "NetworkConstantTable":
        if not isinstance(data, dict):
            raise ConfigurationError("Network constants must be a mapping of network names.")
        entries = {
            str(network): _parse_constants(network, values) for network, values in data.items()
        }
        return cls(entries=entries)

    @classmethod
    def from_yaml(cls, filepath: Path = NETWORK_CONSTANTS_FILEPATH) -> "NetworkConstantTable":
        if not filepath.exists():
            raise ConfigurationError(f"No network constants file found at {filepath}")
        data = _load_yaml(filepath) or dict()
        return cls.from_dict(data)

    def resolve(self, network: NetworkName) -> NetworkConstants:
        try:
            return self._entries[network]
        except KeyError:
            raise ConfigurationError(f"No constants found for network '{network}'.")

    def networks(self) -> List[NetworkName]:
        return sorted(self._entries)

    def __contains__(self, network: NetworkName) -> bool:
        return network in self._entries
