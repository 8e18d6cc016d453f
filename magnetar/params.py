import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, List

from ape import networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import ApeException
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from web3.auto import w3

from magnetar.confirm import _confirm_constructor_args, _confirm_run, _confirm_transaction
from magnetar.networks import is_local_network
from magnetar.utils import get_contract_container


class DeploymentFailure(Exception):
    """Raised when a contract creation or configuration transaction fails."""


class ContractDeploymentClient(ABC):
    """
    Deploys, attaches to and transacts with contracts on the connected network.

    Every call blocks until the underlying transaction is confirmed.
    """

    @abstractmethod
    def deploy(self, contract_name: str, *args) -> Any:
        """Deploys a new instance of contract_name and returns a handle to it."""
        raise NotImplementedError

    @abstractmethod
    def attach(self, contract_name: str, address: ChecksumAddress) -> Any:
        """
        Returns a handle to an existing contract without sending a transaction.
        The address is not checked to hold a contract of the given kind.
        """
        raise NotImplementedError

    @abstractmethod
    def transact(self, handle: Any, method_name: str, *args) -> Any:
        """Calls a state-changing method on a contract handle."""
        raise NotImplementedError


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ValueError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ValueError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _resolve_constructor_args(
    container: ContractContainer, args: typing.Sequence[Any]
) -> OrderedDict:
    """Names the constructor arguments after the ABI and checks their types."""
    contract_name = container.contract_type.name
    abi_inputs = container.constructor.abi.inputs
    if len(args) != len(abi_inputs):
        raise ValueError(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )

    resolved_params = OrderedDict()
    for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
        if not w3.is_encodable(abi_input.type, value):
            raise ValueError(
                f"{contract_name} constructor parameter at position {position} has a value "
                f"'{value}' whose type does not match expected ABI type '{abi_input.type}'"
            )
        resolved_params[abi_input.name or f"arg{position}"] = value
    return resolved_params


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def _transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _confirm_transaction(method.contract.contract_type.name, method.abis[0].name)

        try:
            return method(*args, sender=self._account)
        except ApeException as e:
            raise DeploymentFailure(f"Transaction {method} failed: {e}") from e


class ApeDeploymentClient(Transactor, ContractDeploymentClient):
    """Deployment client backed by the ape project and the selected account."""

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        super().__init__(account=account, autosign=autosign)
        self._print_deployment_info()

        if not self._autosign and not is_local_network():
            _confirm_run(networks.provider.network.name, networks.provider.network.chain_id)

    def deploy(self, contract_name: str, *args) -> ContractInstance:
        container = get_contract_container(contract_name)
        resolved_params = _resolve_constructor_args(container, args)
        if not self._autosign:
            _confirm_constructor_args(resolved_params, contract_name)
        else:
            print(f"\nDeploying {contract_name}")

        try:
            instance = self._account.deploy(container, *resolved_params.values())
        except ApeException as e:
            raise DeploymentFailure(f"Deployment of {contract_name} failed: {e}") from e

        print(f"(i) {contract_name} deployed at {instance.address}")
        return instance

    def attach(self, contract_name: str, address: ChecksumAddress) -> ContractInstance:
        container = get_contract_container(contract_name)
        print(f"\nAttaching to {contract_name} at {address}")
        return container.at(to_checksum_address(address))

    def transact(self, handle: ContractInstance, method_name: str, *args) -> ReceiptAPI:
        method = getattr(handle, method_name)
        return self._transact(method, *args)

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
