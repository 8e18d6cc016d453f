from pathlib import Path
from typing import Any, List, NamedTuple, Optional

from ape.api import AccountAPI
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from magnetar.constants import (
    FEE_BASIS_POINTS,
    MAGNETAR_V2_ROUTER,
    MAGNETAR_V3_ROUTER,
    ROUTERS_FIELD,
    SWAP_EXECUTOR,
    SWAP_EXECUTOR_FIELD,
    V2_SWAP_EXECUTOR,
    V2_SWAP_EXECUTOR_FIELD,
    V3_SWAP_EXECUTOR,
    V3_SWAP_EXECUTOR_FIELD,
)
from magnetar.networks import NetworkConstants, NetworkConstantTable, NetworkName
from magnetar.params import ApeDeploymentClient, ContractDeploymentClient, DeploymentFailure
from magnetar.registry import ChainId, DeploymentRecordStore, MissingRecordError

# Positional: [v2 adapter, v3 adapter]
RouterSet = List[ChecksumAddress]


class RouterToggleOutcome(NamedTuple):
    """The result of switching the active status of a single router on the executor."""

    router: ChecksumAddress
    error: Optional[DeploymentFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class RouterReconciliationError(Exception):
    """Raised when toggling one or more previously recorded routers failed."""

    def __init__(self, outcomes: List[RouterToggleOutcome], routers: RouterSet):
        self.outcomes = outcomes
        # deployed during the failed run, not yet added to the executor
        self.routers = routers
        failed = [outcome.router for outcome in outcomes if not outcome.succeeded]
        super().__init__(
            f"Failed to switch the active status of {len(failed)} of {len(outcomes)} "
            f"router(s): {', '.join(failed)}. "
            f"Deployed routers not added to the executor: {', '.join(routers)}"
        )

    @property
    def failed(self) -> List[RouterToggleOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


class CoreResult(NamedTuple):
    routers: RouterSet
    swap_executor: Any
    record_filepath: Path


class IntegrationResult(NamedTuple):
    routers: RouterSet
    previous_routers: RouterSet
    toggled: List[RouterToggleOutcome]
    swap_executor: Any
    record_filepath: Path


class UnitsResult(NamedTuple):
    v2_swap_executor: Any
    v3_swap_executor: Any
    record_filepath: Path


class DeploymentOrchestrator:
    """
    Deploys router adapters and swap executors for a single network and
    reconciles the results into that network's deployment record.
    """

    def __init__(
        self,
        constants: NetworkConstantTable,
        client: ContractDeploymentClient,
        store: DeploymentRecordStore,
    ):
        self.constants = constants
        self.client = client
        self.store = store

    @classmethod
    def from_ape(
        cls,
        constants_filepath: Path,
        records_dir: Path,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
    ) -> "DeploymentOrchestrator":
        """Builds an orchestrator for the connected ape provider and account."""
        constants = NetworkConstantTable.from_yaml(constants_filepath)
        store = DeploymentRecordStore(directory=records_dir)
        client = ApeDeploymentClient(account=account, autosign=autosign)
        return cls(constants=constants, client=client, store=store)

    def _deploy_routers(self, constants: NetworkConstants) -> RouterSet:
        v2_router = self.client.deploy(MAGNETAR_V2_ROUTER, constants.magnetar_v2_router)
        v3_router = self.client.deploy(
            MAGNETAR_V3_ROUTER,
            constants.magnetar_v3_router,
            constants.magnetar_v3_factory,
        )
        return [to_checksum_address(v2_router.address), to_checksum_address(v3_router.address)]

    def deploy_core(self, network: NetworkName, chain_id: ChainId) -> CoreResult:
        """Deploys both router adapters and the aggregate swap executor."""
        constants = self.constants.resolve(network)

        routers = self._deploy_routers(constants)
        swap_executor = self.client.deploy(
            SWAP_EXECUTOR,
            constants.team,
            routers,
            FEE_BASIS_POINTS,
            constants.weth,
            list(constants.trusted_tokens),
        )

        record_filepath = self.store.save(
            chain_id,
            {ROUTERS_FIELD: routers, SWAP_EXECUTOR_FIELD: swap_executor.address},
        )
        return CoreResult(
            routers=routers, swap_executor=swap_executor, record_filepath=record_filepath
        )

    def _switch_router_statuses(
        self, swap_executor: Any, routers: RouterSet
    ) -> List[RouterToggleOutcome]:
        """
        Switches the active status of each router one transaction at a time.
        This flips the status: an already inactive router is reactivated.
        """
        outcomes = list()
        for router in routers:
            try:
                self.client.transact(swap_executor, "switchRouterActiveStatus", router)
            except DeploymentFailure as e:
                print(f"(!) Failed to switch active status of router {router}: {e}")
                outcomes.append(RouterToggleOutcome(router=router, error=e))
            else:
                outcomes.append(RouterToggleOutcome(router=router))
        return outcomes

    def deploy_integration(self, network: NetworkName, chain_id: ChainId) -> IntegrationResult:
        """
        Deploys fresh router adapters and promotes them on the already
        deployed swap executor, replacing the recorded router set.

        When some previous routers fail to switch, the record keeps only
        those routers and RouterReconciliationError is raised before the
        new routers are added.
        """
        constants = self.constants.resolve(network)
        # the recorded executor is required before any transaction is sent
        record = self.store.load(chain_id)
        if SWAP_EXECUTOR_FIELD not in record:
            raise MissingRecordError(
                f"Deployment record for chain id {chain_id} has no swap executor."
            )
        previous_routers = [to_checksum_address(r) for r in record.get(ROUTERS_FIELD, [])]

        routers = self._deploy_routers(constants)

        swap_executor = self.client.attach(SWAP_EXECUTOR, record[SWAP_EXECUTOR_FIELD])
        self.client.transact(swap_executor, "setTrustedTokens", list(constants.trusted_tokens))

        outcomes = self._switch_router_statuses(swap_executor, previous_routers)
        failed = [outcome.router for outcome in outcomes if not outcome.succeeded]
        if failed:
            # only the routers that were not switched are toggled again on a retry
            self.store.save(chain_id, {ROUTERS_FIELD: failed})
            raise RouterReconciliationError(outcomes, routers=routers)

        self.client.transact(swap_executor, "addRouters", routers)

        record_filepath = self.store.save(chain_id, {ROUTERS_FIELD: routers})
        return IntegrationResult(
            routers=routers,
            previous_routers=previous_routers,
            toggled=outcomes,
            swap_executor=swap_executor,
            record_filepath=record_filepath,
        )

    def deploy_units(self, network: NetworkName, chain_id: ChainId) -> UnitsResult:
        """Deploys the standalone single-version swap executors."""
        constants = self.constants.resolve(network)
        # the record is merged into, never created here
        self.store.load(chain_id)

        trusted_tokens = list(constants.trusted_tokens)
        v2_swap_executor = self.client.deploy(
            V2_SWAP_EXECUTOR,
            constants.team,
            constants.magnetar_v2_router,
            FEE_BASIS_POINTS,
            constants.weth,
            trusted_tokens,
        )
        v3_swap_executor = self.client.deploy(
            V3_SWAP_EXECUTOR,
            constants.team,
            constants.magnetar_v3_router,
            constants.magnetar_v3_factory,
            FEE_BASIS_POINTS,
            constants.weth,
            trusted_tokens,
        )

        record_filepath = self.store.save(
            chain_id,
            {
                V2_SWAP_EXECUTOR_FIELD: v2_swap_executor.address,
                V3_SWAP_EXECUTOR_FIELD: v3_swap_executor.address,
            },
        )
        return UnitsResult(
            v2_swap_executor=v2_swap_executor,
            v3_swap_executor=v3_swap_executor,
            record_filepath=record_filepath,
        )
