import itertools

import pytest
from eth_utils import to_checksum_address

from magnetar.networks import NetworkConstantTable
from magnetar.orchestrator import DeploymentOrchestrator
from magnetar.params import ContractDeploymentClient, DeploymentFailure
from magnetar.registry import DeploymentRecordStore

CHAIN_ID = 11155111
NETWORK = "testnet"


def address(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


TEAM = address(0x7EA)
V2_ROUTER = address(0x2001)
V3_ROUTER = address(0x3001)
V3_FACTORY = address(0x3FAC)
WETH = address(0xE7)
TOKEN_A = address(0xA)
TOKEN_B = address(0xB)

NETWORK_CONSTANTS = {
    NETWORK: {
        "team": TEAM,
        "magnetarV2Router": V2_ROUTER,
        "magnetarV3Router": V3_ROUTER,
        "magnetarV3Factory": V3_FACTORY,
        "weth": WETH,
        "trustedTokens": [TOKEN_A, TOKEN_B],
    },
}


class FakeContract:
    def __init__(self, name, address, args=()):
        self.name = name
        self.address = address
        self.args = args


class FakeDeploymentClient(ContractDeploymentClient):
    """Issues sequential addresses and records every call it receives."""

    def __init__(self, start=0x1000):
        self._addresses = itertools.count(start)
        self.calls = list()
        self.failing_toggles = set()
        self.failing_deployments = set()

    def deploy(self, contract_name, *args):
        self.calls.append(("deploy", contract_name, args))
        if contract_name in self.failing_deployments:
            raise DeploymentFailure(f"Deployment of {contract_name} reverted")
        return FakeContract(contract_name, address(next(self._addresses)), args)

    def attach(self, contract_name, address):
        self.calls.append(("attach", contract_name, address))
        return FakeContract(contract_name, address)

    def transact(self, handle, method_name, *args):
        self.calls.append(("transact", method_name, args))
        if method_name == "switchRouterActiveStatus" and args[0] in self.failing_toggles:
            raise DeploymentFailure(f"{method_name} reverted for {args[0]}")

    @property
    def deployed(self):
        return [call[1] for call in self.calls if call[0] == "deploy"]

    @property
    def transacted(self):
        return [(call[1], call[2]) for call in self.calls if call[0] == "transact"]


@pytest.fixture
def constants_table():
    return NetworkConstantTable.from_dict(NETWORK_CONSTANTS)


@pytest.fixture
def client():
    return FakeDeploymentClient()


@pytest.fixture
def store(tmp_path):
    return DeploymentRecordStore(directory=tmp_path / "deployments")


@pytest.fixture
def orchestrator(constants_table, client, store):
    return DeploymentOrchestrator(constants=constants_table, client=client, store=store)
