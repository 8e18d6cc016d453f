import sys
from typing import Any, List, Mapping

from ape.utils import ZERO_ADDRESS


def _ask(prompt: str) -> None:
    """Aborts the run unless the operator answers yes."""
    answer = input(f"{prompt} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting Magnetar deployment!")
        sys.exit(-1)


def _contains_zero_address(value) -> bool:
    if isinstance(value, (list, tuple)):
        return any(_contains_zero_address(v) for v in value)
    return value == ZERO_ADDRESS


def _zero_address_params(params: Mapping[str, Any]) -> List[str]:
    return [name for name, value in params.items() if _contains_zero_address(value)]


def _confirm_run(network_name: str, chain_id: int) -> None:
    _ask(f"Start Magnetar deployment on {network_name} (chain id {chain_id})")


def _confirm_transaction(contract_name: str, method_name: str) -> None:
    _ask(f"Send {contract_name}.{method_name}")


def _confirm_constructor_args(params: Mapping[str, Any], contract_name: str) -> None:
    """
    Prints the constructor arguments of a router adapter or swap executor
    and asks the operator to confirm them. Address lists such as the router
    set or the trusted tokens are printed one entry per line.
    """
    if len(params) == 0:
        print(f"\n(i) {contract_name} takes no constructor arguments")
    else:
        print(f"\n{contract_name} constructor arguments")
        for name, value in params.items():
            if isinstance(value, (list, tuple)):
                print(f"\t{name}:")
                for index, item in enumerate(value):
                    print(f"\t\t[{index}] {item}")
            else:
                print(f"\t{name}={value}")

    _ask(f"Deploy {contract_name}")

    zero_params = _zero_address_params(params)
    if zero_params:
        _ask(
            f"(!) Zero address passed to {contract_name} as {', '.join(zero_params)}; "
            "fees or swaps could be routed to 0x0. Deploy anyway"
        )
