from pathlib import Path

import magnetar

#
# Filesystem
#

MAGNETAR_DIR = Path(magnetar.__file__).parent
NETWORK_CONSTANTS_FILEPATH = MAGNETAR_DIR / "network_constants.yml"
DEPLOYMENTS_DIR = MAGNETAR_DIR / "deployments"

RECORD_FILENAME_PREFIX = "CoreOutput"

#
# Contracts
#

MAGNETAR_V2_ROUTER = "MagnetarV2Router"
MAGNETAR_V3_ROUTER = "MagnetarV3Router"
SWAP_EXECUTOR = "SwapExecutor"
V2_SWAP_EXECUTOR = "V2SwapExecutor"
V3_SWAP_EXECUTOR = "V3SwapExecutor"

# 10%
FEE_BASIS_POINTS = 1000

#
# Deployment record fields
#

ROUTERS_FIELD = "routers"
SWAP_EXECUTOR_FIELD = "swapExecutor"
V2_SWAP_EXECUTOR_FIELD = "v2SwapExecutor"
V3_SWAP_EXECUTOR_FIELD = "v3SwapExecutor"

RECORD_FIELDS = (
    ROUTERS_FIELD,
    SWAP_EXECUTOR_FIELD,
    V2_SWAP_EXECUTOR_FIELD,
    V3_SWAP_EXECUTOR_FIELD,
)

#
# Local networks
#

LOCAL_NETWORKS = ("local", "hardhat", "foundry")
