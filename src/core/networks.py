"""
Per-network address tables.

The tables below are read-only defaults. The harness never reads them
directly: callers resolve a ``NetworkConfig`` with ``load_network_config``
and pass it in, optionally overriding addresses from an env mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping, Optional

from .base_types import Address, AnyToken
from .errors import ConfigurationError
from .storage import StorageLayout


class Network(IntEnum):
    MAINNET = 1
    OPTIMISM = 10
    BSC = 56
    POLYGON = 137
    FANTOM = 250
    BASE = 8453
    ARBITRUM = 42161
    AVALANCHE = 43114


AUGUSTUS_V5 = "0xDEF171Fe48CF0115B1d80b88dc8eAB59176FEe57"
AUGUSTUS_V6 = "0x6A000F20005980200259B80c5102003040001068"
TOKEN_TRANSFER_PROXY = "0x216B4B4Ba9F3e719726886d34a177484278Bfcae"

# Any funded-by-override account works as the gifter; it only needs a
# balance override on the token being gifted.
GIFTER_ADDRESS = "0xb22fc4ec94d555a5049593ca4552c810fb8a6d00"

DEPLOYER_ADDRESS: Mapping[int, str] = MappingProxyType(
    {
        Network.MAINNET: "0xbe0eb53f46cd790cd13851d5eff43d12404d33e8",
        Network.BSC: "0xf68a4b64162906eff0ff6ae34e2bb1cd42fef62d",
        Network.POLYGON: "0x05182E579FDfCf69E4390c3411D8FeA1fb6467cf",
        Network.FANTOM: "0x05182E579FDfCf69E4390c3411D8FeA1fb6467cf",
        Network.AVALANCHE: "0xD6216fC19DB775Df9774a6E33526131dA7D19a2c",
        Network.OPTIMISM: "0xf01121e808F782d7F34E857c27dA31AD1f151b39",
        Network.ARBITRUM: "0xb38e8c17e38363af6ebdcb3dae12e0243582891d",
    }
)

MULTISIG: Mapping[int, str] = MappingProxyType(
    {
        Network.MAINNET: "0x36fEDC70feC3B77CAaf50E6C524FD7e5DFBD629A",
        Network.BSC: "0xf14bed2cf725E79C46c0Ebf2f8948028b7C49659",
        Network.POLYGON: "0x46DF4eb6f7A3B0AdF526f6955b15d3fE02c618b7",
        Network.FANTOM: "0xECaB2dac955b94e49Ec09D6d68672d3B397BbdAd",
        Network.AVALANCHE: "0x1e2ECA5e812D08D2A7F8664D69035163ff5BfEC2",
        Network.OPTIMISM: "0x3b28A6f6291f7e8277751f2911Ac49C585d049f6",
        Network.ARBITRUM: "0x90DfD8a6454CFE19be39EaB42ac93CD850c7f339",
        Network.BASE: "0x6C674c8Df1aC663b822c4B6A56B4E5e889379AE0",
    }
)

# Base has no legacy token transfer proxy; approvals go to the v6 router only.
ROUTER_ADDRESSES: Mapping[int, dict] = MappingProxyType(
    {
        Network.MAINNET: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.BSC: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.POLYGON: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.FANTOM: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.AVALANCHE: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.OPTIMISM: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.ARBITRUM: {"router": AUGUSTUS_V5, "proxy": TOKEN_TRANSFER_PROXY},
        Network.BASE: {"router": AUGUSTUS_V5, "proxy": None},
    }
)

# (balance_slot, allowance_slot, language) for tokens we know how to fund.
TOKEN_LAYOUTS: Mapping[int, dict] = MappingProxyType(
    {
        Network.MAINNET: {
            # WETH9
            "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": (3, 4, "solidity"),
            # USDC (FiatTokenV2)
            "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": (9, 10, "solidity"),
            # USDT
            "0xdAC17F958D2ee523a2206206994597C13D831ec7": (2, 5, "solidity"),
            # DAI
            "0x6B175474E89094C44Da98b954EedeAC495271d0F": (2, 3, "solidity"),
        },
        Network.POLYGON: {
            # WMATIC
            "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270": (3, 4, "solidity"),
        },
    }
)

ROLE_HASHES: Mapping[str, str] = MappingProxyType(
    {
        "adapter": "0x8429d542926e6695b59ac6fbdcd9b37e8b1aeb757afab06ab60b1bb5878c3b49",
        "router": "0x7a05a596cb0ce7fdea8a1e1ec73be300bdb35097c944ce1897202f7a13122eb2",
    }
)


@dataclass(frozen=True)
class NetworkConfig:
    """Addresses and token layouts for a single network."""

    network: int
    router_address: Optional[Address] = None
    router_v6_address: Optional[Address] = None
    token_transfer_proxy: Optional[Address] = None
    deployer_address: Optional[Address] = None
    multisig_address: Optional[Address] = None
    token_layouts: Mapping[Address, StorageLayout] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def has_legacy_proxy(self) -> bool:
        return self.token_transfer_proxy is not None

    def require_router(self) -> Address:
        if self.router_address is None:
            raise ConfigurationError(
                f"No router (whitelist) address set for network {self.network}"
            )
        return self.router_address

    def require_router_v6(self) -> Address:
        if self.router_v6_address is None:
            raise ConfigurationError(f"No v6 router address set for network {self.network}")
        return self.router_v6_address

    def require_proxy(self) -> Address:
        if self.token_transfer_proxy is None:
            raise ConfigurationError(
                f"No token transfer proxy set for network {self.network}"
            )
        return self.token_transfer_proxy

    def require_deployer(self) -> Address:
        if self.deployer_address is None:
            raise ConfigurationError(f"No deployer address set for network {self.network}")
        return self.deployer_address

    def require_multisig(self) -> Address:
        if self.multisig_address is None:
            raise ConfigurationError(
                f"No whitelist owner (multisig) set for network {self.network}"
            )
        return self.multisig_address

    def layout_for(self, token: AnyToken) -> Optional[StorageLayout]:
        return self.token_layouts.get(token.address)


def load_network_config(
    network: int,
    env: Optional[Mapping[str, str]] = None,
    extra_layouts: Optional[Mapping[str, StorageLayout]] = None,
) -> NetworkConfig:
    """
    Resolve the config for ``network`` from the default tables.

    ``env`` may override any address with ``ROUTER_ADDRESS_<n>``,
    ``ROUTER_V6_ADDRESS_<n>``, ``TOKEN_TRANSFER_PROXY_<n>``,
    ``DEPLOYER_ADDRESS_<n>`` and ``MULTISIG_ADDRESS_<n>``. An empty string
    clears the default (useful to exercise the missing-address paths).
    """
    env = env or {}
    routers = ROUTER_ADDRESSES.get(network, {})

    def pick(name: str, default: Optional[str]) -> Optional[Address]:
        value = env.get(f"{name}_{int(network)}", default)
        return Address(value.lower()) if value else None

    layouts: dict[Address, StorageLayout] = {}
    for token_address, (balance_slot, allowance_slot, language) in TOKEN_LAYOUTS.get(
        network, {}
    ).items():
        layouts[Address(token_address.lower())] = StorageLayout(
            balance_slot, allowance_slot, language
        )
    for token_address, layout in (extra_layouts or {}).items():
        layouts[Address(token_address.lower())] = layout

    return NetworkConfig(
        network=int(network),
        router_address=pick("ROUTER_ADDRESS", routers.get("router")),
        router_v6_address=pick("ROUTER_V6_ADDRESS", AUGUSTUS_V6 if routers else None),
        token_transfer_proxy=pick("TOKEN_TRANSFER_PROXY", routers.get("proxy")),
        deployer_address=pick("DEPLOYER_ADDRESS", DEPLOYER_ADDRESS.get(network)),
        multisig_address=pick("MULTISIG_ADDRESS", MULTISIG.get(network)),
        token_layouts=MappingProxyType(layouts),
    )
