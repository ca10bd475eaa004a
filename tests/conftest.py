"""Shared fixtures; also puts ``src/`` on the import path."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    src_value = str(src_path)
    if src_value not in sys.path:
        sys.path.insert(0, src_value)


_ensure_src_on_path()

from core.base_types import ETHER_ADDRESS, Address, Token  # noqa: E402
from core.networks import Network, load_network_config  # noqa: E402

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
SENDER = "0x000000000000000000000000000000000000beef"


@pytest.fixture
def mainnet_config():
    return load_network_config(Network.MAINNET)


@pytest.fixture
def base_config():
    return load_network_config(Network.BASE)


@pytest.fixture
def eth():
    return Token(Address(ETHER_ADDRESS), 18, "ETH")


@pytest.fixture
def usdc():
    return Token(Address(USDC), 6, "USDC")


@pytest.fixture
def weth():
    return Token(Address(WETH), 18, "WETH")


@pytest.fixture
def sender():
    return Address(SENDER)
