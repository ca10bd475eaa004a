"""Minimal calldata helpers for the handful of calls the harness sends."""

from __future__ import annotations

from eth_abi import decode
from eth_abi import encode as abi_encode
from eth_utils.crypto import keccak


def selector(signature: str) -> bytes:
    """4-byte function selector, e.g. ``selector("approve(address,uint256)")``."""
    return keccak(text=signature)[:4]


def _arg_types(signature: str) -> list[str]:
    inner = signature[signature.index("(") + 1 : signature.rindex(")")]
    return [t for t in inner.split(",") if t]


def encode_call(signature: str, *args: object) -> bytes:
    """Selector followed by the ABI-encoded arguments."""
    types = _arg_types(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} expects {len(types)} arguments, got {len(args)}"
        )
    return selector(signature) + abi_encode(types, list(args))


def decode_uint256(raw: bytes) -> int:
    (value,) = decode(["uint256"], raw)
    return int(value)


ERC20_APPROVE = "approve(address,uint256)"
ERC20_TRANSFER = "transfer(address,uint256)"
ERC20_BALANCE_OF = "balanceOf(address)"
ROUTER_GRANT_ROLE = "grantRole(bytes32,address)"
ROUTER_SET_IMPLEMENTATION = "setImplementation(bytes4,address)"
