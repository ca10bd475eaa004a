"""
State overrides for sandboxed simulation.

Overrides let a scenario run without real funds: the sender is given a
balance and an allowance by rewriting the token's storage for the duration
of one simulated call. Nothing here is committed to ledger state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from eth_utils.crypto import keccak

from core.base_types import Address, AnyToken
from core.errors import UnsupportedTokenLayoutError
from core.networks import NetworkConfig
from core.storage import StorageLayout, storage_value


@dataclass(frozen=True)
class AccountOverride:
    balance: Optional[int] = None
    storage: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def to_payload(self) -> dict:
        payload: dict[str, object] = {}
        if self.balance is not None:
            payload["balance"] = str(self.balance)
        if self.storage:
            payload["storage"] = {slot: self.storage[slot] for slot in sorted(self.storage)}
        return payload


@dataclass(frozen=True)
class StateOverride:
    """Immutable result of ``StateOverrideBuilder.build()``."""

    accounts: Mapping[tuple[int, Address], AccountOverride]

    @property
    def is_empty(self) -> bool:
        return not self.accounts

    def networks(self) -> list[int]:
        return sorted({network for network, _ in self.accounts})

    def for_network(self, network: int) -> dict[str, dict]:
        """Deterministic ``{account: {balance?, storage?}}`` payload."""
        selected = {
            account.lower: override.to_payload()
            for (net, account), override in self.accounts.items()
            if net == int(network)
        }
        return {account: selected[account] for account in sorted(selected)}

    def digest(self) -> bytes:
        """keccak256 over the canonical JSON of every network's payload."""
        canonical = {str(n): self.for_network(n) for n in self.networks()}
        return keccak(
            json.dumps(canonical, sort_keys=True, separators=(",", ":")).encode("utf-8")
        )


class StateOverrideBuilder:
    """
    Accumulates balance/allowance overrides.

    Calls that touch the same account merge: a later write only replaces the
    exact slot (or native balance) it targets.

    Usage:
        overrides = (StateOverrideBuilder(config)
            .set_native_balance(sender, 2 * amount)
            .set_token_balance(config, usdc, sender, amount)
            .set_token_allowance(config, usdc, sender, router, amount)
            .build())
    """

    def __init__(self, network_config: NetworkConfig):
        self._config = network_config
        self._balances: dict[tuple[int, Address], int] = {}
        self._storage: dict[tuple[int, Address], dict[str, str]] = {}

    def set_native_balance(
        self, account: Address, amount: int, network: Optional[NetworkConfig] = None
    ) -> "StateOverrideBuilder":
        storage_value(amount)  # validates range
        net = (network or self._config).network
        self._balances[(net, Address.coerce(account))] = amount
        return self

    def set_token_balance(
        self,
        network: NetworkConfig,
        token: AnyToken,
        account: Address,
        amount: int,
    ) -> "StateOverrideBuilder":
        if token.is_native:
            return self.set_native_balance(account, amount, network)
        layout = self._resolve_layout(network, token)
        self._write(
            network.network,
            token.address,
            layout.balance_key(Address.coerce(account)),
            storage_value(amount),
        )
        return self

    def set_token_allowance(
        self,
        network: NetworkConfig,
        token: AnyToken,
        owner: Address,
        spender: Address,
        amount: int,
    ) -> "StateOverrideBuilder":
        if token.is_native:
            # Native transfers need no approval.
            return self
        layout = self._resolve_layout(network, token)
        self._write(
            network.network,
            token.address,
            layout.allowance_key(Address.coerce(owner), Address.coerce(spender)),
            storage_value(amount),
        )
        return self

    def build(self) -> StateOverride:
        keys = sorted(
            set(self._balances) | set(self._storage), key=lambda k: (k[0], k[1].lower)
        )
        accounts = {
            key: AccountOverride(
                balance=self._balances.get(key),
                storage=MappingProxyType(dict(self._storage.get(key, {}))),
            )
            for key in keys
        }
        return StateOverride(accounts=MappingProxyType(accounts))

    def _write(self, network: int, contract: Address, slot: str, value: str) -> None:
        self._storage.setdefault((network, contract), {})[slot] = value

    @staticmethod
    def _resolve_layout(network: NetworkConfig, token: AnyToken) -> StorageLayout:
        if token.kind == "simulated":
            return token.layout
        if token.kind == "plain":
            layout = network.layout_for(token)
            if layout is None:
                raise UnsupportedTokenLayoutError(token.address.checksum, network.network)
            return layout
        raise TypeError(f"Unknown token kind: {token.kind!r}")
