"""
Setup transactions that must succeed before a priced swap can be simulated.

Everything here is pure data: building a transaction never talks to the
chain. Approvals are set-to-value (``approve(spender, amount)``), so
repeating the preflight is harmless.
"""

from __future__ import annotations

from typing import Optional

from core.abi import (
    ERC20_APPROVE,
    ERC20_BALANCE_OF,
    ERC20_TRANSFER,
    ROUTER_GRANT_ROLE,
    ROUTER_SET_IMPLEMENTATION,
    encode_call,
    selector,
)
from core.base_types import MAX_UINT, NULL_ADDRESS, Address, AnyToken, TransactionRequest
from core.networks import ROLE_HASHES, NetworkConfig
from pricing.route import ContractMethod


class PreflightAuthorizer:
    def __init__(self, network_config: NetworkConfig):
        self._config = network_config

    @property
    def network(self) -> int:
        return self._config.network

    def build_allowance_tx(
        self,
        token: AnyToken,
        owner: Address,
        spender: Address,
        amount: int = MAX_UINT,
    ) -> TransactionRequest:
        _check_uint(amount)
        return TransactionRequest(
            sender=Address.coerce(owner),
            to=token.address,
            data=encode_call(ERC20_APPROVE, Address.coerce(spender).checksum, amount),
        )

    def allowance_txs(self, token: AnyToken, owner: Address) -> list[TransactionRequest]:
        """
        Approvals a non-native source token needs: the legacy transfer proxy
        when this network has one, then the current router.
        """
        if token.is_native:
            return []
        txs = []
        if self._config.has_legacy_proxy:
            txs.append(
                self.build_allowance_tx(token, owner, self._config.require_proxy())
            )
        txs.append(
            self.build_allowance_tx(token, owner, self._config.require_router_v6())
        )
        return txs

    def build_whitelist_tx(
        self, contract_address: Address, role: str = "adapter"
    ) -> TransactionRequest:
        """Grant ``role`` (``adapter`` or ``router``) to a contract on the router."""
        router = self._config.require_router()
        owner = self._config.require_multisig()
        role_hash = ROLE_HASHES.get(role)
        if role_hash is None:
            raise ValueError(f"Unrecognized role {role!r}")
        return TransactionRequest(
            sender=owner,
            to=router,
            data=encode_call(
                ROUTER_GRANT_ROLE,
                bytes.fromhex(role_hash[2:]),
                Address.coerce(contract_address).checksum,
            ),
        )

    def build_set_implementation_tx(
        self,
        contract_address: Address,
        contract_method: str,
        signature: Optional[str] = None,
    ) -> TransactionRequest:
        """Route calls to ``contract_method`` on the router to a direct-router contract."""
        router = self._config.require_router()
        owner = self._config.require_multisig()
        if signature is None:
            try:
                signature = ContractMethod(contract_method).signature
            except ValueError:
                signature = None
        if not signature:
            raise ValueError(f"No known signature for contract method {contract_method!r}")
        return TransactionRequest(
            sender=owner,
            to=router,
            data=encode_call(
                ROUTER_SET_IMPLEMENTATION,
                selector(signature),
                Address.coerce(contract_address).checksum,
            ),
        )

    def build_deploy_tx(
        self, bytecode: bytes | str, network: Optional[int] = None
    ) -> TransactionRequest:
        if network is not None and int(network) != self._config.network:
            raise ValueError(
                f"Authorizer is configured for network {self._config.network}, not {network}"
            )
        deployer = self._config.require_deployer()
        if isinstance(bytecode, str):
            bytecode = bytes.fromhex(bytecode[2:] if bytecode.startswith("0x") else bytecode)
        if not bytecode:
            raise ValueError("bytecode must not be empty")
        return TransactionRequest(sender=deployer, to=None, data=bytecode)

    def build_transfer_tx(
        self, token: AnyToken, sender: Address, recipient: Address, amount: int
    ) -> TransactionRequest:
        _check_uint(amount)
        if token.is_native:
            return TransactionRequest(
                sender=Address.coerce(sender),
                to=Address.coerce(recipient),
                data=b"",
                value=amount,
            )
        return TransactionRequest(
            sender=Address.coerce(sender),
            to=token.address,
            data=encode_call(ERC20_TRANSFER, Address.coerce(recipient).checksum, amount),
        )

    def build_balance_of_tx(self, token: AnyToken, holder: Address) -> TransactionRequest:
        return TransactionRequest(
            sender=Address(NULL_ADDRESS),
            to=token.address,
            data=encode_call(ERC20_BALANCE_OF, Address.coerce(holder).checksum),
        )


def _check_uint(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError("amount must be int")
    if amount < 0 or amount > MAX_UINT:
        raise ValueError("amount must fit in uint256")
