from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.base_types import Address
from core.errors import ConfigurationError

_ENV_LOADED = False

_ADDRESS_OVERRIDE = re.compile(
    r"^(ROUTER_ADDRESS|ROUTER_V6_ADDRESS|TOKEN_TRANSFER_PROXY|DEPLOYER_ADDRESS|MULTISIG_ADDRESS)_\d+$"
)


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    env_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(dotenv_path=env_path)
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise ConfigurationError(f"{name} env var is required")
    return value


@dataclass(frozen=True)
class HarnessSettings:
    """Everything the harness reads from the environment."""

    testing_endpoint: Optional[str] = None
    tenderly_account_id: Optional[str] = None
    tenderly_project: Optional[str] = None
    tenderly_access_key: Optional[str] = None
    tenderly_base_url: str = "https://api.tenderly.co/api/v1"
    rpc_urls: Mapping[int, str] = field(default_factory=dict)
    deployed_contract: Optional[Address] = None
    contract_type: str = "adapter"
    contract_bytecode_path: Optional[Path] = None
    # ROUTER_ADDRESS_<n> and friends, handed to load_network_config.
    address_env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessSettings":
        if environ is None:
            _load_env()
            environ = os.environ

        rpc_urls = {}
        for key, value in environ.items():
            if key.startswith("HTTP_PROVIDER_") and value:
                suffix = key[len("HTTP_PROVIDER_"):]
                if suffix.isdigit():
                    rpc_urls[int(suffix)] = value

        deployed = environ.get("DEPLOYED_TEST_CONTRACT_ADDRESS") or None
        bytecode_path = environ.get("TEST_CONTRACT_BYTECODE_PATH") or None
        contract_type = (environ.get("TEST_CONTRACT_TYPE") or "adapter").lower()
        if contract_type not in ("adapter", "router"):
            raise ConfigurationError(
                f"TEST_CONTRACT_TYPE must be adapter or router, got {contract_type!r}"
            )

        return cls(
            testing_endpoint=environ.get("E2E_TEST_ENDPOINT") or None,
            tenderly_account_id=environ.get("TENDERLY_ACCOUNT_ID") or None,
            tenderly_project=environ.get("TENDERLY_PROJECT") or None,
            tenderly_access_key=environ.get("TENDERLY_ACCESS_KEY") or None,
            tenderly_base_url=environ.get("TENDERLY_BASE_URL")
            or "https://api.tenderly.co/api/v1",
            rpc_urls=rpc_urls,
            deployed_contract=Address(deployed.lower()) if deployed else None,
            contract_type=contract_type,
            contract_bytecode_path=Path(bytecode_path) if bytecode_path else None,
            address_env={k: v for k, v in environ.items() if _ADDRESS_OVERRIDE.match(k)},
        )

    @property
    def has_tenderly(self) -> bool:
        return bool(
            self.tenderly_account_id and self.tenderly_project and self.tenderly_access_key
        )

    def rpc_url(self, network: int) -> Optional[str]:
        return self.rpc_urls.get(int(network))

    def contract_bytecode(self) -> Optional[bytes]:
        """Test contract bytecode (hex, optionally 0x-prefixed) from disk."""
        if self.contract_bytecode_path is None:
            return None
        try:
            text = self.contract_bytecode_path.read_text().strip()
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read contract bytecode at {self.contract_bytecode_path}"
            ) from exc
        if text.startswith("0x"):
            text = text[2:]
        try:
            return bytes.fromhex(text)
        except ValueError as exc:
            raise ConfigurationError(
                f"{self.contract_bytecode_path} does not contain hex bytecode"
            ) from exc
