import pytest

from config import HarnessSettings
from core.base_types import Address
from core.errors import ConfigurationError


def test_from_env_reads_settings(tmp_path):
    bytecode = tmp_path / "Adapter.bin"
    bytecode.write_text("0x6080604052\n")
    settings = HarnessSettings.from_env(
        {
            "E2E_TEST_ENDPOINT": "https://api.example",
            "TENDERLY_ACCOUNT_ID": "acct",
            "TENDERLY_PROJECT": "proj",
            "TENDERLY_ACCESS_KEY": "key",
            "HTTP_PROVIDER_1": "https://rpc.example/1",
            "HTTP_PROVIDER_137": "https://rpc.example/137",
            "HTTP_PROVIDER_": "ignored",
            "DEPLOYED_TEST_CONTRACT_ADDRESS": "0x000000000000000000000000000000000000c0de",
            "TEST_CONTRACT_TYPE": "Router",
            "TEST_CONTRACT_BYTECODE_PATH": str(bytecode),
            "MULTISIG_ADDRESS_1": "",
            "UNRELATED": "x",
        }
    )

    assert settings.testing_endpoint == "https://api.example"
    assert settings.has_tenderly
    assert settings.rpc_url(1) == "https://rpc.example/1"
    assert settings.rpc_url(137) == "https://rpc.example/137"
    assert settings.rpc_url(56) is None
    assert settings.deployed_contract == Address("0x000000000000000000000000000000000000c0de")
    assert settings.contract_type == "router"
    assert settings.contract_bytecode() == bytes.fromhex("6080604052")
    assert settings.address_env == {"MULTISIG_ADDRESS_1": ""}
    assert settings.tenderly_base_url == "https://api.tenderly.co/api/v1"


def test_from_env_defaults():
    settings = HarnessSettings.from_env({})
    assert settings.testing_endpoint is None
    assert not settings.has_tenderly
    assert settings.contract_type == "adapter"
    assert settings.contract_bytecode() is None


def test_bad_contract_type():
    with pytest.raises(ConfigurationError, match="TEST_CONTRACT_TYPE"):
        HarnessSettings.from_env({"TEST_CONTRACT_TYPE": "oracle"})


def test_unreadable_bytecode(tmp_path):
    settings = HarnessSettings.from_env(
        {"TEST_CONTRACT_BYTECODE_PATH": str(tmp_path / "missing.bin")}
    )
    with pytest.raises(ConfigurationError, match="bytecode"):
        settings.contract_bytecode()
