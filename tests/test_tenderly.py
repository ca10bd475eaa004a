import pytest
import requests

from core.base_types import Address, TransactionRequest
from core.errors import ConfigurationError, ProviderError
from harness.overrides import StateOverrideBuilder
from simulation.tenderly import TenderlySimulator

PROJECT = "https://api.tenderly.example/api/v1/account/acct/project/proj"


class _Response:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.content = b"" if payload is None else b"{}"
        self.text = "" if payload is None else str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._payload


def _simulation(sim_id, status=True, gas_used=100_000, output="0x", contract=None):
    return {
        "simulation": {"id": sim_id, "status": status},
        "transaction": {
            "status": status,
            "gas_used": gas_used,
            "error_message": None if status else "execution reverted",
            "transaction_info": {
                "contract_address": contract,
                "call_trace": {"output": output},
            },
        },
    }


class _FakeTenderly:
    def __init__(self, simulations):
        self.calls = []
        self._simulations = list(simulations)

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if method == "POST" and url.endswith("/fork"):
            return _Response(
                {"simulation_fork": {"id": "fork-1"}, "root_transaction": {"id": "root-0"}}
            )
        if method == "POST" and url.endswith("/simulate"):
            return _Response(self._simulations.pop(0))
        if method == "DELETE":
            return _Response(None, status_code=204)
        raise AssertionError(f"unexpected call {method} {url}")

    def bodies(self):
        return [kw["json"] for m, url, kw in self.calls if url.endswith("/simulate")]


def _patch(monkeypatch, fake):
    def request(session, method, url, **kwargs):
        return fake(method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", request)


def _simulator():
    return TenderlySimulator(
        1, "acct", "proj", "key", base_url="https://api.tenderly.example/api/v1"
    )


def _tx(sender):
    return TransactionRequest(
        sender=sender, to=Address("0x6a000f20005980200259b80c5102003040001068"), data=b"\x01"
    )


def test_setup_creates_fork_with_access_key(monkeypatch):
    fake = _FakeTenderly([])
    _patch(monkeypatch, fake)

    session = _simulator().setup()

    method, url, kwargs = fake.calls[0]
    assert (method, url) == ("POST", f"{PROJECT}/fork")
    assert kwargs["json"] == {"network_id": "1"}
    assert session.fork_id == "fork-1"
    assert session.rpc_url == "https://rpc.tenderly.co/fork/fork-1"
    assert session._http.headers["X-Access-Key"] == "key"


def test_successful_simulations_chain_root(monkeypatch, sender):
    fake = _FakeTenderly(
        [_simulation("sim-1"), _simulation("sim-2", status=False), _simulation("sim-3")]
    )
    _patch(monkeypatch, fake)
    session = _simulator().setup()

    first = session.simulate(_tx(sender))
    failed = session.simulate(_tx(sender))
    session.simulate(_tx(sender))

    roots = [body.get("root") for body in fake.bodies()]
    assert roots == ["root-0", "sim-1", "sim-1"]
    assert first.success and first.gas_used == 100_000
    assert first.url == "https://dashboard.tenderly.co/acct/proj/fork/fork-1/simulation/sim-1"
    assert not failed.success
    assert failed.error == "execution reverted"


def test_overrides_sent_as_state_objects(monkeypatch, mainnet_config, usdc, sender):
    fake = _FakeTenderly([_simulation("sim-1")])
    _patch(monkeypatch, fake)
    overrides = (
        StateOverrideBuilder(mainnet_config)
        .set_token_balance(mainnet_config, usdc, sender, 10)
        .build()
    )

    _simulator().setup().simulate(_tx(sender), overrides)

    body = fake.bodies()[0]
    assert body["state_objects"] == overrides.for_network(1)
    assert body["from"] == sender.lower
    assert body["input"] == "0x01"
    assert body["gas_price"] == "0"


def test_result_carries_output_and_contract(monkeypatch, sender):
    deployed = "0x000000000000000000000000000000000000c0de"
    fake = _FakeTenderly(
        [_simulation("sim-1", output="0x" + "00" * 31 + "2a", contract=deployed)]
    )
    _patch(monkeypatch, fake)

    result = _simulator().setup().simulate(_tx(sender))

    assert result.return_data == b"\x00" * 31 + b"\x2a"
    assert result.contract_address == Address(deployed)


def test_release_deletes_fork_once(monkeypatch, sender):
    fake = _FakeTenderly([])
    _patch(monkeypatch, fake)
    session = _simulator().setup()

    session.release()
    session.release()

    deletes = [c for c in fake.calls if c[0] == "DELETE"]
    assert len(deletes) == 1
    assert deletes[0][1] == f"{PROJECT}/fork/fork-1"
    with pytest.raises(RuntimeError, match="released"):
        session.simulate(_tx(sender))


def test_http_failure_raises_provider_error(monkeypatch):
    def fake(session, method, url, **kwargs):
        return _Response({"error": "unauthorized"}, status_code=401)

    monkeypatch.setattr(requests.Session, "request", fake)
    with pytest.raises(ProviderError) as exc_info:
        _simulator().setup()
    assert exc_info.value.status == 401


def test_missing_credentials():
    with pytest.raises(ConfigurationError, match="TENDERLY_PROJECT"):
        TenderlySimulator(1, "acct", "", "key")


def test_failed_fork_closes_http_session(monkeypatch):
    closed = []

    def fake(session, method, url, **kwargs):
        return _Response({"error": "quota exceeded"}, status_code=429)

    monkeypatch.setattr(requests.Session, "request", fake)
    monkeypatch.setattr(requests.Session, "close", lambda session: closed.append(session))

    with pytest.raises(ProviderError):
        _simulator().setup()

    assert len(closed) == 1


def test_block_number_does_not_reach_fork_body(monkeypatch, sender):
    fake = _FakeTenderly([_simulation("sim-1")])
    _patch(monkeypatch, fake)

    _simulator().setup().simulate(_tx(sender), block_number=19_000_000)

    assert "block_number" not in fake.bodies()[0]
