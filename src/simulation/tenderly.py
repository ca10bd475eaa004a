"""Forked-state simulator backed by Tenderly forks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import requests

from core.base_types import NULL_ADDRESS, Address, TransactionRequest
from core.errors import ConfigurationError, ProviderError

from .base import SimulationResult, SimulationSession, TransactionSimulator

if TYPE_CHECKING:
    from harness.overrides import StateOverride

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 8_000_000


class TenderlySimulator(TransactionSimulator):
    """
    Creates a Tenderly fork per session.

    Successful simulations become the root of the next one, so setup
    transactions (approvals, deployments, whitelisting) are visible to the
    swap that follows them.
    """

    supports_state_overrides = True

    def __init__(
        self,
        network: int,
        account_id: str,
        project: str,
        access_key: str,
        base_url: str = "https://api.tenderly.co/api/v1",
        dashboard_url: str = "https://dashboard.tenderly.co",
        rpc_base_url: str = "https://rpc.tenderly.co/fork",
        block_number: Optional[int] = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        if not (account_id and project and access_key):
            raise ConfigurationError(
                "TENDERLY_ACCOUNT_ID, TENDERLY_PROJECT and TENDERLY_ACCESS_KEY are required"
            )
        self._network = int(network)
        self._account_id = account_id
        self._project = project
        self._access_key = access_key
        self._base_url = base_url.rstrip("/")
        self._dashboard_url = dashboard_url.rstrip("/")
        self._rpc_base_url = rpc_base_url.rstrip("/")
        self._block_number = block_number
        self._timeout = timeout_seconds

    @property
    def project_url(self) -> str:
        return f"{self._base_url}/account/{self._account_id}/project/{self._project}"

    def setup(self) -> "TenderlySession":
        session = requests.Session()
        session.headers.update({"X-Access-Key": self._access_key})
        body: Dict[str, Any] = {"network_id": str(self._network)}
        if self._block_number is not None:
            body["block_number"] = self._block_number
        try:
            data = _call(session, "POST", f"{self.project_url}/fork", self._timeout, body)
            fork_id = str(data["simulation_fork"]["id"])
        except (KeyError, TypeError) as exc:
            session.close()
            raise ProviderError(f"Unexpected fork response: {data}", body=data) from exc
        except ProviderError:
            session.close()
            raise
        root_id = (data.get("root_transaction") or {}).get("id")
        logger.info("Created Tenderly fork %s on network %s", fork_id, self._network)
        return TenderlySession(
            http=session,
            network=self._network,
            fork_id=fork_id,
            project_url=self.project_url,
            dashboard_url=(
                f"{self._dashboard_url}/{self._account_id}/{self._project}/fork/{fork_id}"
            ),
            rpc_url=f"{self._rpc_base_url}/{fork_id}",
            root_id=root_id,
            timeout=self._timeout,
        )


class TenderlySession(SimulationSession):
    supports_state_overrides = True

    def __init__(
        self,
        http: requests.Session,
        network: int,
        fork_id: str,
        project_url: str,
        dashboard_url: str,
        rpc_url: str,
        root_id: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        self._http = http
        self._network = network
        self.fork_id = fork_id
        self._project_url = project_url
        self._dashboard_url = dashboard_url
        self._rpc_url = rpc_url
        self._root_id = root_id
        self._timeout = timeout
        self._released = False

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def simulate(
        self,
        tx: TransactionRequest,
        overrides: Optional["StateOverride"] = None,
        block_number: Optional[int] = None,
    ) -> SimulationResult:
        # Fork simulations always run on the fork head; block_number is not used.
        if self._released:
            raise RuntimeError(f"Tenderly fork {self.fork_id} already released")
        body: Dict[str, Any] = {
            "network_id": str(self._network),
            "gas": DEFAULT_GAS_LIMIT,
            "gas_price": "0",
            "save": True,
            "save_if_fails": True,
            **tx.to_tenderly(),
        }
        if self._root_id:
            body["root"] = self._root_id
        if overrides is not None:
            state_objects = overrides.for_network(self._network)
            if state_objects:
                body["state_objects"] = state_objects
        logger.debug("Tenderly simulate on fork %s: %s", self.fork_id, body)

        data = _call(
            self._http,
            "POST",
            f"{self._project_url}/fork/{self.fork_id}/simulate",
            self._timeout,
            body,
        )
        result = self._parse(data)
        if result.success:
            self._root_id = (data.get("simulation") or {}).get("id") or self._root_id
        logger.info(
            "Simulation %s gas=%d url=%s",
            "ok" if result.success else "FAILED",
            result.gas_used,
            result.url,
        )
        return result

    def _parse(self, data: Dict[str, Any]) -> SimulationResult:
        try:
            simulation = data.get("simulation") or {}
            transaction = data["transaction"]
            info = transaction.get("transaction_info") or {}
            call_trace = info.get("call_trace") or {}
            success = bool(transaction.get("status", simulation.get("status", False)))
            gas_used = int(transaction.get("gas_used", 0))
            contract = info.get("contract_address")
            output = str(call_trace.get("output") or "0x")
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise ProviderError(f"Unexpected simulation response: {data}", body=data) from exc

        sim_id = simulation.get("id")
        url = f"{self._dashboard_url}/simulation/{sim_id}" if sim_id else None
        return SimulationResult(
            success=success,
            gas_used=gas_used,
            url=url,
            contract_address=(
                Address(contract) if contract and contract != NULL_ADDRESS else None
            ),
            return_data=bytes.fromhex(output[2:]) if output.startswith("0x") else b"",
            error=transaction.get("error_message") or call_trace.get("error"),
        )

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            _call(
                self._http,
                "DELETE",
                f"{self._project_url}/fork/{self.fork_id}",
                self._timeout,
            )
            logger.info("Deleted Tenderly fork %s", self.fork_id)
        finally:
            self._http.close()


def _call(
    http: requests.Session,
    method: str,
    url: str,
    timeout: float,
    json_body: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    resp = http.request(method, url, json=json_body, timeout=timeout)
    try:
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise ProviderError(
            f"Tenderly request failed: {exc}  body={resp.text!r}",
            status=resp.status_code,
            body=resp.text,
        ) from exc
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError(f"Invalid JSON from Tenderly: {resp.text!r}") from exc
