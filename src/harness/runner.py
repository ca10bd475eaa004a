from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

from web3 import Web3

from core.abi import decode_uint256
from core.base_types import MAX_UINT, Address, AnyToken
from core.errors import (
    ConfigurationError,
    HarnessError,
    QuoteEmptyError,
    QuoteMismatchError,
    SimulationFailure,
    UnsupportedFeatureError,
)
from core.networks import GIFTER_ADDRESS, NetworkConfig, load_network_config
from pricing.provider import PoolIdentifiers, QuoteProvider, select_quote_provider
from pricing.route import PriceRoute, ProtocolVersion, SwapSide, method_name
from simulation.base import SimulationResult, SimulationSession, TransactionSimulator
from simulation.estimate_gas import EstimateGasSimulator
from simulation.tenderly import TenderlySimulator

from .gas import GasAccuracyEvaluator
from .overrides import StateOverride, StateOverrideBuilder
from .preflight import PreflightAuthorizer
from .scenario import ScenarioContext, ScenarioState, SwapScenario
from .slippage import SlippageBound

if TYPE_CHECKING:
    from config import HarnessSettings

logger = logging.getLogger(__name__)

DEADLINE_SECONDS = 600
BUY_FUNDING = MAX_UINT // 4


class SwapExecutionHarness:
    """
    Runs one swap scenario end to end against a simulator.

    INIT -> PREFLIGHT -> QUOTE -> OVERRIDE -> BUILD -> SIMULATE -> ASSERT
    -> RELEASE -> DONE. Any failure jumps to RELEASE and ends in FAILED;
    the error is re-raised with ``context`` pointing at the scenario
    context. Provider and simulator resources are released on every path.
    """

    def __init__(
        self,
        network_config: NetworkConfig,
        simulator: TransactionSimulator,
        quote_provider: QuoteProvider,
        evaluator: Optional[GasAccuracyEvaluator] = None,
        authorizer: Optional[PreflightAuthorizer] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.network_config = network_config
        self.simulator = simulator
        self.quote_provider = quote_provider
        self.evaluator = evaluator or GasAccuracyEvaluator()
        self.authorizer = authorizer or PreflightAuthorizer(network_config)
        self._clock = clock
        self._sleep = sleep
        self._id_factory = id_factory

    @classmethod
    def from_settings(
        cls,
        settings: "HarnessSettings",
        network: int,
        dex_keys: str | Sequence[str],
        pool_identifiers: Optional[PoolIdentifiers] = None,
        engine: Any = None,
        encoder: Any = None,
        use_estimate_gas: bool = False,
    ) -> "SwapExecutionHarness":
        network_config = load_network_config(network, env=settings.address_env)
        rpc_url = settings.rpc_url(network)

        if use_estimate_gas:
            if not rpc_url:
                raise ConfigurationError(
                    f"HTTP_PROVIDER_{int(network)} is required for estimate-gas simulation"
                )
            simulator: TransactionSimulator = EstimateGasSimulator(rpc_url)
        else:
            simulator = TenderlySimulator(
                network,
                account_id=settings.tenderly_account_id,
                project=settings.tenderly_project,
                access_key=settings.tenderly_access_key,
                base_url=settings.tenderly_base_url,
            )

        w3 = Web3(Web3.HTTPProvider(rpc_url)) if rpc_url else None
        provider = select_quote_provider(
            network,
            dex_keys,
            endpoint=settings.testing_endpoint,
            pool_identifiers=pool_identifiers,
            engine=engine,
            encoder=encoder,
            w3=w3,
        )
        return cls(network_config, simulator, provider)

    def run(self, scenario: SwapScenario) -> ScenarioContext:
        ctx = ScenarioContext(scenario=scenario)
        ctx.history.append(ScenarioState.INIT)
        session: Optional[SimulationSession] = None
        completed = False
        try:
            session = self.simulator.setup()
            self.quote_provider.initialize_pricing()
            if scenario.settle_seconds > 0:
                # In-process pools refresh asynchronously after initialization.
                self._sleep(scenario.settle_seconds)
            if session.rpc_url:
                self.quote_provider.bind_rpc(session.rpc_url)

            self._enter(ctx, ScenarioState.PREFLIGHT)
            self._preflight(ctx, session)

            self._enter(ctx, ScenarioState.QUOTE)
            ctx.route = self._quote(scenario)

            self._enter(ctx, ScenarioState.OVERRIDE)
            ctx.overrides = self._overrides(scenario, ctx.route, session)

            self._enter(ctx, ScenarioState.BUILD)
            ctx.bound = SlippageBound.from_route(ctx.route, scenario.slippage_bps)
            ctx.deadline = int(self._clock()) + DEADLINE_SECONDS
            ctx.correlation_id = self._id_factory()
            ctx.transaction = self.quote_provider.build_transaction(
                ctx.route,
                ctx.bound.amount,
                scenario.sender,
                deadline=ctx.deadline,
                correlation_id=ctx.correlation_id,
            )

            self._enter(ctx, ScenarioState.SIMULATE)
            ctx.result = session.simulate(
                ctx.transaction, ctx.overrides, block_number=ctx.route.block_number
            )
            logger.info("Swap simulation: %s", ctx.result.url)

            self._enter(ctx, ScenarioState.ASSERT)
            self._assert(ctx)
            completed = True
            return ctx
        except Exception as exc:
            ctx.failed_state = ctx.state
            ctx.error = f"{type(exc).__name__}: {exc}"
            logger.error("Scenario failed in %s: %s", ctx.state.name, ctx.error)
            if isinstance(exc, HarnessError):
                exc.context = ctx
            raise
        finally:
            self._enter(ctx, ScenarioState.RELEASE)
            self._release(ctx, session)
            ctx.finished_at = self._clock()
            self._enter(ctx, ScenarioState.DONE if completed else ScenarioState.FAILED)

    def query_balance(
        self,
        session: SimulationSession,
        token: AnyToken,
        holder: Address,
        overrides: Optional[StateOverride] = None,
    ) -> int:
        """Read ``balanceOf(holder)`` through the session (fork state)."""
        tx = self.authorizer.build_balance_of_tx(token, holder)
        raw = session.call(tx, overrides)
        if len(raw) < 32:
            raise SimulationFailure(
                "balanceOf",
                SimulationResult(
                    success=False,
                    gas_used=0,
                    return_data=raw,
                    error=f"expected a uint256, got {len(raw)} bytes",
                ),
            )
        return decode_uint256(raw)

    def _enter(self, ctx: ScenarioContext, state: ScenarioState) -> None:
        logger.debug("Scenario state %s -> %s", ctx.state.name, state.name)
        ctx.enter(state)

    def _preflight(self, ctx: ScenarioContext, session: SimulationSession) -> None:
        scenario = ctx.scenario

        for tx in self.authorizer.allowance_txs(scenario.src_token, scenario.sender):
            self._setup_step(ctx, session, "approve", tx)

        contract = scenario.deployed_contract
        if contract is None and scenario.contract_bytecode:
            if not session.supports_state_overrides:
                raise UnsupportedFeatureError(
                    "Deploying a test contract requires a forked-state simulator"
                )
            deploy_tx = self.authorizer.build_deploy_tx(scenario.contract_bytecode)
            result = self._setup_step(ctx, session, "deploy", deploy_tx)
            if result.contract_address is None:
                raise SimulationFailure("deploy", result)
            contract = result.contract_address
            logger.info("Deployed test contract at %s", contract)
        if contract is not None:
            ctx.deployed_contract = Address.coerce(contract)
            whitelist_tx = self.authorizer.build_whitelist_tx(
                ctx.deployed_contract, scenario.contract_type
            )
            self._setup_step(ctx, session, "whitelist", whitelist_tx)
            if scenario.contract_type == "router":
                impl_tx = self.authorizer.build_set_implementation_tx(
                    ctx.deployed_contract, scenario.contract_method
                )
                self._setup_step(ctx, session, "setImplementation", impl_tx)

        if scenario.third_party is not None:
            self._gift_third_party(ctx, session)

    def _gift_third_party(self, ctx: ScenarioContext, session: SimulationSession) -> None:
        scenario = ctx.scenario
        if not session.supports_state_overrides:
            raise UnsupportedFeatureError(
                "Funding a third party requires a simulator with state overrides"
            )
        gifter = Address(GIFTER_ADDRESS)
        if scenario.side == SwapSide.SELL:
            amount = scenario.amount * 2
        else:
            amount = BUY_FUNDING
        overrides = (
            StateOverrideBuilder(self.network_config)
            .set_native_balance(gifter, MAX_UINT // 2)
            .set_token_balance(self.network_config, scenario.dest_token, gifter, MAX_UINT // 2)
            .build()
        )
        tx = self.authorizer.build_transfer_tx(
            scenario.dest_token, gifter, scenario.third_party, amount
        )
        self._setup_step(ctx, session, "gift", tx, overrides)

    def _setup_step(
        self,
        ctx: ScenarioContext,
        session: SimulationSession,
        step: str,
        tx,
        overrides: Optional[StateOverride] = None,
    ) -> SimulationResult:
        result = session.simulate(tx, overrides)
        ctx.preflight_results.append(result)
        if not result.success:
            raise SimulationFailure(step, result)
        logger.info("%s: %s", step, result.url)
        return result

    def _quote(self, scenario: SwapScenario) -> PriceRoute:
        if scenario.force_route and not self.quote_provider.supports_forced_route:
            raise UnsupportedFeatureError(
                f"{type(self.quote_provider).__name__} cannot quote a forced route"
            )
        if scenario.pool_identifiers and not self.quote_provider.supports_pool_identifiers:
            raise UnsupportedFeatureError(
                f"{type(self.quote_provider).__name__} cannot pin pool identifiers"
            )
        route = self.quote_provider.get_prices(
            scenario.src_token,
            scenario.dest_token,
            scenario.amount,
            scenario.side,
            scenario.contract_method,
            force_route=scenario.force_route,
            pool_identifiers=scenario.pool_identifiers,
            transfer_fees=scenario.transfer_fees,
        )
        expected = method_name(scenario.contract_method)
        if route.contract_method != expected:
            raise QuoteMismatchError(
                f"Route uses {route.contract_method}, expected {expected}"
            )
        if route.side != scenario.side:
            raise QuoteMismatchError(f"Route side {route.side.value} != {scenario.side.value}")
        if route.quoted_amount <= 0:
            raise QuoteEmptyError(f"Quoted amount is {route.quoted_amount}")
        logger.info(
            "Quote %s %s -> %s: src=%d dest=%d gas=%d",
            route.side.value,
            route.src_token,
            route.dest_token,
            route.src_amount,
            route.dest_amount,
            route.gas_cost,
        )
        return route

    def _overrides(
        self, scenario: SwapScenario, route: PriceRoute, session: SimulationSession
    ) -> Optional[StateOverride]:
        if not session.supports_state_overrides:
            logger.info("Simulator has no state overrides; using on-chain balances")
            return None

        if scenario.side == SwapSide.SELL:
            balance, allowance = scenario.amount * 2, scenario.amount
        else:
            # Below 2**255: some tokens keep flags in the high bits of the balance slot.
            balance, allowance = BUY_FUNDING, MAX_UINT // 8

        builder = StateOverrideBuilder(self.network_config)
        builder.set_token_balance(
            self.network_config, scenario.src_token, scenario.sender, balance
        )
        builder.set_token_allowance(
            self.network_config,
            scenario.src_token,
            scenario.sender,
            self.spender_for(route),
            allowance,
        )
        if scenario.seed_destination_dust and not scenario.dest_token.is_native:
            builder.set_token_balance(
                self.network_config, scenario.dest_token, scenario.sender, 1
            )
        return builder.build()

    def spender_for(self, route: PriceRoute) -> Address:
        if route.version == ProtocolVersion.V5:
            return self.network_config.require_proxy()
        return self.network_config.require_router_v6()

    def _assert(self, ctx: ScenarioContext) -> None:
        result = ctx.result
        route = ctx.route
        if not result.success:
            raise SimulationFailure("swap", result)
        target = ctx.scenario.target_gas_deviation
        if target is not None:
            ctx.gas_report = self.evaluator.check(route.gas_cost, result.gas_used, target)
        elif result.gas_used > 0:
            ctx.gas_report = self.evaluator.evaluate(route.gas_cost, result.gas_used)

    def _release(self, ctx: ScenarioContext, session: Optional[SimulationSession]) -> None:
        try:
            self.quote_provider.release_resources()
        except Exception as exc:
            logger.exception("Releasing pricing resources failed")
            ctx.release_errors.append(f"pricing: {exc}")
        if session is None:
            return
        try:
            session.release()
        except Exception as exc:
            logger.exception("Releasing simulator session failed")
            ctx.release_errors.append(f"simulator: {exc}")
