"""
Scenario Runner

Полный тестовый сценарий свапа из кошелька Argent через Paraswap:
1. Pre-check балансов кошелька
2. Сборка батча: approve (если не ETH) + вызов Augustus
3. Relayed multiCall от имени owner'а и проверка результата/балансов
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract

from config import (
    DEFAULT_EXCHANGE,
    DEFAULT_FROM_AMOUNT,
    DEFAULT_TO_AMOUNT,
    ZERO_ADDRESS,
    RelayConfig,
    is_eth_token,
)
from .contracts.abis import ERC20_ABI
from .encoder import SwapCallEncoder, SwapMethod, TradeRequest, UniswapForkData, parse_swap_method
from .exceptions import ScenarioAssertionError
from .exchanges import ExchangeContracts, ExchangeParamsResolver, SwapCallParams
from .orders import ZeroExOrderSigner
from .paths import AddressBook
from .relay import ArgentRelayer
from .routes import Route, RouteFactory
from .utils import RelayResult, encode_transaction, get_balance, to_bytes

logger = logging.getLogger(__name__)


@dataclass
class ScenarioContext:
    """Всё, что сценарию нужно от тестового окружения (read-only)."""
    w3: Web3
    wallet_address: str
    owner: LocalAccount
    relayer: ArgentRelayer
    tokens: Dict[str, Contract]          # адрес -> ERC20 (включая WETH)
    encoder: SwapCallEncoder
    route_factory: RouteFactory
    paraswap_proxy: str                  # TokenTransferProxy Augustus
    market_maker: Optional[LocalAccount] = None
    guardians: List[LocalAccount] = field(default_factory=list)


class SwapScenarioRunner:
    """
    Исполнитель сценариев свапа.

    Использование:
    ```python
    runner = make_scenario_runner(...)
    runner.run_trade("multiSwap", token_a, token_b)
    runner.run_trade("simpleSwap", ETH, token_a, exchange="uniswapv2",
                     error_reason="TM: call not authorised")
    ```
    """

    def __init__(self, context: ScenarioContext):
        self.ctx = context
        self.augustus = context.encoder.augustus

    # ── Tokens & balances ──

    def token_contract(self, token_address: str) -> Optional[Contract]:
        """ERC20 контракт токена; None для ETH."""
        if is_eth_token(token_address):
            return None
        token_lower = token_address.lower()
        for address, contract in self.ctx.tokens.items():
            if address.lower() == token_lower:
                return contract
        return self.ctx.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)

    def get_balance(self, token_address: str) -> int:
        return get_balance(
            self.ctx.w3, token_address, self.ctx.wallet_address, self.token_contract(token_address)
        )

    # ── Relay ──

    def multi_call(self, transactions: Sequence[tuple], error_reason: str = None) -> RelayResult:
        """
        Relayed multiCall(wallet, transactions) от имени owner'а.

        Raises:
            ScenarioAssertionError если исход не совпал с ожидаемым
        """
        # Argent проверяет подписи guardians по возрастанию адреса
        guardians = sorted(self.ctx.guardians, key=lambda g: int(g.address, 16))
        signers = [self.ctx.owner] + guardians
        result = self.ctx.relayer.relay(
            self.ctx.wallet_address,
            "multiCall",
            [Web3.to_checksum_address(self.ctx.wallet_address), list(transactions)],
            signers,
        )

        if error_reason:
            if result.success:
                raise ScenarioAssertionError("multiCall should have failed")
            if result.error != error_reason:
                raise ScenarioAssertionError(
                    f"multiCall failed with {result.error!r}, expected {error_reason!r}"
                )
        elif not result.success:
            raise ScenarioAssertionError(f'multiCall failed: "{result.error}"')
        return result

    # ── Swap data ──

    def get_routes(self, from_token: str, to_token: str, exchange: str,
                   from_amount: int = DEFAULT_FROM_AMOUNT, to_amount: int = DEFAULT_TO_AMOUNT) -> List[Route]:
        return self.ctx.route_factory.get_routes_for_exchange(
            from_token, to_token, self.ctx.market_maker, exchange, from_amount, to_amount
        )

    def get_multi_swap_data(self, **kwargs) -> bytes:
        return self.ctx.encoder.multi_swap_data(**kwargs)

    def get_mega_swap_data(self, **kwargs) -> bytes:
        return self.ctx.encoder.mega_swap_data(**kwargs)

    def get_simple_swap_data(self, from_token: str, to_token: str, from_amount: int, to_amount: int,
                             exchange: str, beneficiary: str, maker: LocalAccount = None) -> bytes:
        return self.ctx.encoder.simple_swap_data(
            from_token, to_token, from_amount, to_amount, exchange, beneficiary,
            maker or self.ctx.market_maker
        )

    def get_simple_swap_exchange_call_params(self, exchange: str, from_token: str, to_token: str,
                                             from_amount: int, to_amount: int,
                                             maker: LocalAccount = None) -> SwapCallParams:
        return self.ctx.encoder.get_simple_swap_exchange_call_params(
            exchange, from_token, to_token, from_amount, to_amount, maker or self.ctx.market_maker
        )

    def build_transactions(self, request: TradeRequest) -> List[tuple]:
        """
        Батч вызовов кошелька для сделки.

        Метод проверяется до сборки: неверный метод это ошибка в тесте.
        """
        method = parse_swap_method(request.method)
        transactions = []

        # token approval if necessary
        if not is_eth_token(request.from_token):
            token = self.token_contract(request.from_token)
            approve_data = token.functions.approve(
                Web3.to_checksum_address(self.ctx.paraswap_proxy), request.from_amount
            )._encode_transaction_data()
            transactions.append(encode_transaction(request.from_token, 0, approve_data))

        routes: List[Route] = []
        if method in (SwapMethod.MULTI_SWAP, SwapMethod.MEGA_SWAP):
            routes = self.get_routes(
                request.from_token, request.to_token, request.exchange, request.from_amount, request.to_amount
            )
        swap_data = self.ctx.encoder.encode(request, routes)

        value = request.from_amount if is_eth_token(request.from_token) else 0
        transactions.append(encode_transaction(self.augustus.address, value, to_bytes(swap_data)))
        logger.debug(f"Built {len(transactions)} wallet calls for {method.value}")
        return transactions

    # ── Scenario ──

    def run_trade(
        self,
        method: str,
        from_token: str,
        to_token: str,
        beneficiary: str = ZERO_ADDRESS,
        from_amount: int = DEFAULT_FROM_AMOUNT,
        to_amount: int = DEFAULT_TO_AMOUNT,
        use_unauthorised_adapter: bool = False,
        use_unauthorised_target_exchange: bool = False,
        error_reason: str = None,
        exchange: str = DEFAULT_EXCHANGE
    ) -> RelayResult:
        """
        Полный сценарий свапа.

        Raises:
            ScenarioAssertionError: недостаточный баланс, неожиданный исход
                relay или балансы не изменились в нужную сторону
            InvalidSwapMethodError: неизвестный method
        """
        request = TradeRequest(
            from_token=from_token,
            to_token=to_token,
            method=method,
            from_amount=from_amount,
            to_amount=to_amount,
            beneficiary=beneficiary,
            exchange=exchange,
            use_unauthorised_adapter=use_unauthorised_adapter,
            use_unauthorised_target_exchange=use_unauthorised_target_exchange,
            maker=self.ctx.market_maker,
        )
        parse_swap_method(method)

        # 1. Pre-check
        before_from = self.get_balance(from_token)
        before_to = self.get_balance(to_token)
        if before_from < from_amount:
            raise ScenarioAssertionError(
                f"wallet should have enough of fromToken: {before_from} < {from_amount}"
            )

        # 2. Assembly
        transactions = self.build_transactions(request)

        # 3. Execution & verification
        logger.info(
            f"Trade {method} via {exchange}: {from_token[:10]}... -> {to_token[:10]}..., "
            f"amount={from_amount}, expected_error={error_reason!r}"
        )
        result = self.multi_call(transactions, error_reason=error_reason)

        if not error_reason:
            after_from = self.get_balance(from_token)
            after_to = self.get_balance(to_token)
            if not before_from > after_from:
                raise ScenarioAssertionError(
                    f"fromToken balance should decrease: before={before_from}, after={after_from}"
                )
            if not after_to > before_to:
                raise ScenarioAssertionError(
                    f"toToken balance should increase: before={before_to}, after={after_to}"
                )
        return result


def make_scenario_runner(
    w3: Web3,
    module: Contract,
    wallet_address: str,
    owner: LocalAccount,
    relayer_account: LocalAccount,
    tokens: Dict[str, Contract],
    augustus: Contract,
    paraswap_proxy: str,
    address_book: AddressBook,
    exchange_contracts: ExchangeContracts,
    uniswap_fork_data: UniswapForkData = None,
    zeroex_v2_proxy: str = None,
    market_maker: LocalAccount = None,
    relay_config: RelayConfig = None
) -> SwapScenarioRunner:
    """
    Сборка SwapScenarioRunner из развёрнутого тестового окружения.

    RFQ ордера 0x v4 подписываются с txOrigin = relayer: именно он
    отправляет транзакцию.
    """
    order_signer = ZeroExOrderSigner(
        chain_id=w3.eth.chain_id,
        zeroex_v2_exchange=exchange_contracts.zeroex_v2_target_exchange.address,
        zeroex_v4_exchange=exchange_contracts.zeroex_v4_target_exchange.address,
        weth=exchange_contracts.weth.address,
        tx_origin=relayer_account.address,
    )
    resolver = ExchangeParamsResolver(
        exchange_contracts,
        augustus.address,
        order_signer=order_signer,
        zeroex_v2_proxy=zeroex_v2_proxy,
        default_maker=market_maker,
    )
    encoder = SwapCallEncoder(augustus, address_book, resolver, uniswap_fork_data)
    context = ScenarioContext(
        w3=w3,
        wallet_address=Web3.to_checksum_address(wallet_address),
        owner=owner,
        relayer=ArgentRelayer(w3, module, relayer_account, relay_config),
        tokens=tokens,
        encoder=encoder,
        route_factory=RouteFactory(exchange_contracts.weth.address, order_signer),
        paraswap_proxy=paraswap_proxy,
        market_maker=market_maker,
    )
    return SwapScenarioRunner(context)
