"""
Exchange Parameter Resolver

Для exchange keyword и пары токенов возвращает контракт биржи,
имя метода свапа и позиционные аргументы ровно в том виде,
в котором их ожидает интерфейс биржи (используется в simpleSwap).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract

from config import DEFAULT_DEADLINE, UNIV3_FEE, is_eth_token
from .exceptions import UnknownExchangeError
from .orders import ZeroExOrderSigner
from .utils import to_bytes

logger = logging.getLogger(__name__)


class Exchange(Enum):
    """Биржи, поддерживаемые simpleSwap."""
    UNISWAP = "uniswap"
    UNISWAP_LIKE = "uniswapLike"
    UNISWAP_V2 = "uniswapv2"
    UNISWAP_V3 = "uniswapv3"
    ZEROEX_V2 = "zeroexv2"
    ZEROEX_V4 = "zeroexv4"
    CURVE = "curve"
    WETH = "weth"


def parse_exchange(exchange) -> Exchange:
    """Exchange или строка -> Exchange; неизвестный keyword -> UnknownExchangeError."""
    if isinstance(exchange, Exchange):
        return exchange
    try:
        return Exchange(exchange)
    except ValueError:
        raise UnknownExchangeError(exchange) from None


@dataclass
class ExchangeContracts:
    """Контракты бирж, развёрнутые для тестов."""
    paraswap_univ2_router: Contract
    uniswap_v3_router: Contract
    uniswap_v1_exchanges: Dict[str, Contract]  # адрес токена -> V1 exchange
    zeroex_v2_target_exchange: Contract
    zeroex_v4_target_exchange: Contract
    curve_pool: Contract
    weth: Contract

    def uniswap_v1_exchange(self, token: str) -> Contract:
        """V1 exchange для токена (поиск без учёта регистра адреса)."""
        token_lower = token.lower()
        for address, exchange in self.uniswap_v1_exchanges.items():
            if address.lower() == token_lower:
                return exchange
        raise ValueError(f"No Uniswap V1 exchange for token {token}")


@dataclass
class SwapCallParams:
    """Вызов биржи внутри simpleSwap."""
    target_exchange: Contract
    swap_method: str
    swap_params: List = field(default_factory=list)
    proxy: Optional[str] = None     # кому давать approve, если не самой бирже
    convert_weth: bool = False      # выход в WETH нужно развернуть в ETH

    @property
    def approve_target(self) -> str:
        return self.proxy or self.target_exchange.address

    def encode_call(self) -> bytes:
        """Calldata вызова swap_method(*swap_params)."""
        fn = getattr(self.target_exchange.functions, self.swap_method)
        return to_bytes(fn(*self.swap_params)._encode_transaction_data())


class ExchangeParamsResolver:
    """
    Резолвер параметров вызова биржи.

    Один резолвер на каждый Exchange; таблица проверяется на полноту
    при импорте модуля.
    """

    def __init__(
        self,
        contracts: ExchangeContracts,
        augustus_address: str,
        order_signer: ZeroExOrderSigner = None,
        zeroex_v2_proxy: str = None,
        default_maker: LocalAccount = None
    ):
        self.contracts = contracts
        self.augustus_address = Web3.to_checksum_address(augustus_address)
        self.order_signer = order_signer
        self.zeroex_v2_proxy = Web3.to_checksum_address(zeroex_v2_proxy) if zeroex_v2_proxy else None
        self.default_maker = default_maker

    def resolve(
        self,
        exchange,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        maker: LocalAccount = None
    ) -> SwapCallParams:
        """
        Параметры вызова биржи для simpleSwap.

        Raises:
            UnknownExchangeError для keyword'а вне поддерживаемого набора
        """
        exchange = parse_exchange(exchange)
        resolver: Callable = getattr(self, _RESOLVERS[exchange])
        params = resolver(
            Web3.to_checksum_address(from_token),
            Web3.to_checksum_address(to_token),
            from_amount,
            to_amount,
            maker or self.default_maker,
        )
        logger.debug(
            f"Resolved {exchange.value}: {params.swap_method} on "
            f"{params.target_exchange.address[:10]}..., convert_weth={params.convert_weth}"
        )
        return params

    def _uniswap_v1(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        if is_eth_token(from_token):
            return SwapCallParams(
                target_exchange=self.contracts.uniswap_v1_exchange(to_token),
                swap_method="ethToTokenSwapInput",
                swap_params=[1, DEFAULT_DEADLINE],
            )
        target = self.contracts.uniswap_v1_exchange(from_token)
        if is_eth_token(to_token):
            return SwapCallParams(
                target_exchange=target,
                swap_method="tokenToEthSwapInput",
                swap_params=[from_amount, 1, DEFAULT_DEADLINE],
            )
        return SwapCallParams(
            target_exchange=target,
            swap_method="tokenToTokenSwapInput",
            swap_params=[from_amount, 1, 1, DEFAULT_DEADLINE, to_token],
        )

    def _uniswap_v2(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        return SwapCallParams(
            target_exchange=self.contracts.paraswap_univ2_router,
            swap_method="swap",
            swap_params=[from_amount, to_amount, [from_token, to_token]],
        )

    def _uniswap_v3(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        # ExactInputSingleParams как один tuple-аргумент
        params = (
            from_token,           # tokenIn
            to_token,             # tokenOut
            UNIV3_FEE,            # fee
            self.augustus_address,  # recipient
            DEFAULT_DEADLINE,     # deadline
            from_amount,          # amountIn
            to_amount,            # amountOutMinimum
            0,                    # sqrtPriceLimitX96
        )
        return SwapCallParams(
            target_exchange=self.contracts.uniswap_v3_router,
            swap_method="exactInputSingle",
            swap_params=[params],
        )

    def _require_signer(self, maker):
        if self.order_signer is None or maker is None:
            raise ValueError("0x exchanges require an order signer and a maker")

    def _zeroex_v2(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        self._require_signer(maker)
        order_data = self.order_signer.get_order_data(maker, 2, from_token, to_token, from_amount, to_amount)
        return SwapCallParams(
            target_exchange=self.contracts.zeroex_v2_target_exchange,
            swap_method="marketSellOrdersNoThrow",
            swap_params=[order_data.orders, from_amount, order_data.signatures],
            proxy=self.zeroex_v2_proxy,
            convert_weth=is_eth_token(to_token),
        )

    def _zeroex_v4(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        self._require_signer(maker)
        order_data = self.order_signer.get_order_data(maker, 4, from_token, to_token, from_amount, to_amount)
        return SwapCallParams(
            target_exchange=self.contracts.zeroex_v4_target_exchange,
            swap_method="fillRfqOrder",
            swap_params=[order_data.order, order_data.signature, from_amount],
            convert_weth=is_eth_token(to_token),
        )

    def _curve(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        return SwapCallParams(
            target_exchange=self.contracts.curve_pool,
            swap_method="exchange",
            swap_params=[0, 1, from_amount, to_amount],
        )

    def _weth(self, from_token, to_token, from_amount, to_amount, maker) -> SwapCallParams:
        if is_eth_token(from_token):
            return SwapCallParams(target_exchange=self.contracts.weth, swap_method="deposit", swap_params=[])
        return SwapCallParams(target_exchange=self.contracts.weth, swap_method="withdraw", swap_params=[to_amount])


_RESOLVERS: Dict[Exchange, str] = {
    Exchange.UNISWAP: "_uniswap_v1",
    Exchange.UNISWAP_LIKE: "_uniswap_v1",
    Exchange.UNISWAP_V2: "_uniswap_v2",
    Exchange.UNISWAP_V3: "_uniswap_v3",
    Exchange.ZEROEX_V2: "_zeroex_v2",
    Exchange.ZEROEX_V4: "_zeroex_v4",
    Exchange.CURVE: "_curve",
    Exchange.WETH: "_weth",
}

_missing = set(Exchange) - set(_RESOLVERS)
if _missing:
    raise RuntimeError(f"No resolver for exchanges: {sorted(e.value for e in _missing)}")
