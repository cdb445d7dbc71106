"""
Route parameters for Augustus multiSwap / megaSwap.

Маршрут = один hop через одну биржу: тег биржи (ключ таблиц адаптеров),
доля в базисных пунктах и ABI-encoded payload адаптера.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from eth_abi import encode
from eth_account.signers.local import LocalAccount
from web3 import Web3

from config import (
    DEFAULT_DEADLINE,
    DEFAULT_FROM_AMOUNT,
    DEFAULT_TO_AMOUNT,
    FULL_PERCENT,
    UNISWAP_LIKE_SPLIT,
    UNIV3_FEE,
    is_eth_token,
)
from .contracts.abis import (
    CURVE_PAYLOAD_TYPE,
    UNISWAP_V2_PAYLOAD_TYPE,
    UNISWAP_V3_PAYLOAD_TYPE,
    ZEROEX_V2_PAYLOAD_TYPE,
    ZEROEX_V4_PAYLOAD_TYPE,
)
from .exceptions import UnknownExchangeError
from .orders import ZeroExOrderSigner, ZeroExV2Orders, ZeroExV4RfqOrder

logger = logging.getLogger(__name__)


class RouteExchange(Enum):
    """Биржи, для которых у Augustus есть адаптер."""
    UNISWAP = "uniswap"
    UNISWAP_V2 = "uniswapv2"
    UNISWAP_V3 = "uniswapv3"
    SUSHISWAP = "sushiswap"
    LINKSWAP = "linkswap"
    DEFISWAP = "defiswap"
    PARASWAP_POOL_V2 = "paraswappoolv2"
    PARASWAP_POOL_V4 = "paraswappoolv4"
    CURVE = "curve"
    WETH = "weth"


# Форки Uniswap V2: payload = путь токенов, target exchange не нужен
UNISWAP_V2_FORKS = frozenset({
    RouteExchange.UNISWAP_V2,
    RouteExchange.SUSHISWAP,
    RouteExchange.LINKSWAP,
    RouteExchange.DEFISWAP,
})

# Scenario keyword -> биржа маршрута (там, где имена различаются)
ROUTE_EXCHANGE_ALIASES: Dict[str, RouteExchange] = {
    "zeroexv2": RouteExchange.PARASWAP_POOL_V2,
    "zeroexv4": RouteExchange.PARASWAP_POOL_V4,
}

UNISWAP_LIKE = "uniswapLike"


@dataclass(frozen=True)
class Route:
    """Логический hop через одну биржу."""
    exchange: RouteExchange
    percent: int             # базисные пункты, 10000 = 100%
    payload: bytes = b""
    network_fee: int = 0


# ── Payload encoders ──

def uniswap_v2_payload(path: List[str]) -> bytes:
    """UniswapV2Data { address[] path }."""
    return encode([UNISWAP_V2_PAYLOAD_TYPE], [([Web3.to_checksum_address(a) for a in path],)])


def uniswap_v3_payload(fee: int = UNIV3_FEE, deadline: int = DEFAULT_DEADLINE, sqrt_price_limit_x96: int = 0) -> bytes:
    """UniswapV3Data { uint24 fee; uint256 deadline; uint160 sqrtPriceLimitX96 }."""
    return encode([UNISWAP_V3_PAYLOAD_TYPE], [(fee, deadline, sqrt_price_limit_x96)])


def curve_payload(i: int = 0, j: int = 1, deadline: int = DEFAULT_DEADLINE, underlying_swap: bool = False) -> bytes:
    """CurveData { int128 i; int128 j; uint256 deadline; bool underlyingSwap }."""
    return encode([CURVE_PAYLOAD_TYPE], [(i, j, deadline, underlying_swap)])


def zeroex_v2_payload(order_data: ZeroExV2Orders) -> bytes:
    """ZeroxV2Data { Order[] orders; bytes[] signatures }."""
    return encode([ZEROEX_V2_PAYLOAD_TYPE], [(order_data.orders, order_data.signatures)])


def zeroex_v4_payload(order_data: ZeroExV4RfqOrder) -> bytes:
    """ZeroxV4Data { RfqOrder order; Signature signature }."""
    return encode([ZEROEX_V4_PAYLOAD_TYPE], [(order_data.order, order_data.signature)])


def split_percent(count: int, total: int = FULL_PERCENT) -> List[int]:
    """Равные доли total на count маршрутов; остаток достаётся первому."""
    if count <= 0:
        raise ValueError("count must be positive")
    share = total // count
    shares = [share] * count
    shares[0] += total - share * count
    return shares


class RouteFactory:
    """
    Маршруты Augustus для exchange keyword сценария.

    Использование:
        factory = RouteFactory(weth_address, order_signer)
        routes = factory.get_routes_for_exchange(token_a, token_b, maker, "uniswapLike")
    """

    def __init__(self, weth: str, order_signer: Optional[ZeroExOrderSigner] = None):
        self.weth = Web3.to_checksum_address(weth)
        self.order_signer = order_signer

    def _token_path(self, from_token: str, to_token: str) -> List[str]:
        # Адаптеры V2-форков оборачивают ETH в WETH
        return [
            self.weth if is_eth_token(token) else Web3.to_checksum_address(token)
            for token in (from_token, to_token)
        ]

    def build_route(
        self,
        exchange: RouteExchange,
        from_token: str,
        to_token: str,
        percent: int = FULL_PERCENT,
        maker: LocalAccount = None,
        from_amount: int = DEFAULT_FROM_AMOUNT,
        to_amount: int = DEFAULT_TO_AMOUNT
    ) -> Route:
        """Route с payload, который ожидает адаптер exchange."""
        if exchange in UNISWAP_V2_FORKS:
            payload = uniswap_v2_payload(self._token_path(from_token, to_token))
        elif exchange == RouteExchange.UNISWAP_V3:
            payload = uniswap_v3_payload()
        elif exchange == RouteExchange.CURVE:
            payload = curve_payload()
        elif exchange in (RouteExchange.PARASWAP_POOL_V2, RouteExchange.PARASWAP_POOL_V4):
            if self.order_signer is None or maker is None:
                raise ValueError(f"{exchange.value} route requires an order signer and a maker")
            version = 2 if exchange == RouteExchange.PARASWAP_POOL_V2 else 4
            order_data = self.order_signer.get_order_data(
                maker, version, from_token, to_token, from_amount, to_amount
            )
            payload = zeroex_v2_payload(order_data) if version == 2 else zeroex_v4_payload(order_data)
        else:
            # uniswap (V1) и weth: адаптеру достаточно targetExchange
            payload = b""
        return Route(exchange=exchange, percent=percent, payload=payload)

    def get_routes_for_exchange(
        self,
        from_token: str,
        to_token: str,
        maker: LocalAccount = None,
        exchange: str = UNISWAP_LIKE,
        from_amount: int = DEFAULT_FROM_AMOUNT,
        to_amount: int = DEFAULT_TO_AMOUNT
    ) -> List[Route]:
        """
        Маршруты для exchange keyword.

        "uniswapLike" делит объём поровну между Uniswap V1 и V2-форками,
        остальные keyword'ы дают один маршрут на 100%.

        Raises:
            UnknownExchangeError для неизвестного keyword
        """
        if exchange == UNISWAP_LIKE:
            exchanges = [RouteExchange(name) for name in UNISWAP_LIKE_SPLIT]
        elif exchange in ROUTE_EXCHANGE_ALIASES:
            exchanges = [ROUTE_EXCHANGE_ALIASES[exchange]]
        else:
            try:
                exchanges = [RouteExchange(exchange)]
            except ValueError:
                raise UnknownExchangeError(exchange) from None

        routes = [
            self.build_route(ex, from_token, to_token, percent, maker, from_amount, to_amount)
            for ex, percent in zip(exchanges, split_percent(len(exchanges)))
        ]
        logger.debug(f"Routes for {exchange}: {[(r.exchange.value, r.percent) for r in routes]}")
        return routes
