"""
Path Builder

Собирает Utils.Path[] для multiSwap / megaSwap: для каждого маршрута
подставляет адрес адаптера и target exchange из адресной книги.
Флаги unauthorised_* подменяют адреса для негативных тестов.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

from web3 import Web3

from config import FULL_PERCENT, ZERO_ADDRESS
from .routes import UNISWAP_V2_FORKS, Route, RouteExchange

logger = logging.getLogger(__name__)

# Биржи без target exchange: адаптер сам знает роутер / WETH
NO_TARGET_EXCHANGES = UNISWAP_V2_FORKS | {RouteExchange.WETH}


@dataclass(frozen=True)
class AddressBook:
    """
    Неизменяемые таблицы адресов: адаптер и target exchange по бирже.

    Строится один раз при setup и передаётся в build_path.
    """
    adapters: Mapping[RouteExchange, str]
    target_exchanges: Mapping[RouteExchange, str]
    unauthorised_adapter: str
    unauthorised_target_exchange: str

    @classmethod
    def create(
        cls,
        adapters: Dict[RouteExchange, str],
        target_exchanges: Dict[RouteExchange, str],
        unauthorised_adapter: str,
        unauthorised_target_exchange: str
    ) -> "AddressBook":
        """
        Args:
            adapters: Адаптер для каждой RouteExchange
            target_exchanges: Target для бирж, у которых он есть
                (uniswap: V1 factory, uniswapv3: router, paraswappool*: 0x exchange,
                curve: pool)
            unauthorised_adapter: Адаптер, не зарегистрированный в Augustus
            unauthorised_target_exchange: Произвольный "чужой" адрес
        """
        missing = set(RouteExchange) - set(adapters)
        if missing:
            raise ValueError(f"Missing adapters for: {sorted(e.value for e in missing)}")
        missing_targets = set(RouteExchange) - NO_TARGET_EXCHANGES - set(target_exchanges)
        if missing_targets:
            raise ValueError(f"Missing target exchanges for: {sorted(e.value for e in missing_targets)}")

        return cls(
            adapters=MappingProxyType({
                ex: Web3.to_checksum_address(addr) for ex, addr in adapters.items()
            }),
            target_exchanges=MappingProxyType({
                ex: Web3.to_checksum_address(addr)
                for ex, addr in target_exchanges.items()
                if ex not in NO_TARGET_EXCHANGES
            }),
            unauthorised_adapter=Web3.to_checksum_address(unauthorised_adapter),
            unauthorised_target_exchange=Web3.to_checksum_address(unauthorised_target_exchange),
        )

    def adapter_for(self, exchange: RouteExchange, use_unauthorised: bool = False) -> str:
        if use_unauthorised:
            return self.unauthorised_adapter
        return self.adapters[exchange]

    def target_exchange_for(self, exchange: RouteExchange, use_unauthorised: bool = False) -> str:
        if exchange in NO_TARGET_EXCHANGES:
            return ZERO_ADDRESS
        if use_unauthorised:
            return self.unauthorised_target_exchange
        return self.target_exchanges[exchange]


@dataclass
class ResolvedRoute:
    """Utils.Route с подставленными адресами."""
    exchange: str          # адрес адаптера
    target_exchange: str
    percent: int
    payload: bytes
    network_fee: int = 0

    def to_tuple(self) -> tuple:
        return (
            Web3.to_checksum_address(self.exchange),
            Web3.to_checksum_address(self.target_exchange),
            self.percent,
            self.payload,
            self.network_fee
        )


@dataclass
class PathEntry:
    """Utils.Path: токен назначения, общая network fee, маршруты."""
    to: str
    total_network_fee: int
    routes: List[ResolvedRoute]

    def to_tuple(self) -> tuple:
        return (
            Web3.to_checksum_address(self.to),
            self.total_network_fee,
            [route.to_tuple() for route in self.routes]
        )


def resolve_route(
    route: Route,
    address_book: AddressBook,
    use_unauthorised_adapter: bool = False,
    use_unauthorised_target_exchange: bool = False
) -> ResolvedRoute:
    """Route -> ResolvedRoute через адресную книгу."""
    return ResolvedRoute(
        exchange=address_book.adapter_for(route.exchange, use_unauthorised_adapter),
        target_exchange=address_book.target_exchange_for(route.exchange, use_unauthorised_target_exchange),
        percent=route.percent,
        payload=route.payload,
        network_fee=route.network_fee,
    )


def build_path(
    from_token: str,
    to_token: str,
    routes: Sequence[Route],
    address_book: AddressBook,
    use_unauthorised_adapter: bool = False,
    use_unauthorised_target_exchange: bool = False
) -> List[PathEntry]:
    """
    Path для multiSwap: один hop-group до to_token со всеми маршрутами.

    Returns:
        Список из одного PathEntry (totalNetworkFee = 0)
    """
    resolved = [
        resolve_route(route, address_book, use_unauthorised_adapter, use_unauthorised_target_exchange)
        for route in routes
    ]
    logger.debug(
        f"Path {from_token[:10]}... -> {to_token[:10]}...: {len(resolved)} routes, "
        f"unauthorised_adapter={use_unauthorised_adapter}, "
        f"unauthorised_target={use_unauthorised_target_exchange}"
    )
    return [PathEntry(to=to_token, total_network_fee=0, routes=resolved)]


def build_mega_path(path: Sequence[PathEntry], from_amount_percent: int = FULL_PERCENT) -> List[tuple]:
    """Utils.MegaSwapPath[]: весь объём через один path."""
    return [(from_amount_percent, [entry.to_tuple() for entry in path])]
