"""
Paraswap swap scenarios for Argent wallets

Тестовые сценарии обмена токенов через Paraswap Augustus
из смарт-контрактного кошелька с relayed multiCall.
"""

from .encoder import SwapCallEncoder, SwapMethod, TradeRequest, UniswapForkData, decode_swap_call
from .exceptions import (
    InvalidSwapMethodError,
    RelayError,
    ScenarioAssertionError,
    SwapScenarioError,
    UnknownExchangeError,
)
from .exchanges import Exchange, ExchangeContracts, ExchangeParamsResolver, SwapCallParams
from .orders import ZeroExOrderSigner
from .paths import AddressBook, PathEntry, build_path
from .relay import ArgentRelayer
from .routes import Route, RouteExchange, RouteFactory
from .scenario import ScenarioContext, SwapScenarioRunner, make_scenario_runner

__all__ = [
    'SwapCallEncoder',
    'SwapMethod',
    'TradeRequest',
    'UniswapForkData',
    'decode_swap_call',
    'InvalidSwapMethodError',
    'RelayError',
    'ScenarioAssertionError',
    'SwapScenarioError',
    'UnknownExchangeError',
    'Exchange',
    'ExchangeContracts',
    'ExchangeParamsResolver',
    'SwapCallParams',
    'ZeroExOrderSigner',
    'AddressBook',
    'PathEntry',
    'build_path',
    'ArgentRelayer',
    'Route',
    'RouteExchange',
    'RouteFactory',
    'ScenarioContext',
    'SwapScenarioRunner',
    'make_scenario_runner',
]
