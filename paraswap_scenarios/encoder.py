"""
Call Encoder

ABI-кодирование точек входа Paraswap Augustus:
multiSwap, megaSwap, simpleSwap, swapOnUniswap, swapOnUniswapFork.
Плюс обратное декодирование calldata по каноническим ABI-типам.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from eth_abi import decode
from eth_account.signers.local import LocalAccount
from eth_utils import function_signature_to_4byte_selector
from web3 import Web3
from web3.contract import Contract

from config import (
    DEFAULT_EXCHANGE,
    DEFAULT_FROM_AMOUNT,
    DEFAULT_TO_AMOUNT,
    PARASWAP_REFERRER,
    UNISWAP_REFERRER_ID,
    ZERO_ADDRESS,
    is_eth_token,
)
from .contracts.abis import (
    ERC20_ABI,
    MEGA_SELL_DATA_TYPE,
    SELL_DATA_TYPE,
    SIMPLE_SWAP_TYPES,
    SWAP_ON_UNISWAP_FORK_TYPES,
    SWAP_ON_UNISWAP_TYPES,
)
from .exceptions import InvalidSwapMethodError
from .exchanges import ExchangeParamsResolver, SwapCallParams
from .paths import AddressBook, PathEntry, build_mega_path, build_path
from .routes import Route
from .utils import to_bytes

logger = logging.getLogger(__name__)


class SwapMethod(Enum):
    """Точки входа Augustus."""
    MULTI_SWAP = "multiSwap"
    MEGA_SWAP = "megaSwap"
    SIMPLE_SWAP = "simpleSwap"
    SWAP_ON_UNISWAP = "swapOnUniswap"
    SWAP_ON_UNISWAP_FORK = "swapOnUniswapFork"


def parse_swap_method(method) -> SwapMethod:
    if isinstance(method, SwapMethod):
        return method
    try:
        return SwapMethod(method)
    except ValueError:
        raise InvalidSwapMethodError(method) from None


# Канонические типы аргументов для декодирования
SWAP_CALL_TYPES: Dict[SwapMethod, List[str]] = {
    SwapMethod.MULTI_SWAP: [SELL_DATA_TYPE],
    SwapMethod.MEGA_SWAP: [MEGA_SELL_DATA_TYPE],
    SwapMethod.SIMPLE_SWAP: SIMPLE_SWAP_TYPES,
    SwapMethod.SWAP_ON_UNISWAP: SWAP_ON_UNISWAP_TYPES,
    SwapMethod.SWAP_ON_UNISWAP_FORK: SWAP_ON_UNISWAP_FORK_TYPES,
}

SWAP_SELECTORS: Dict[bytes, SwapMethod] = {
    function_signature_to_4byte_selector(f"{method.value}({','.join(types)})"): method
    for method, types in SWAP_CALL_TYPES.items()
}


@dataclass
class UniswapForkData:
    """Фабрика и init code hash форка Uniswap V2."""
    factory: str
    init_code: bytes


@dataclass
class TradeRequest:
    """Параметры одного тестового свапа."""
    from_token: str
    to_token: str
    method: str = SwapMethod.MULTI_SWAP.value
    from_amount: int = DEFAULT_FROM_AMOUNT
    to_amount: int = DEFAULT_TO_AMOUNT
    beneficiary: str = ZERO_ADDRESS
    exchange: str = DEFAULT_EXCHANGE
    use_unauthorised_adapter: bool = False
    use_unauthorised_target_exchange: bool = False
    maker: Optional[LocalAccount] = None


@dataclass
class DecodedSwapCall:
    """Результат decode_swap_call."""
    method: SwapMethod
    args: Tuple = field(default_factory=tuple)


def decode_swap_call(data) -> DecodedSwapCall:
    """
    Декодирование calldata Augustus по селектору.

    Адреса возвращаются в нижнем регистре (так декодирует eth_abi).

    Raises:
        InvalidSwapMethodError если селектор не принадлежит известным методам
    """
    data = to_bytes(data)
    selector = data[:4]
    method = SWAP_SELECTORS.get(selector)
    if method is None:
        raise InvalidSwapMethodError(f"0x{selector.hex()}")
    return DecodedSwapCall(method=method, args=decode(SWAP_CALL_TYPES[method], data[4:]))


class SwapCallEncoder:
    """
    Кодировщик вызовов Augustus.

    Использование:
    ```python
    encoder = SwapCallEncoder(augustus, address_book, resolver, uniswap_fork_data)
    data = encoder.multi_swap_data(token_a, token_b, 10**16, 1, ZERO_ADDRESS, routes)
    ```
    """

    def __init__(
        self,
        augustus: Contract,
        address_book: AddressBook,
        resolver: ExchangeParamsResolver = None,
        uniswap_fork_data: UniswapForkData = None
    ):
        self.augustus = augustus
        self.w3 = augustus.w3
        self.address_book = address_book
        self.resolver = resolver
        self.uniswap_fork_data = uniswap_fork_data

    def _encode(self, method: SwapMethod, *args) -> bytes:
        fn = getattr(self.augustus.functions, method.value)
        return to_bytes(fn(*args)._encode_transaction_data())

    def _erc20(self, token: str) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)

    def _sell_head(self, from_token: str, from_amount: int, to_amount: int, beneficiary: str) -> tuple:
        # fromToken, fromAmount, toAmount, expectedAmount, beneficiary, referrer, useReduxToken
        return (
            Web3.to_checksum_address(from_token),
            from_amount,
            to_amount,
            0,
            Web3.to_checksum_address(beneficiary),
            PARASWAP_REFERRER,
            False,
        )

    def get_path(
        self,
        from_token: str,
        to_token: str,
        routes: Sequence[Route],
        use_unauthorised_adapter: bool = False,
        use_unauthorised_target_exchange: bool = False
    ) -> List[PathEntry]:
        return build_path(
            from_token, to_token, routes, self.address_book,
            use_unauthorised_adapter, use_unauthorised_target_exchange
        )

    def multi_swap_data(
        self,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        beneficiary: str,
        routes: Sequence[Route],
        use_unauthorised_adapter: bool = False,
        use_unauthorised_target_exchange: bool = False
    ) -> bytes:
        """Calldata multiSwap(SellData)."""
        path = self.get_path(from_token, to_token, routes, use_unauthorised_adapter, use_unauthorised_target_exchange)
        sell_data = self._sell_head(from_token, from_amount, to_amount, beneficiary) + (
            [entry.to_tuple() for entry in path],
        )
        return self._encode(SwapMethod.MULTI_SWAP, sell_data)

    def mega_swap_data(
        self,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        beneficiary: str,
        routes: Sequence[Route],
        use_unauthorised_adapter: bool = False,
        use_unauthorised_target_exchange: bool = False
    ) -> bytes:
        """Calldata megaSwap(MegaSwapSellData): 100% объёма через один path."""
        path = self.get_path(from_token, to_token, routes, use_unauthorised_adapter, use_unauthorised_target_exchange)
        sell_data = self._sell_head(from_token, from_amount, to_amount, beneficiary) + (
            build_mega_path(path),
        )
        return self._encode(SwapMethod.MEGA_SWAP, sell_data)

    def build_simple_swap_args(
        self,
        call_params: SwapCallParams,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        beneficiary: str
    ) -> list:
        """
        Позиционные аргументы simpleSwap.

        exchangeData: конкатенация calldata всех callee, startIndexes:
        границы каждого вызова внутри exchangeData (длина = callees + 1).

        Последовательность вызовов:
        1. approve(from_token -> биржа или её proxy), если from_token не ETH
        2. сам свап (с value = from_amount для ETH)
        3. WETH.withdraw(to_amount), если выход биржи в WETH, а нужен ETH
        """
        callees: List[str] = []
        values: List[int] = []
        start_indexes: List[int] = [0]
        exchange_data = b""

        def add_call(callee: str, data: bytes, value: int = 0):
            nonlocal exchange_data
            callees.append(Web3.to_checksum_address(callee))
            exchange_data += data
            start_indexes.append(len(exchange_data))
            values.append(value)

        from_eth = is_eth_token(from_token)
        if not from_eth:
            approve_data = self._erc20(from_token).functions.approve(
                Web3.to_checksum_address(call_params.approve_target), from_amount
            )._encode_transaction_data()
            add_call(from_token, to_bytes(approve_data))

        add_call(call_params.target_exchange.address, call_params.encode_call(), from_amount if from_eth else 0)

        if call_params.convert_weth:
            weth = self.resolver.contracts.weth
            add_call(weth.address, to_bytes(weth.functions.withdraw(to_amount)._encode_transaction_data()))

        return [
            Web3.to_checksum_address(from_token),
            Web3.to_checksum_address(to_token),
            from_amount,
            to_amount,
            0,                      # expectedAmount
            callees,
            exchange_data,
            start_indexes,
            values,
            Web3.to_checksum_address(beneficiary),
            PARASWAP_REFERRER,
            False,                  # useReduxToken
        ]

    def get_simple_swap_exchange_call_params(
        self,
        exchange: str,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        maker: LocalAccount = None
    ) -> SwapCallParams:
        if self.resolver is None:
            raise ValueError("simpleSwap requires an ExchangeParamsResolver")
        return self.resolver.resolve(exchange, from_token, to_token, from_amount, to_amount, maker)

    def simple_swap_data(
        self,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int,
        exchange: str,
        beneficiary: str,
        maker: LocalAccount = None
    ) -> bytes:
        """Calldata simpleSwap через одну биржу."""
        call_params = self.get_simple_swap_exchange_call_params(
            exchange, from_token, to_token, from_amount, to_amount, maker
        )
        args = self.build_simple_swap_args(call_params, from_token, to_token, from_amount, to_amount, beneficiary)
        return self._encode(SwapMethod.SIMPLE_SWAP, *args)

    def swap_on_uniswap_data(self, from_token: str, to_token: str, from_amount: int, to_amount: int) -> bytes:
        path = [Web3.to_checksum_address(from_token), Web3.to_checksum_address(to_token)]
        return self._encode(SwapMethod.SWAP_ON_UNISWAP, from_amount, to_amount, path, UNISWAP_REFERRER_ID)

    def swap_on_uniswap_fork_data(self, from_token: str, to_token: str, from_amount: int, to_amount: int) -> bytes:
        if self.uniswap_fork_data is None:
            raise ValueError("swapOnUniswapFork requires UniswapForkData")
        path = [Web3.to_checksum_address(from_token), Web3.to_checksum_address(to_token)]
        return self._encode(
            SwapMethod.SWAP_ON_UNISWAP_FORK,
            Web3.to_checksum_address(self.uniswap_fork_data.factory),
            self.uniswap_fork_data.init_code,
            from_amount,
            to_amount,
            path,
            UNISWAP_REFERRER_ID,
        )

    def encode(self, request: TradeRequest, routes: Sequence[Route] = ()) -> bytes:
        """
        Calldata для request.method.

        Raises:
            InvalidSwapMethodError для неизвестного метода
        """
        method = parse_swap_method(request.method)
        if method == SwapMethod.MULTI_SWAP:
            data = self.multi_swap_data(
                request.from_token, request.to_token, request.from_amount, request.to_amount,
                request.beneficiary, routes,
                request.use_unauthorised_adapter, request.use_unauthorised_target_exchange
            )
        elif method == SwapMethod.MEGA_SWAP:
            data = self.mega_swap_data(
                request.from_token, request.to_token, request.from_amount, request.to_amount,
                request.beneficiary, routes,
                request.use_unauthorised_adapter, request.use_unauthorised_target_exchange
            )
        elif method == SwapMethod.SIMPLE_SWAP:
            data = self.simple_swap_data(
                request.from_token, request.to_token, request.from_amount, request.to_amount,
                request.exchange, request.beneficiary, request.maker
            )
        elif method == SwapMethod.SWAP_ON_UNISWAP:
            data = self.swap_on_uniswap_data(
                request.from_token, request.to_token, request.from_amount, request.to_amount
            )
        else:
            data = self.swap_on_uniswap_fork_data(
                request.from_token, request.to_token, request.from_amount, request.to_amount
            )

        logger.debug(f"Encoded {method.value}: {len(data)} bytes, selector=0x{data[:4].hex()}")
        return data
