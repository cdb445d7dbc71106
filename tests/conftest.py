"""
Shared fixtures for all tests.

Контракты создаются на Web3 без провайдера: для кодирования calldata
сеть не нужна. Всё, что ходит в сеть (балансы, relay), мокается.
"""

from types import SimpleNamespace

import pytest
from unittest.mock import Mock, MagicMock
from eth_account import Account
from web3 import Web3

from config import PARASWAP_ETH_TOKEN
from paraswap_scenarios.contracts.abis import (
    ARGENT_MODULE_ABI,
    AUGUSTUS_ABI,
    CURVE_POOL_ABI,
    PARASWAP_UNIV2_ROUTER_ABI,
    UNISWAP_V1_EXCHANGE_ABI,
    UNISWAP_V3_ROUTER_ABI,
    WETH_ABI,
    ZEROEX_V2_EXCHANGE_ABI,
    ZEROEX_V4_EXCHANGE_ABI,
)
from paraswap_scenarios.encoder import SwapCallEncoder, UniswapForkData
from paraswap_scenarios.exchanges import ExchangeContracts, ExchangeParamsResolver
from paraswap_scenarios.orders import ZeroExOrderSigner
from paraswap_scenarios.paths import AddressBook
from paraswap_scenarios.routes import RouteExchange, RouteFactory


CHAIN_ID = 1337


def _addr(n: int) -> str:
    return Web3.to_checksum_address(f"0x{n:040x}")


class MockWeb3:
    """Переиспользуемый мок Web3 для тестов relay / сценариев."""

    def __init__(self, initial_nonce: int = 100):
        self._nonce = initial_nonce
        self.eth = MagicMock()
        self.eth.get_transaction_count = MagicMock(return_value=self._nonce)
        self.eth.gas_price = 20_000_000_000  # 20 gwei
        self.eth.chain_id = CHAIN_ID
        self.eth.block_number = 12_000_000
        self.eth.send_raw_transaction = MagicMock(return_value=b'\x12\x34' * 16)
        self.eth.wait_for_transaction_receipt = MagicMock(return_value={
            'status': 1,
            'gasUsed': 300_000,
            'logs': [],
            'transactionHash': b'\x12\x34' * 16
        })
        self.eth.get_balance = MagicMock(return_value=0)

    def set_nonce(self, nonce: int):
        self._nonce = nonce
        self.eth.get_transaction_count.return_value = nonce


@pytest.fixture
def mock_w3():
    """Мок Web3 instance."""
    return MockWeb3()


@pytest.fixture
def w3_offline():
    """Web3 без провайдера: только для сборки контрактов и calldata."""
    return Web3()


# ============================================================
# ACCOUNTS
# ============================================================

@pytest.fixture
def owner():
    return Account.from_key("0x" + "11" * 32)


@pytest.fixture
def guardian():
    return Account.from_key("0x" + "22" * 32)


@pytest.fixture
def relayer_account():
    return Account.from_key("0x" + "33" * 32)


@pytest.fixture
def market_maker():
    return Account.from_key("0x" + "44" * 32)


@pytest.fixture
def mock_account():
    """Мок LocalAccount (без реальной подписи)."""
    account = Mock()
    account.address = "0x1234567890123456789012345678901234567890"
    account.sign_transaction = Mock(return_value=Mock(raw_transaction=b'signed_tx'))
    return account


# ============================================================
# ADDRESSES & CONTRACTS
# ============================================================

@pytest.fixture
def addresses():
    """Тестовые адреса окружения."""
    return SimpleNamespace(
        eth=PARASWAP_ETH_TOKEN,
        token_a=_addr(0xA1),
        token_b=_addr(0xB1),
        weth=_addr(0xEE),
        augustus=_addr(0x1000),
        paraswap_proxy=_addr(0x1001),
        module=_addr(0x2000),
        wallet=_addr(0x3000),
        univ2_router=_addr(0x4001),
        univ3_router=_addr(0x4002),
        univ1_factory=_addr(0x4003),
        univ1_exchange_a=_addr(0x4004),
        univ1_exchange_b=_addr(0x4005),
        zeroex_v2=_addr(0x4006),
        zeroex_v2_proxy=_addr(0x4007),
        zeroex_v4=_addr(0x4008),
        curve_pool=_addr(0x4009),
        unauthorised_adapter=_addr(0xBAD1),
        unauthorised_target=_addr(0xBAD2),
        fork_factory=_addr(0x5000),
    )


@pytest.fixture
def adapter_addresses():
    """Адаптер для каждой RouteExchange: 0x6000 + порядковый номер."""
    return {ex: _addr(0x6000 + i) for i, ex in enumerate(RouteExchange)}


@pytest.fixture
def address_book(addresses, adapter_addresses):
    return AddressBook.create(
        adapters=adapter_addresses,
        target_exchanges={
            RouteExchange.UNISWAP: addresses.univ1_factory,
            RouteExchange.UNISWAP_V3: addresses.univ3_router,
            RouteExchange.PARASWAP_POOL_V2: addresses.zeroex_v2,
            RouteExchange.PARASWAP_POOL_V4: addresses.zeroex_v4,
            RouteExchange.CURVE: addresses.curve_pool,
        },
        unauthorised_adapter=addresses.unauthorised_adapter,
        unauthorised_target_exchange=addresses.unauthorised_target,
    )


@pytest.fixture
def exchange_contracts(w3_offline, addresses):
    def contract(address, abi):
        return w3_offline.eth.contract(address=address, abi=abi)

    return ExchangeContracts(
        paraswap_univ2_router=contract(addresses.univ2_router, PARASWAP_UNIV2_ROUTER_ABI),
        uniswap_v3_router=contract(addresses.univ3_router, UNISWAP_V3_ROUTER_ABI),
        uniswap_v1_exchanges={
            addresses.token_a: contract(addresses.univ1_exchange_a, UNISWAP_V1_EXCHANGE_ABI),
            addresses.token_b: contract(addresses.univ1_exchange_b, UNISWAP_V1_EXCHANGE_ABI),
        },
        zeroex_v2_target_exchange=contract(addresses.zeroex_v2, ZEROEX_V2_EXCHANGE_ABI),
        zeroex_v4_target_exchange=contract(addresses.zeroex_v4, ZEROEX_V4_EXCHANGE_ABI),
        curve_pool=contract(addresses.curve_pool, CURVE_POOL_ABI),
        weth=contract(addresses.weth, WETH_ABI),
    )


@pytest.fixture
def augustus(w3_offline, addresses):
    return w3_offline.eth.contract(address=addresses.augustus, abi=AUGUSTUS_ABI)


@pytest.fixture
def module_contract(w3_offline, addresses):
    return w3_offline.eth.contract(address=addresses.module, abi=ARGENT_MODULE_ABI)


@pytest.fixture
def order_signer(addresses, relayer_account):
    return ZeroExOrderSigner(
        chain_id=CHAIN_ID,
        zeroex_v2_exchange=addresses.zeroex_v2,
        zeroex_v4_exchange=addresses.zeroex_v4,
        weth=addresses.weth,
        tx_origin=relayer_account.address,
    )


@pytest.fixture
def resolver(exchange_contracts, addresses, order_signer, market_maker):
    return ExchangeParamsResolver(
        exchange_contracts,
        addresses.augustus,
        order_signer=order_signer,
        zeroex_v2_proxy=addresses.zeroex_v2_proxy,
        default_maker=market_maker,
    )


@pytest.fixture
def uniswap_fork_data(addresses):
    return UniswapForkData(factory=addresses.fork_factory, init_code=b"\xab" * 32)


@pytest.fixture
def encoder(augustus, address_book, resolver, uniswap_fork_data):
    return SwapCallEncoder(augustus, address_book, resolver, uniswap_fork_data)


@pytest.fixture
def route_factory(addresses, order_signer):
    return RouteFactory(addresses.weth, order_signer)


# ============================================================
# RECEIPTS
# ============================================================

@pytest.fixture
def mock_receipt_success():
    """Успешный receipt транзакции."""
    return {
        'status': 1,
        'gasUsed': 300_000,
        'logs': [],
        'transactionHash': b'\x12\x34' * 16,
        'blockNumber': 12_000_000,
    }
