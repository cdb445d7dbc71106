"""
Configuration for Paraswap swap scenarios

Константы и настройки для тестовых сценариев обмена токенов
через Paraswap Augustus из смарт-контрактного кошелька (Argent).
"""

import os
from dataclasses import dataclass
from typing import Dict

from dotenv import load_dotenv


# ============================================================
# ADDRESS SENTINELS
# ============================================================

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Paraswap обозначает нативную монету этим адресом
PARASWAP_ETH_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Argent RelayerManager: refund в нативной монете = нулевой адрес
ARGENT_ETH_TOKEN = ZERO_ADDRESS


# ============================================================
# SWAP DEFAULTS
# ============================================================

UNIV3_FEE = 3000  # 0.3%
DEFAULT_DEADLINE = 99999999999

# Фиксированный referrer для всех тестовых свапов
PARASWAP_REFERRER = "abc"
# swapOnUniswap / swapOnUniswapFork принимают referrer как uint8
UNISWAP_REFERRER_ID = 0

# Проценты в базисных пунктах (10000 = 100%)
FULL_PERCENT = 10000

DEFAULT_FROM_AMOUNT = 10**16  # 0.01 ETH в wei
DEFAULT_TO_AMOUNT = 1

# Exchange keyword по умолчанию для сценариев
DEFAULT_EXCHANGE = "uniswapLike"


# ============================================================
# 0x PROTOCOL (EIP-712 domains)
# ============================================================

ZEROEX_V2_DOMAIN_NAME = "0x Protocol"
ZEROEX_V2_DOMAIN_VERSION = "2"
ZEROEX_V4_DOMAIN_NAME = "ZeroEx"
ZEROEX_V4_DOMAIN_VERSION = "1.0.0"

# ERC20 asset proxy id: bytes4(keccak256("ERC20Token(address)"))
ZEROEX_ERC20_PROXY_ID = bytes.fromhex("f47261b0")

# Тип подписи: EIP712
ZEROEX_SIGNATURE_TYPE_EIP712 = 2


# ============================================================
# ROUTE SPLITS
# ============================================================

# Биржи, между которыми делится "uniswapLike" маршрут (равными долями)
UNISWAP_LIKE_SPLIT = ("uniswap", "uniswapv2", "sushiswap", "linkswap", "defiswap")


# ============================================================
# RELAY SETTINGS
# ============================================================

@dataclass
class RelayConfig:
    """Настройки отправки relayed транзакций."""
    gas_price: int = 0                 # gasPrice в подписанном relay (0 = без refund)
    relay_gas_limit: int = 0           # gasLimit в подписанном relay
    fallback_tx_gas: int = 3_000_000   # если estimate_gas не сработал
    gas_buffer_percent: int = 30       # буфер поверх estimate_gas
    receipt_timeout: int = 120         # секунд ожидания receipt


def _env_int(env: Dict[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid integer for {name}: {raw!r}")


def load_relay_config(env: Dict[str, str] = None) -> RelayConfig:
    """
    Загрузка RelayConfig из переменных окружения (.env поддерживается).

    Переменные:
        RELAY_GAS_PRICE, RELAY_GAS_LIMIT, RELAY_FALLBACK_TX_GAS,
        RELAY_GAS_BUFFER_PERCENT, RELAY_RECEIPT_TIMEOUT
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    defaults = RelayConfig()
    return RelayConfig(
        gas_price=_env_int(env, "RELAY_GAS_PRICE", defaults.gas_price),
        relay_gas_limit=_env_int(env, "RELAY_GAS_LIMIT", defaults.relay_gas_limit),
        fallback_tx_gas=_env_int(env, "RELAY_FALLBACK_TX_GAS", defaults.fallback_tx_gas),
        gas_buffer_percent=_env_int(env, "RELAY_GAS_BUFFER_PERCENT", defaults.gas_buffer_percent),
        receipt_timeout=_env_int(env, "RELAY_RECEIPT_TIMEOUT", defaults.receipt_timeout),
    )


def is_eth_token(address: str) -> bool:
    """Проверка: адрес обозначает нативную монету (Paraswap sentinel)."""
    return address.lower() == PARASWAP_ETH_TOKEN.lower()
