"""
0x Orders

Подписанные market maker'ом ордера 0x v2 и RFQ ордера 0x v4
для order-book бирж (paraswappoolv2 / paraswappoolv4, zeroexv2 / zeroexv4).
Подпись по EIP-712 через eth_account.
"""

import logging
import time
from dataclasses import dataclass
from typing import List

from eth_abi import encode
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3

from config import (
    DEFAULT_DEADLINE,
    ZERO_ADDRESS,
    ZEROEX_ERC20_PROXY_ID,
    ZEROEX_SIGNATURE_TYPE_EIP712,
    ZEROEX_V2_DOMAIN_NAME,
    ZEROEX_V2_DOMAIN_VERSION,
    ZEROEX_V4_DOMAIN_NAME,
    ZEROEX_V4_DOMAIN_VERSION,
    is_eth_token,
)

logger = logging.getLogger(__name__)


ZEROEX_V2_ORDER_EIP712_TYPE = [
    {"name": "makerAddress", "type": "address"},
    {"name": "takerAddress", "type": "address"},
    {"name": "feeRecipientAddress", "type": "address"},
    {"name": "senderAddress", "type": "address"},
    {"name": "makerAssetAmount", "type": "uint256"},
    {"name": "takerAssetAmount", "type": "uint256"},
    {"name": "makerFee", "type": "uint256"},
    {"name": "takerFee", "type": "uint256"},
    {"name": "expirationTimeSeconds", "type": "uint256"},
    {"name": "salt", "type": "uint256"},
    {"name": "makerAssetData", "type": "bytes"},
    {"name": "takerAssetData", "type": "bytes"},
]

ZEROEX_V4_RFQ_ORDER_EIP712_TYPE = [
    {"name": "makerToken", "type": "address"},
    {"name": "takerToken", "type": "address"},
    {"name": "makerAmount", "type": "uint128"},
    {"name": "takerAmount", "type": "uint128"},
    {"name": "maker", "type": "address"},
    {"name": "taker", "type": "address"},
    {"name": "txOrigin", "type": "address"},
    {"name": "pool", "type": "bytes32"},
    {"name": "expiry", "type": "uint64"},
    {"name": "salt", "type": "uint256"},
]


@dataclass
class ZeroExV2Orders:
    """Ордера 0x v2 и их подписи (параллельные списки)."""
    orders: List[tuple]
    signatures: List[bytes]


@dataclass
class ZeroExV4RfqOrder:
    """RFQ ордер 0x v4 и подпись (signatureType, v, r, s)."""
    order: tuple
    signature: tuple


def erc20_asset_data(token: str) -> bytes:
    """0x v2 assetData для ERC20: proxy id + abi.encode(token)."""
    return ZEROEX_ERC20_PROXY_ID + encode(["address"], [Web3.to_checksum_address(token)])


class ZeroExOrderSigner:
    """
    Сборка и подпись 0x ордеров от имени market maker'а.

    Taker продаёт from_token, maker отдаёт to_token. Нативная монета
    в ордерах заменяется на WETH: 0x работает только с ERC20.
    """

    def __init__(
        self,
        chain_id: int,
        zeroex_v2_exchange: str,
        zeroex_v4_exchange: str,
        weth: str,
        tx_origin: str = ZERO_ADDRESS
    ):
        self.chain_id = chain_id
        self.zeroex_v2_exchange = Web3.to_checksum_address(zeroex_v2_exchange)
        self.zeroex_v4_exchange = Web3.to_checksum_address(zeroex_v4_exchange)
        self.weth = Web3.to_checksum_address(weth)
        self.tx_origin = Web3.to_checksum_address(tx_origin)

    def _order_token(self, token: str) -> str:
        if is_eth_token(token):
            return self.weth
        return Web3.to_checksum_address(token)

    @staticmethod
    def _default_salt() -> int:
        return int(time.time() * 1000)

    def v2_typed_data(self, message: dict) -> dict:
        """EIP-712 структура ордера 0x v2 (domain без chainId)."""
        return {
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "version", "type": "string"},
                    {"name": "verifyingContract", "type": "address"},
                ],
                "Order": ZEROEX_V2_ORDER_EIP712_TYPE,
            },
            "primaryType": "Order",
            "domain": {
                "name": ZEROEX_V2_DOMAIN_NAME,
                "version": ZEROEX_V2_DOMAIN_VERSION,
                "verifyingContract": self.zeroex_v2_exchange,
            },
            "message": message,
        }

    def v4_typed_data(self, message: dict) -> dict:
        """EIP-712 структура RFQ ордера 0x v4."""
        return {
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "version", "type": "string"},
                    {"name": "chainId", "type": "uint256"},
                    {"name": "verifyingContract", "type": "address"},
                ],
                "RfqOrder": ZEROEX_V4_RFQ_ORDER_EIP712_TYPE,
            },
            "primaryType": "RfqOrder",
            "domain": {
                "name": ZEROEX_V4_DOMAIN_NAME,
                "version": ZEROEX_V4_DOMAIN_VERSION,
                "chainId": self.chain_id,
                "verifyingContract": self.zeroex_v4_exchange,
            },
            "message": message,
        }

    def sign_v2_order(
        self,
        maker: LocalAccount,
        maker_token: str,
        taker_token: str,
        maker_amount: int,
        taker_amount: int,
        salt: int = None,
        expiration: int = DEFAULT_DEADLINE
    ) -> ZeroExV2Orders:
        """Один подписанный ордер 0x v2 (подпись: v || r || s || 0x02)."""
        if salt is None:
            salt = self._default_salt()

        message = {
            "makerAddress": maker.address,
            "takerAddress": ZERO_ADDRESS,
            "feeRecipientAddress": ZERO_ADDRESS,
            "senderAddress": ZERO_ADDRESS,
            "makerAssetAmount": maker_amount,
            "takerAssetAmount": taker_amount,
            "makerFee": 0,
            "takerFee": 0,
            "expirationTimeSeconds": expiration,
            "salt": salt,
            "makerAssetData": erc20_asset_data(self._order_token(maker_token)),
            "takerAssetData": erc20_asset_data(self._order_token(taker_token)),
        }
        typed_data = self.v2_typed_data(message)
        signed = maker.sign_message(encode_typed_data(full_message=typed_data))
        signature = (
            bytes([signed.v])
            + signed.r.to_bytes(32, "big")
            + signed.s.to_bytes(32, "big")
            + bytes([ZEROEX_SIGNATURE_TYPE_EIP712])
        )

        order = tuple(message[field["name"]] for field in ZEROEX_V2_ORDER_EIP712_TYPE)
        logger.debug(f"Signed 0x v2 order: maker={maker.address[:10]}..., salt={salt}")
        return ZeroExV2Orders(orders=[order], signatures=[signature])

    def sign_v4_rfq_order(
        self,
        maker: LocalAccount,
        maker_token: str,
        taker_token: str,
        maker_amount: int,
        taker_amount: int,
        tx_origin: str = None,
        salt: int = None,
        expiry: int = DEFAULT_DEADLINE
    ) -> ZeroExV4RfqOrder:
        """Подписанный RFQ ордер 0x v4 (signatureType = EIP712)."""
        if salt is None:
            salt = self._default_salt()
        tx_origin = Web3.to_checksum_address(tx_origin) if tx_origin else self.tx_origin

        message = {
            "makerToken": self._order_token(maker_token),
            "takerToken": self._order_token(taker_token),
            "makerAmount": maker_amount,
            "takerAmount": taker_amount,
            "maker": maker.address,
            "taker": ZERO_ADDRESS,
            "txOrigin": tx_origin,
            "pool": b"\x00" * 32,
            "expiry": expiry,
            "salt": salt,
        }
        typed_data = self.v4_typed_data(message)
        signed = maker.sign_message(encode_typed_data(full_message=typed_data))
        signature = (
            ZEROEX_SIGNATURE_TYPE_EIP712,
            signed.v,
            signed.r.to_bytes(32, "big"),
            signed.s.to_bytes(32, "big"),
        )

        order = tuple(message[field["name"]] for field in ZEROEX_V4_RFQ_ORDER_EIP712_TYPE)
        logger.debug(f"Signed 0x v4 RFQ order: maker={maker.address[:10]}..., txOrigin={tx_origin[:10]}...")
        return ZeroExV4RfqOrder(order=order, signature=signature)

    def get_order_data(
        self,
        maker: LocalAccount,
        version: int,
        from_token: str,
        to_token: str,
        from_amount: int,
        to_amount: int
    ):
        """
        Подписанная котировка для версии протокола.

        Returns:
            ZeroExV2Orders для version=2, ZeroExV4RfqOrder для version=4
        """
        if version == 2:
            return self.sign_v2_order(maker, to_token, from_token, to_amount, from_amount)
        if version == 4:
            return self.sign_v4_rfq_order(maker, to_token, from_token, to_amount, from_amount)
        raise ValueError(f"Unsupported 0x version: {version}")
