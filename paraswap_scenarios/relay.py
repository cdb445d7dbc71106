"""
Argent Relayer

Отправка вызова модуля кошелька через RelayerManager.execute:
owner подписывает хэш вызова офчейн, relayer отправляет транзакцию
и оплачивает газ.
"""

import logging
import time
from typing import List, Sequence

from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract

from config import ARGENT_ETH_TOKEN, RelayConfig
from .utils import NonceManager, RelayResult, parse_relay_receipt, to_bytes

logger = logging.getLogger(__name__)


class ArgentRelayer:
    """
    Релеер мета-транзакций для модулей Argent.

    Использование:
    ```python
    relayer = ArgentRelayer(w3, module, relayer_account)
    result = relayer.relay(wallet, "multiCall", [wallet, calls], [owner])
    assert result.success, result.error
    ```
    """

    def __init__(
        self,
        w3: Web3,
        module: Contract,
        relayer: LocalAccount,
        relay_config: RelayConfig = None
    ):
        self.w3 = w3
        self.module = module
        self.relayer = relayer
        self.config = relay_config or RelayConfig()
        self.nonce_manager = NonceManager(w3, relayer.address)

    def get_nonce_for_relay(self) -> int:
        """Nonce relay: номер блока в старших 128 битах, timestamp (ms) в младших."""
        block = self.w3.eth.block_number
        timestamp = int(time.time() * 1000)
        return (block << 128) | timestamp

    def get_sign_hash(
        self,
        data: bytes,
        nonce: int,
        gas_price: int,
        gas_limit: int,
        refund_token: str,
        refund_address: str,
        chain_id: int = None
    ) -> bytes:
        """
        Хэш, который подписывают owner/guardians.

        keccak256(0x19 || 0x00 || module || value(0) || data || chainId
                  || nonce || gasPrice || gasLimit || refundToken || refundAddress)
        """
        if chain_id is None:
            chain_id = self.w3.eth.chain_id
        return Web3.solidity_keccak(
            ["bytes1", "bytes1", "address", "uint256", "bytes", "uint256",
             "uint256", "uint256", "uint256", "address", "address"],
            [
                b"\x19",
                b"\x00",
                Web3.to_checksum_address(self.module.address),
                0,
                to_bytes(data),
                chain_id,
                nonce,
                gas_price,
                gas_limit,
                Web3.to_checksum_address(refund_token),
                Web3.to_checksum_address(refund_address),
            ]
        )

    @staticmethod
    def sign_offchain(signers: Sequence[LocalAccount], sign_hash: bytes) -> bytes:
        """
        Конкатенация 65-байтных подписей (r || s || v) в порядке signers.

        Argent ожидает owner первым, guardians после него по возрастанию адреса
        (порядок задаёт SwapScenarioRunner.multi_call).
        """
        message = encode_defunct(primitive=bytes(sign_hash))
        signatures = b""
        for signer in signers:
            signed = signer.sign_message(message)
            signatures += bytes(signed.signature)
        return signatures

    def relay(
        self,
        wallet_address: str,
        method: str,
        params: List,
        signers: Sequence[LocalAccount],
        gas_price: int = None,
        refund_token: str = ARGENT_ETH_TOKEN,
        refund_address: str = None
    ) -> RelayResult:
        """
        Relayed вызов метода модуля от имени кошелька.

        Args:
            wallet_address: Адрес кошелька
            method: Имя метода модуля (например "multiCall")
            params: Позиционные аргументы метода
            signers: Подписанты (owner первым)
            gas_price: gasPrice для refund (по умолчанию из RelayConfig)
            refund_token: Токен refund'а
            refund_address: Получатель refund'а (по умолчанию relayer)

        Returns:
            RelayResult с флагом success и причиной revert
        """
        if gas_price is None:
            gas_price = self.config.gas_price
        if refund_address is None:
            refund_address = self.relayer.address

        wallet_address = Web3.to_checksum_address(wallet_address)
        method_data = to_bytes(
            getattr(self.module.functions, method)(*params)._encode_transaction_data()
        )
        nonce = self.get_nonce_for_relay()
        gas_limit = self.config.relay_gas_limit

        sign_hash = self.get_sign_hash(
            method_data, nonce, gas_price, gas_limit, refund_token, refund_address
        )
        signatures = self.sign_offchain(signers, sign_hash)

        execute_fn = self.module.functions.execute(
            wallet_address,
            method_data,
            nonce,
            signatures,
            gas_price,
            gas_limit,
            Web3.to_checksum_address(refund_token),
            Web3.to_checksum_address(refund_address),
        )

        # Оценка газа
        try:
            estimated = execute_fn.estimate_gas({'from': self.relayer.address})
            tx_gas = int(estimated * (1 + self.config.gas_buffer_percent / 100))
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}, using fallback {self.config.fallback_tx_gas}")
            tx_gas = self.config.fallback_tx_gas

        # relay ждёт receipt, поэтому chain nonce перечитывается каждый раз
        tx_nonce = self.nonce_manager.get_next_nonce(force_sync=True)
        try:
            tx = execute_fn.build_transaction({
                'from': self.relayer.address,
                'nonce': tx_nonce,
                'gas': tx_gas,
                'gasPrice': self.w3.eth.gas_price,
            })
            signed = self.relayer.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception:
            self.nonce_manager.release_nonce(tx_nonce)
            raise
        logger.info(f"Relay {method} for {wallet_address[:10]}... sent: {tx_hash.hex()}, nonce={tx_nonce}")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.config.receipt_timeout)
        self.nonce_manager.confirm_transaction(tx_nonce)
        result = parse_relay_receipt(receipt, self.module)

        if result.success:
            logger.info(f"Relay {method} SUCCESS, gas={receipt.get('gasUsed', 0)}")
        else:
            logger.info(f"Relay {method} FAILED: {result.error}")
        return result
