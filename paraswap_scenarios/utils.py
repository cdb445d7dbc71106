"""
Testing utilities shared by swap scenarios.

Includes:
- encode_transaction: Call struct for Argent multiCall
- get_balance: ETH / ERC20 balance lookup
- NonceManager: nonce'ы relayer'а между relay транзакциями
- decode_revert_reason: Error(string) return data -> reason
- parse_relay_receipt: TransactionExecuted event -> RelayResult
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Union

from eth_abi import decode
from web3 import Web3
from web3.contract import Contract
from web3.types import TxReceipt

from config import is_eth_token
from .contracts.abis import ERC20_ABI
from .exceptions import RelayError

logger = logging.getLogger(__name__)

# Error(string) selector
ERROR_SELECTOR = bytes.fromhex("08c379a0")

TRANSACTION_EXECUTED_TOPIC = Web3.keccak(text="TransactionExecuted(address,bool,bytes,bytes32)")


def to_bytes(data: Union[str, bytes, bytearray]) -> bytes:
    """Hex-строка или bytes -> bytes."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if data.startswith("0x"):
        data = data[2:]
    return bytes.fromhex(data)


def encode_transaction(to: str, value: int, data: Union[str, bytes]) -> tuple:
    """Call struct (to, value, data) для TransactionManager.multiCall."""
    return (Web3.to_checksum_address(to), value, to_bytes(data))


def get_balance(w3: Web3, token_address: str, account_address: str, token_contract: Contract = None) -> int:
    """
    Баланс account_address в токене token_address.

    Для Paraswap ETH sentinel возвращает нативный баланс.
    """
    account_address = Web3.to_checksum_address(account_address)
    if is_eth_token(token_address):
        return w3.eth.get_balance(account_address)

    if token_contract is None:
        token_contract = w3.eth.contract(
            address=Web3.to_checksum_address(token_address),
            abi=ERC20_ABI
        )
    return token_contract.functions.balanceOf(account_address).call()


class NonceManager:
    """
    Nonce'ы транзакций relayer'а.

    Несколько relay подряд не должны получить один и тот же nonce из
    get_transaction_count('pending'), пока предыдущая транзакция не смайнилась.

    Использование:
        nonces = NonceManager(w3, relayer.address)
        nonce = nonces.get_next_nonce()
        try:
            send(...)
        except Exception:
            nonces.release_nonce(nonce)
            raise
        nonces.confirm_transaction(nonce)
    """

    def __init__(self, w3: Web3, account_address: str):
        self.w3 = w3
        self.account_address = Web3.to_checksum_address(account_address)
        self._lock = threading.Lock()
        self._current_nonce: Optional[int] = None
        self._pending_nonces: set = set()
        self._last_sync_time: float = 0
        self._sync_interval: float = 30.0

    def get_next_nonce(self, force_sync: bool = False) -> int:
        """
        Следующий свободный nonce.

        Синхронизация с get_transaction_count('pending') при первом вызове,
        по force_sync и не реже раза в _sync_interval секунд.
        """
        with self._lock:
            current_time = time.time()
            if (self._current_nonce is None or
                    force_sync or
                    current_time - self._last_sync_time > self._sync_interval):
                chain_nonce = self.w3.eth.get_transaction_count(self.account_address, 'pending')
                # смайненные nonce'ы больше не pending
                self._pending_nonces = {n for n in self._pending_nonces if n >= chain_nonce}
                # транзакции с этого адреса в обход менеджера сдвигают chain nonce
                self._current_nonce = max(self._current_nonce or 0, chain_nonce)
                self._last_sync_time = current_time
                logger.debug(f"Synced relayer nonce: {self._current_nonce}")

            nonce = self._current_nonce
            self._current_nonce += 1
            self._pending_nonces.add(nonce)
            return nonce

    def confirm_transaction(self, nonce: int):
        with self._lock:
            self._pending_nonces.discard(nonce)

    def release_nonce(self, nonce: int):
        """Вернуть nonce, если транзакция так и не была отправлена."""
        with self._lock:
            self._pending_nonces.discard(nonce)
            if self._current_nonce is not None and nonce == self._current_nonce - 1:
                self._current_nonce = nonce
            logger.debug(f"Released relayer nonce: {nonce}, current: {self._current_nonce}")

    def get_pending_count(self) -> int:
        with self._lock:
            return len(self._pending_nonces)


def decode_revert_reason(return_data: Union[str, bytes]) -> str:
    """
    Декодирование причины revert из return data.

    Error(string) payload декодируется через eth_abi, остальное
    интерпретируется как utf-8 строка.
    """
    data = to_bytes(return_data) if return_data else b""
    if data.startswith(ERROR_SELECTOR):
        try:
            (reason,) = decode(["string"], data[4:])
            return reason
        except Exception as e:
            logger.debug(f"Could not decode Error(string) payload: {e}")
    return data.decode("utf-8", errors="replace").rstrip("\x00")


@dataclass
class RelayResult:
    """Результат relayed вызова."""
    success: bool
    error: Optional[str]
    receipt: Optional[TxReceipt] = None


def parse_relay_receipt(receipt: TxReceipt, module_contract: Contract = None) -> RelayResult:
    """
    Парсинг TransactionExecuted из receipt relay транзакции.

    Args:
        receipt: Receipt транзакции RelayerManager.execute
        module_contract: Контракт модуля (для process_receipt)

    Returns:
        RelayResult(success, error), error: причина revert или None

    Raises:
        RelayError если событие не найдено
    """
    if module_contract is not None:
        try:
            events = module_contract.events.TransactionExecuted().process_receipt(receipt)
            if events:
                args = events[0]["args"]
                success = bool(args["success"])
                error = None if success else decode_revert_reason(args["returnData"])
                return RelayResult(success=success, error=error, receipt=receipt)
        except Exception as e:
            logger.debug(f"Could not parse TransactionExecuted via ABI: {e}")

    # Fallback: парсим вручную из raw logs
    for log in receipt.get("logs", []):
        topics = log.get("topics", [])
        if not topics or to_bytes(topics[0]) != bytes(TRANSACTION_EXECUTED_TOPIC):
            continue
        success = len(topics) > 2 and int.from_bytes(to_bytes(topics[2]), "big") != 0
        return_data, _signed_hash = decode(["bytes", "bytes32"], to_bytes(log.get("data", b"")))
        error = None if success else decode_revert_reason(return_data)
        return RelayResult(success=success, error=error, receipt=receipt)

    status = receipt.get("status", 0)
    raise RelayError(f"TransactionExecuted event not found in receipt (status={status})")
