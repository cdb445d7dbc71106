"""Exceptions raised by swap scenario helpers."""


class SwapScenarioError(Exception):
    """Базовая ошибка сценариев свапа."""
    pass


class UnknownExchangeError(SwapScenarioError, ValueError):
    """Exchange keyword не входит в поддерживаемый набор."""
    def __init__(self, exchange: str):
        self.exchange = exchange
        super().__init__(f"Unknown exchange: {exchange!r}")


class InvalidSwapMethodError(SwapScenarioError, ValueError):
    """Метод Augustus не поддерживается."""
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Invalid method: {method!r}")


class ScenarioAssertionError(SwapScenarioError, AssertionError):
    """Проверка сценария не прошла (баланс, success flag, reason)."""
    pass


class RelayError(SwapScenarioError):
    """Relay транзакция не дала TransactionExecuted события."""
    pass
