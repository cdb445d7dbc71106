"""
Tests for paraswap_scenarios/scenario.py

Relay и балансы мокаются, calldata собирается настоящим кодировщиком.

Covers:
- pre-check баланса (relay не вызывается)
- сборка батча: approve для токена, value для ETH
- ожидаемая ошибка: совпадение / несовпадение reason, неожиданный успех
- проверка изменения балансов после успешного свапа
- неверный метод
- make_scenario_runner wiring
- helper getters (get_*_swap_data, token_contract)
"""

import pytest
from unittest.mock import MagicMock, Mock

from eth_abi import decode

from paraswap_scenarios.encoder import SwapMethod, decode_swap_call
from paraswap_scenarios.exceptions import InvalidSwapMethodError, ScenarioAssertionError
from paraswap_scenarios.relay import ArgentRelayer
from paraswap_scenarios.scenario import ScenarioContext, SwapScenarioRunner, make_scenario_runner
from paraswap_scenarios.utils import RelayResult


def _make_token(address, balances):
    """Мок ERC20: balanceOf отдаёт значения по очереди, approve кодируется."""
    token = MagicMock()
    token.address = address
    token.functions.balanceOf.return_value.call.side_effect = list(balances)
    token.functions.approve.return_value._encode_transaction_data.return_value = "0x095ea7b3" + "00" * 64
    return token


def _make_runner(encoder, route_factory, addresses, owner, tokens, relay_result, eth_balances=(), guardians=()):
    w3 = MagicMock()
    w3.eth.get_balance.side_effect = list(eth_balances)
    relayer = Mock(spec=ArgentRelayer)
    relayer.relay.return_value = relay_result
    context = ScenarioContext(
        w3=w3,
        wallet_address=addresses.wallet,
        owner=owner,
        relayer=relayer,
        tokens={token.address: token for token in tokens},
        encoder=encoder,
        route_factory=route_factory,
        paraswap_proxy=addresses.paraswap_proxy,
        guardians=list(guardians),
    )
    return SwapScenarioRunner(context)


def _relayed_transactions(runner):
    wallet, transactions = runner.ctx.relayer.relay.call_args.args[2]
    return wallet, transactions


# ============================================================
# Pre-check
# ============================================================

class TestPreCheck:

    def test_insufficient_balance(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10])
        token_b = _make_token(addresses.token_b, [0])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        with pytest.raises(ScenarioAssertionError, match="enough of fromToken"):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b, from_amount=1000)

        runner.ctx.relayer.relay.assert_not_called()

    def test_invalid_method_before_balances(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a],
                              RelayResult(success=True, error=None))

        with pytest.raises(InvalidSwapMethodError):
            runner.run_trade("swapOnKyber", addresses.token_a, addresses.token_b)

        token_a.functions.balanceOf.assert_not_called()
        runner.ctx.relayer.relay.assert_not_called()


# ============================================================
# Successful trade
# ============================================================

class TestSuccessfulTrade:

    def test_token_to_token_multi_swap(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18, 10**18 - 10**16])
        token_b = _make_token(addresses.token_b, [0, 500])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        result = runner.run_trade("multiSwap", addresses.token_a, addresses.token_b)
        assert result.success

        method_name = runner.ctx.relayer.relay.call_args.args[1]
        signers = runner.ctx.relayer.relay.call_args.args[3]
        assert method_name == "multiCall"
        assert signers == [owner]

        wallet, transactions = _relayed_transactions(runner)
        assert wallet == addresses.wallet
        assert len(transactions) == 2

        # 1. approve(paraswap_proxy, from_amount)
        token_a.functions.approve.assert_called_once_with(addresses.paraswap_proxy, 10**16)
        assert transactions[0][0] == addresses.token_a
        assert transactions[0][1] == 0

        # 2. Augustus.multiSwap без value
        to, value, data = transactions[1]
        assert to == addresses.augustus
        assert value == 0
        assert decode_swap_call(data).method is SwapMethod.MULTI_SWAP

    def test_eth_source_skips_approve_and_sends_value(self, encoder, route_factory, addresses, owner):
        token_b = _make_token(addresses.token_b, [0, 500])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_b],
                              RelayResult(success=True, error=None),
                              eth_balances=[10**18, 10**18 - 10**16])

        runner.run_trade("megaSwap", addresses.eth, addresses.token_b)

        _wallet, transactions = _relayed_transactions(runner)
        assert len(transactions) == 1
        to, value, data = transactions[0]
        assert to == addresses.augustus
        assert value == 10**16
        assert decode_swap_call(data).method is SwapMethod.MEGA_SWAP

    def test_simple_swap_via_exchange(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18, 0])
        token_b = _make_token(addresses.token_b, [0, 1])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        runner.run_trade("simpleSwap", addresses.token_a, addresses.token_b, exchange="curve")

        _wallet, transactions = _relayed_transactions(runner)
        decoded = decode_swap_call(transactions[1][2])
        assert decoded.method is SwapMethod.SIMPLE_SWAP
        assert decoded.args[5][-1] == addresses.curve_pool.lower()

    def test_guardians_sign_after_owner(self, encoder, route_factory, addresses, owner, guardian):
        token_a = _make_token(addresses.token_a, [10**18, 0])
        token_b = _make_token(addresses.token_b, [0, 1])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None), guardians=[guardian])

        runner.run_trade("swapOnUniswap", addresses.token_a, addresses.token_b)
        assert runner.ctx.relayer.relay.call_args.args[3] == [owner, guardian]

    def test_guardians_sorted_by_address(self, encoder, route_factory, addresses, owner, guardian, market_maker):
        """Подписи guardians идут по возрастанию адреса, независимо от порядка в контексте."""
        ascending = sorted([guardian, market_maker], key=lambda a: int(a.address, 16))
        token_a = _make_token(addresses.token_a, [10**18, 0])
        token_b = _make_token(addresses.token_b, [0, 1])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None), guardians=ascending[::-1])

        runner.run_trade("swapOnUniswap", addresses.token_a, addresses.token_b)
        assert runner.ctx.relayer.relay.call_args.args[3] == [owner] + ascending

    def test_to_balance_not_increased(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18, 0])
        token_b = _make_token(addresses.token_b, [5, 5])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        with pytest.raises(ScenarioAssertionError, match="toToken balance should increase"):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b)

    def test_from_balance_not_decreased(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18, 10**18])
        token_b = _make_token(addresses.token_b, [0, 1])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        with pytest.raises(ScenarioAssertionError, match="fromToken balance should decrease"):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b)

    def test_unexpected_failure(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18])
        token_b = _make_token(addresses.token_b, [0])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=False, error="UniswapV2: K"))

        with pytest.raises(ScenarioAssertionError, match='multiCall failed: "UniswapV2: K"'):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b)


# ============================================================
# Expected failure
# ============================================================

class TestExpectedFailure:

    def test_matching_reason(self, encoder, route_factory, addresses, owner):
        """Reason совпал: балансы после relay не читаются."""
        token_a = _make_token(addresses.token_a, [10**18])
        token_b = _make_token(addresses.token_b, [0])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=False, error="Exchange not whitelisted"))

        result = runner.run_trade(
            "multiSwap", addresses.token_a, addresses.token_b,
            use_unauthorised_adapter=True, error_reason="Exchange not whitelisted"
        )
        assert result.success is False
        assert token_a.functions.balanceOf.return_value.call.call_count == 1
        assert token_b.functions.balanceOf.return_value.call.call_count == 1

        # unauthorised адаптер попал в calldata
        _wallet, transactions = _relayed_transactions(runner)
        (sell_data,) = decode_swap_call(transactions[1][2]).args
        ((_to, _fee, routes),) = sell_data[7]
        assert {r[0] for r in routes} == {addresses.unauthorised_adapter.lower()}

    def test_mismatched_reason(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18])
        token_b = _make_token(addresses.token_b, [0])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=False, error="other reason"))

        with pytest.raises(ScenarioAssertionError, match="expected 'Exchange not whitelisted'"):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b,
                             error_reason="Exchange not whitelisted")

    def test_unexpected_success(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [10**18])
        token_b = _make_token(addresses.token_b, [0])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a, token_b],
                              RelayResult(success=True, error=None))

        with pytest.raises(ScenarioAssertionError, match="should have failed"):
            runner.run_trade("multiSwap", addresses.token_a, addresses.token_b, error_reason="anything")


# ============================================================
# Wiring
# ============================================================

class TestMakeScenarioRunner:

    def test_wiring(self, mock_w3, module_contract, addresses, owner, relayer_account, market_maker,
                    augustus, address_book, exchange_contracts):
        runner = make_scenario_runner(
            w3=mock_w3,
            module=module_contract,
            wallet_address=addresses.wallet.lower(),
            owner=owner,
            relayer_account=relayer_account,
            tokens={},
            augustus=augustus,
            paraswap_proxy=addresses.paraswap_proxy,
            address_book=address_book,
            exchange_contracts=exchange_contracts,
            zeroex_v2_proxy=addresses.zeroex_v2_proxy,
            market_maker=market_maker,
        )

        assert runner.ctx.wallet_address == addresses.wallet
        assert runner.augustus is augustus
        assert runner.ctx.relayer.relayer is relayer_account
        assert runner.ctx.route_factory.weth == addresses.weth
        signer = runner.ctx.route_factory.order_signer
        assert signer.chain_id == 1337
        assert signer.tx_origin == relayer_account.address

    def test_zeroex_route_signed_by_market_maker(self, mock_w3, module_contract, addresses, owner,
                                                 relayer_account, market_maker, augustus, address_book,
                                                 exchange_contracts):
        runner = make_scenario_runner(
            mock_w3, module_contract, addresses.wallet, owner, relayer_account, {}, augustus,
            addresses.paraswap_proxy, address_book, exchange_contracts, market_maker=market_maker,
        )
        (route,) = runner.get_routes(addresses.token_a, addresses.token_b, "zeroexv4")
        assert route.payload
        order_maker = decode(["address"], route.payload[4 * 32:5 * 32])[0]
        assert order_maker == market_maker.address.lower()


# ============================================================
# Helper getters
# ============================================================

class TestHelperGetters:

    def test_swap_data_helpers(self, encoder, route_factory, addresses, owner):
        runner = _make_runner(encoder, route_factory, addresses, owner, [], RelayResult(success=True, error=None))
        routes = runner.get_routes(addresses.token_a, addresses.token_b, "uniswapv3")

        multi = runner.get_multi_swap_data(
            from_token=addresses.token_a, to_token=addresses.token_b, from_amount=10, to_amount=1,
            beneficiary=addresses.wallet, routes=routes
        )
        mega = runner.get_mega_swap_data(
            from_token=addresses.token_a, to_token=addresses.token_b, from_amount=10, to_amount=1,
            beneficiary=addresses.wallet, routes=routes
        )
        simple = runner.get_simple_swap_data(
            addresses.token_a, addresses.token_b, 10, 1, "uniswapv2", addresses.wallet
        )

        assert decode_swap_call(multi).method is SwapMethod.MULTI_SWAP
        assert decode_swap_call(mega).method is SwapMethod.MEGA_SWAP
        assert decode_swap_call(simple).method is SwapMethod.SIMPLE_SWAP

    def test_simple_swap_exchange_call_params(self, encoder, route_factory, addresses, owner):
        runner = _make_runner(encoder, route_factory, addresses, owner, [], RelayResult(success=True, error=None))
        params = runner.get_simple_swap_exchange_call_params("curve", addresses.token_a, addresses.token_b, 10, 1)
        assert params.swap_method == "exchange"

    def test_token_contract_lookup(self, encoder, route_factory, addresses, owner):
        token_a = _make_token(addresses.token_a, [])
        runner = _make_runner(encoder, route_factory, addresses, owner, [token_a],
                              RelayResult(success=True, error=None))

        assert runner.token_contract(addresses.eth) is None
        assert runner.token_contract(addresses.token_a.lower()) is token_a
        runner.token_contract(addresses.token_b)
        assert runner.ctx.w3.eth.contract.call_args.kwargs["address"] == addresses.token_b
