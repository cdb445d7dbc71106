"""
ABI definitions for Paraswap Augustus, the exchanges it routes through
and the Argent wallet module.

Плюс канонические строки ABI-типов для eth_abi (кодирование payload
маршрутов и декодирование calldata).
"""

# ============================================================
# CANONICAL ABI TYPE STRINGS
# ============================================================

# Utils.Route: exchange, targetExchange, percent, payload, networkFee
ROUTE_TYPE = "(address,address,uint256,bytes,uint256)"
# Utils.Path: to, totalNetworkFee, routes
PATH_TYPE = f"(address,uint256,{ROUTE_TYPE}[])"
# Utils.MegaSwapPath: fromAmountPercent, path
MEGA_PATH_TYPE = f"(uint256,{PATH_TYPE}[])"

_SELL_DATA_HEAD = "address,uint256,uint256,uint256,address,string,bool"
SELL_DATA_TYPE = f"({_SELL_DATA_HEAD},{PATH_TYPE}[])"
MEGA_SELL_DATA_TYPE = f"({_SELL_DATA_HEAD},{MEGA_PATH_TYPE}[])"

SIMPLE_SWAP_TYPES = [
    "address", "address", "uint256", "uint256", "uint256",
    "address[]", "bytes", "uint256[]", "uint256[]",
    "address", "string", "bool",
]
SWAP_ON_UNISWAP_TYPES = ["uint256", "uint256", "address[]", "uint8"]
SWAP_ON_UNISWAP_FORK_TYPES = ["address", "bytes32", "uint256", "uint256", "address[]", "uint8"]

# Payload'ы адаптеров Augustus
UNISWAP_V2_PAYLOAD_TYPE = "(address[])"
UNISWAP_V3_PAYLOAD_TYPE = "(uint24,uint256,uint160)"
CURVE_PAYLOAD_TYPE = "(int128,int128,uint256,bool)"

ZEROEX_V2_ORDER_TYPE = (
    "(address,address,address,address,uint256,uint256,uint256,uint256,uint256,uint256,bytes,bytes)"
)
ZEROEX_V2_PAYLOAD_TYPE = f"({ZEROEX_V2_ORDER_TYPE}[],bytes[])"

ZEROEX_V4_ORDER_TYPE = "(address,address,uint128,uint128,address,address,address,bytes32,uint64,uint256)"
ZEROEX_V4_SIGNATURE_TYPE = "(uint8,uint8,bytes32,bytes32)"
ZEROEX_V4_PAYLOAD_TYPE = f"({ZEROEX_V4_ORDER_TYPE},{ZEROEX_V4_SIGNATURE_TYPE})"


# ============================================================
# STRUCT COMPONENTS
# ============================================================

_ROUTE_COMPONENTS = [
    {"name": "exchange", "type": "address"},
    {"name": "targetExchange", "type": "address"},
    {"name": "percent", "type": "uint256"},
    {"name": "payload", "type": "bytes"},
    {"name": "networkFee", "type": "uint256"},
]

_PATH_COMPONENTS = [
    {"name": "to", "type": "address"},
    {"name": "totalNetworkFee", "type": "uint256"},
    {"name": "routes", "type": "tuple[]", "components": _ROUTE_COMPONENTS},
]

_MEGA_PATH_COMPONENTS = [
    {"name": "fromAmountPercent", "type": "uint256"},
    {"name": "path", "type": "tuple[]", "components": _PATH_COMPONENTS},
]


def _sell_data_components(path_components: list) -> list:
    return [
        {"name": "fromToken", "type": "address"},
        {"name": "fromAmount", "type": "uint256"},
        {"name": "toAmount", "type": "uint256"},
        {"name": "expectedAmount", "type": "uint256"},
        {"name": "beneficiary", "type": "address"},
        {"name": "referrer", "type": "string"},
        {"name": "useReduxToken", "type": "bool"},
        {"name": "path", "type": "tuple[]", "components": path_components},
    ]


# ============================================================
# PARASWAP AUGUSTUS (V4)
# ============================================================

AUGUSTUS_ABI = [
    {
        "inputs": [
            {
                "components": _sell_data_components(_PATH_COMPONENTS),
                "name": "data",
                "type": "tuple"
            }
        ],
        "name": "multiSwap",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {
                "components": _sell_data_components(_MEGA_PATH_COMPONENTS),
                "name": "data",
                "type": "tuple"
            }
        ],
        "name": "megaSwap",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "fromToken", "type": "address"},
            {"name": "toToken", "type": "address"},
            {"name": "fromAmount", "type": "uint256"},
            {"name": "toAmount", "type": "uint256"},
            {"name": "expectedAmount", "type": "uint256"},
            {"name": "callees", "type": "address[]"},
            {"name": "exchangeData", "type": "bytes"},
            {"name": "startIndexes", "type": "uint256[]"},
            {"name": "values", "type": "uint256[]"},
            {"name": "beneficiary", "type": "address"},
            {"name": "referrer", "type": "string"},
            {"name": "useReduxToken", "type": "bool"}
        ],
        "name": "simpleSwap",
        "outputs": [{"name": "receivedAmount", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            {"name": "path", "type": "address[]"},
            {"name": "referrer", "type": "uint8"}
        ],
        "name": "swapOnUniswap",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "factory", "type": "address"},
            {"name": "initCode", "type": "bytes32"},
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            {"name": "path", "type": "address[]"},
            {"name": "referrer", "type": "uint8"}
        ],
        "name": "swapOnUniswapFork",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getTokenTransferProxy",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }
]


# ============================================================
# EXCHANGES
# ============================================================

# Paraswap-овский Uniswap V2 router (упрощённый swap без to/deadline)
PARASWAP_UNIV2_ROUTER_ABI = [
    {
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            {"name": "path", "type": "address[]"}
        ],
        "name": "swap",
        "outputs": [{"name": "tokensBought", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    }
]

# Uniswap V3 SwapRouter (первая версия, с deadline в структуре)
UNISWAP_V3_ROUTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"}
                ],
                "name": "params",
                "type": "tuple"
            }
        ],
        "name": "exactInputSingle",
        "outputs": [{"name": "amountOut", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    }
]

UNISWAP_V1_EXCHANGE_ABI = [
    {
        "inputs": [
            {"name": "min_tokens", "type": "uint256"},
            {"name": "deadline", "type": "uint256"}
        ],
        "name": "ethToTokenSwapInput",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "tokens_sold", "type": "uint256"},
            {"name": "min_eth", "type": "uint256"},
            {"name": "deadline", "type": "uint256"}
        ],
        "name": "tokenToEthSwapInput",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "tokens_sold", "type": "uint256"},
            {"name": "min_tokens_bought", "type": "uint256"},
            {"name": "min_eth_bought", "type": "uint256"},
            {"name": "deadline", "type": "uint256"},
            {"name": "token_addr", "type": "address"}
        ],
        "name": "tokenToTokenSwapInput",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

UNISWAP_V1_FACTORY_ABI = [
    {
        "inputs": [{"name": "token", "type": "address"}],
        "name": "getExchange",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }
]

_ZEROEX_V2_ORDER_COMPONENTS = [
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

ZEROEX_V2_EXCHANGE_ABI = [
    {
        "inputs": [
            {"name": "orders", "type": "tuple[]", "components": _ZEROEX_V2_ORDER_COMPONENTS},
            {"name": "takerAssetFillAmount", "type": "uint256"},
            {"name": "signatures", "type": "bytes[]"}
        ],
        "name": "marketSellOrdersNoThrow",
        "outputs": [
            {
                "components": [
                    {"name": "makerAssetFilledAmount", "type": "uint256"},
                    {"name": "takerAssetFilledAmount", "type": "uint256"},
                    {"name": "makerFeePaid", "type": "uint256"},
                    {"name": "takerFeePaid", "type": "uint256"}
                ],
                "name": "fillResults",
                "type": "tuple"
            }
        ],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

ZEROEX_V4_EXCHANGE_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"name": "makerToken", "type": "address"},
                    {"name": "takerToken", "type": "address"},
                    {"name": "makerAmount", "type": "uint128"},
                    {"name": "takerAmount", "type": "uint128"},
                    {"name": "maker", "type": "address"},
                    {"name": "taker", "type": "address"},
                    {"name": "txOrigin", "type": "address"},
                    {"name": "pool", "type": "bytes32"},
                    {"name": "expiry", "type": "uint64"},
                    {"name": "salt", "type": "uint256"}
                ],
                "name": "order",
                "type": "tuple"
            },
            {
                "components": [
                    {"name": "signatureType", "type": "uint8"},
                    {"name": "v", "type": "uint8"},
                    {"name": "r", "type": "bytes32"},
                    {"name": "s", "type": "bytes32"}
                ],
                "name": "signature",
                "type": "tuple"
            },
            {"name": "takerTokenFillAmount", "type": "uint128"}
        ],
        "name": "fillRfqOrder",
        "outputs": [
            {"name": "takerTokenFilledAmount", "type": "uint128"},
            {"name": "makerTokenFilledAmount", "type": "uint128"}
        ],
        "stateMutability": "payable",
        "type": "function"
    }
]

CURVE_POOL_ABI = [
    {
        "inputs": [
            {"name": "i", "type": "int128"},
            {"name": "j", "type": "int128"},
            {"name": "dx", "type": "uint256"},
            {"name": "min_dy", "type": "uint256"}
        ],
        "name": "exchange",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]


# ============================================================
# TOKENS
# ============================================================

ERC20_ABI = [
    {"inputs": [{"name": "account", "type": "address"}], "name": "balanceOf", "outputs": [{"type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}], "name": "approve", "outputs": [{"type": "bool"}], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}], "name": "allowance", "outputs": [{"type": "uint256"}], "stateMutability": "view", "type": "function"},
]

WETH_ABI = ERC20_ABI + [
    {"inputs": [], "name": "deposit", "outputs": [], "stateMutability": "payable", "type": "function"},
    {"inputs": [{"name": "wad", "type": "uint256"}], "name": "withdraw", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]


# ============================================================
# ARGENT MODULE (RelayerManager + TransactionManager)
# ============================================================

ARGENT_MODULE_ABI = [
    {
        "inputs": [
            {"name": "_wallet", "type": "address"},
            {"name": "_data", "type": "bytes"},
            {"name": "_nonce", "type": "uint256"},
            {"name": "_signatures", "type": "bytes"},
            {"name": "_gasPrice", "type": "uint256"},
            {"name": "_gasLimit", "type": "uint256"},
            {"name": "_refundToken", "type": "address"},
            {"name": "_refundAddress", "type": "address"}
        ],
        "name": "execute",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "_wallet", "type": "address"},
            {
                "components": [
                    {"name": "to", "type": "address"},
                    {"name": "value", "type": "uint256"},
                    {"name": "data", "type": "bytes"}
                ],
                "name": "_transactions",
                "type": "tuple[]"
            }
        ],
        "name": "multiCall",
        "outputs": [{"name": "", "type": "bytes[]"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "_wallet", "type": "address"}],
        "name": "getNonce",
        "outputs": [{"name": "nonce", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "wallet", "type": "address"},
            {"indexed": True, "name": "success", "type": "bool"},
            {"indexed": False, "name": "returnData", "type": "bytes"},
            {"indexed": False, "name": "signedHash", "type": "bytes32"}
        ],
        "name": "TransactionExecuted",
        "type": "event"
    }
]
