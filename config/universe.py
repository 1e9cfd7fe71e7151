"""
Default instrument universe: 54 USDT spot pairs
"""

DEFAULT_UNIVERSE = (
    'BTC_USDT', 'ETH_USDT', 'BNB_USDT', 'SOL_USDT', 'XRP_USDT',
    'DOGE_USDT', 'TRX_USDT', 'ADA_USDT', 'AVAX_USDT', 'LINK_USDT',
    'TON_USDT', 'SUI_USDT', 'DOT_USDT', 'XLM_USDT', 'SHIB_USDT',
    'LTC_USDT', 'BCH_USDT', 'UNI_USDT', 'APT_USDT', 'NEAR_USDT',
    'ICP_USDT', 'ETC_USDT', 'HBAR_USDT', 'VET_USDT', 'FIL_USDT',
    'ALGO_USDT', 'THETA_USDT', 'XTZ_USDT', 'AXS_USDT', 'SAND_USDT',
    'MANA_USDT', 'GALA_USDT', 'CHZ_USDT', 'ENJ_USDT', 'BAT_USDT',
    'ZIL_USDT', 'IOTA_USDT', 'EOS_USDT', 'NEO_USDT', 'QTUM_USDT',
    'ONT_USDT', 'ZRX_USDT', 'KNC_USDT', 'COMP_USDT', 'MKR_USDT',
    'YFI_USDT', 'AAVE_USDT', 'CRV_USDT', 'SNX_USDT', '1INCH_USDT',
    'SUSHI_USDT', 'LRC_USDT', 'DYDX_USDT', 'PEPE_USDT',
)
