# Fixed point scale factors
ORACLE_SCALE = 10**36  # collateral tokens per 1 loan token, scaled 1e36
BPS = 10_000  # Basis points (100% = 10000)
WAD = 1_000_000_000_000_000_000  # 1e18 for health factor

# Integer ranges of the on-chain account fields
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

# Oracle constants
MIN_ORACLE_PRICE = 1
MAX_ORACLE_PRICE_MULTIPLIER = 1_000_000_000  # max price is a 1 billion ratio
MAX_ORACLE_STALENESS = 50  # in slots, ~20 seconds
MIN_ORACLE_SAMPLES = 1
SLOT_DURATION_MS = 400

# Oracle account layouts
SWITCHBOARD_MIN_ACCOUNT_SIZE = 1000  # pull feed accounts are ~3KB
DISCRIMINATOR_SIZE = 8
STATIC_ORACLE_MIN_SIZE = DISCRIMINATOR_SIZE + 1 + 16  # discriminator + bump + price

# Liquidation incentive constants
LIF_CURSOR = 3_000  # 0.3 in LIF_BPS
LIF_BPS = 10_000
MAX_LIF = 11_500  # 1.15x

# Share accounting offsets
VIRTUAL_SHARES = 1
VIRTUAL_ASSETS = 1
