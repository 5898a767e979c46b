"""Process-wide constants for bank accounting and valuation."""

# Time
SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_YEAR = SECONDS_PER_DAY * 365.25

# Oracle max age (seconds) applied when a bank config decodes with 0
DEFAULT_ORACLE_MAX_AGE = 60

# I80F48: on-chain signed fixed-point layout (80 integer + 48 fractional bits)
I80F48_FRACTIONAL_BITS = 48
I80F48_TOTAL_BITS = 128
I80F48_TOTAL_BYTES = I80F48_TOTAL_BITS // 8
I80F48_DIVISOR = 2**I80F48_FRACTIONAL_BITS

# Significant digits for Decimal arithmetic. An I80F48 value has at most
# 39 integer + 48 fractional digits, so it converts exactly. Products stay
# exact for realistic magnitudes (share values, prices, weights, token
# amounts); two full-width operands can exceed the precision and are rounded.
FIXED_POINT_PRECISION = 128

# Bank.flags emission bits
EMISSIONS_FLAG_BORROW_ACTIVE = 1 << 0
EMISSIONS_FLAG_LENDING_ACTIVE = 1 << 1

# Environment variable naming a JSON bank snapshot file
BANK_SNAPSHOT_PATH_ENV = "BANK_SNAPSHOT_PATH"
