"""Solana chain constants and time-range tables."""

from decimal import Decimal

SOL_MINT = "So11111111111111111111111111111111111111112"
SOL_SYMBOL = "SOL"
LAMPORTS_PER_SOL = Decimal(10**9)

#: Fiat-pegged mints treated as 1:1 USD and as BUY/SELL anchors.
STABLE_MINTS: dict[str, str] = {
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
}

#: Native change below this is treated as "no SOL moved" when classifying.
NATIVE_EPSILON = Decimal("1e-8")
#: A transaction with no tokens and native change below this is dropped.
DROP_EPSILON = Decimal("1e-9")

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86_400

DEFAULT_TIME_RANGE = "30d"

TIME_RANGE_SECONDS: dict[str, int] = {
    "24h": SECONDS_PER_DAY,
    "7d": 7 * SECONDS_PER_DAY,
    "30d": 30 * SECONDS_PER_DAY,
    "6m": 180 * SECONDS_PER_DAY,
    "1y": 365 * SECONDS_PER_DAY,
}

#: Sampling interval for the holdings-only timeline, per requested range.
SYNTHETIC_INTERVAL_SECONDS: dict[str, int] = {
    "24h": SECONDS_PER_HOUR,
    "7d": 6 * SECONDS_PER_HOUR,
    "30d": SECONDS_PER_DAY,
}
SYNTHETIC_DEFAULT_INTERVAL = 7 * SECONDS_PER_DAY


def range_seconds(time_range: str) -> int:
    """Length of a requested range in seconds; unknown ranges mean 30d."""
    return TIME_RANGE_SECONDS.get(time_range, TIME_RANGE_SECONDS[DEFAULT_TIME_RANGE])


def hour_bucket(timestamp: int) -> int:
    """Floor a unix timestamp to the start of its hour."""
    return (timestamp // SECONDS_PER_HOUR) * SECONDS_PER_HOUR


def day_start(timestamp: int) -> int:
    """Floor a unix timestamp to UTC midnight."""
    return (timestamp // SECONDS_PER_DAY) * SECONDS_PER_DAY
