from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from models.job import Resolution

CENTS = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RateBand:
    """Published USD-per-second rate for a resolution."""
    min_rate: Decimal
    max_rate: Decimal

    @property
    def point_rate(self) -> Decimal:
        return round_money((self.min_rate + self.max_rate) / 2)

    @property
    def is_variable(self) -> bool:
        return self.min_rate != self.max_rate


def _flat(rate: str) -> RateBand:
    return RateBand(Decimal(rate), Decimal(rate))


def _band(low: str, high: str) -> RateBand:
    return RateBand(Decimal(low), Decimal(high))


PRICING_TABLE: dict[Resolution, RateBand] = {
    Resolution.SQUARE_480: _flat("0.15"),
    Resolution.PORTRAIT_480: _flat("0.20"),
    Resolution.LANDSCAPE_480: _flat("0.20"),
    Resolution.SQUARE_720: _flat("0.30"),
    Resolution.PORTRAIT_720: _band("0.45", "0.60"),
    Resolution.LANDSCAPE_720: _band("0.45", "0.60"),
    Resolution.SQUARE_1080: _band("0.60", "0.90"),
    Resolution.PORTRAIT_1080: _band("1.00", "1.50"),
    Resolution.LANDSCAPE_1080: _band("1.00", "1.50"),
}

# Lowest published rate of the most expensive tier. Under-prices anything
# newer than the table; callers must not make cost-sensitive decisions on it.
FALLBACK_RATE = PRICING_TABLE[Resolution.LANDSCAPE_1080].min_rate
FALLBACK_BAND = RateBand(FALLBACK_RATE, FALLBACK_RATE)


def lookup_band(resolution: str | None) -> tuple[RateBand, bool]:
    """Return ``(band, is_fallback)`` for a resolution string."""
    key = Resolution.from_value(resolution)
    if key is None:
        return FALLBACK_BAND, True
    return PRICING_TABLE[key], False
