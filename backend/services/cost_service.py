import logging
from decimal import Decimal
from typing import Optional

from models.cost import CostEstimate, CostRange, WarningLevel
from services.pricing import lookup_band, round_money

logger = logging.getLogger("cost_service")

# Exclusive lower bounds in USD, highest severity first.
WARNING_TIERS: list[tuple[Decimal, WarningLevel, str]] = [
    (
        Decimal("25"),
        "expensive",
        "🔥 EXPENSIVE ALERT: This video generation will cost over $25! Sora pricing climbs quickly "
        "for longer or higher-resolution videos. Consider a shorter duration or lower resolution.",
    ),
    (
        Decimal("15"),
        "high_cost",
        "⚠️ High cost alert: This video generation will cost over $15. Consider optimizing your specifications.",
    ),
    (
        Decimal("8"),
        "notice",
        "💡 Cost notice: This generation will cost over $8. You can reduce costs with a shorter duration "
        "or lower resolution.",
    ),
]


def warning_for(cost: Decimal) -> tuple[Optional[WarningLevel], Optional[str]]:
    for threshold, level, message in WARNING_TIERS:
        if cost > threshold:
            return level, message
    return None, None


class CostEstimationService:
    """Per-second, resolution-tiered Sora cost estimates.

    All methods are pure: no I/O, same inputs give the same result.
    Negative durations are not clamped and yield negative costs.
    """

    def estimate(self, resolution: Optional[str], duration_seconds: int) -> CostEstimate:
        band, is_fallback = lookup_band(resolution)
        if is_fallback:
            logger.warning(f"Unknown resolution {resolution!r}, using fallback rate {band.point_rate}/s")

        rate = band.point_rate
        cost = round_money(rate * Decimal(duration_seconds))
        level, warning = warning_for(cost)
        return CostEstimate(
            resolution=resolution,
            duration_seconds=duration_seconds,
            rate_per_second=rate,
            cost=cost,
            warning_level=level,
            warning=warning,
            is_fallback_rate=is_fallback,
        )

    def estimate_range(self, resolution: Optional[str], duration_seconds: int) -> CostRange:
        band, _ = lookup_band(resolution)
        duration = Decimal(duration_seconds)
        return CostRange(
            resolution=resolution,
            duration_seconds=duration_seconds,
            min_cost=round_money(band.min_rate * duration),
            point_cost=round_money(band.point_rate * duration),
            max_cost=round_money(band.max_rate * duration),
        )

    def cost_breakdown(self, resolution: Optional[str], duration_seconds: int) -> str:
        band, is_fallback = lookup_band(resolution)
        estimate = self.estimate(resolution, duration_seconds)
        cost_range = self.estimate_range(resolution, duration_seconds)

        lines = [
            f"• Video generation ({duration_seconds}s at {resolution or 'unknown resolution'}): ${estimate.cost}",
            f"  └─ Rate: ${estimate.rate_per_second}/s",
        ]
        if band.is_variable:
            lines.append(
                f"  └─ Published rate range: ${band.min_rate}-${band.max_rate}/s "
                f"(${cost_range.min_cost}-${cost_range.max_cost} total)"
            )
        if is_fallback:
            lines.append("  └─ Unrecognized resolution: fallback rate applied, actual cost may be higher")
        lines.append(f"• **Total estimated cost: ${estimate.cost}**")
        if estimate.warning:
            lines.append("")
            lines.append(estimate.warning)
        return "\n".join(lines)
