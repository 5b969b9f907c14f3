from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional

WarningLevel = Literal["expensive", "high_cost", "notice"]


@dataclass(frozen=True)
class CostEstimate:
    resolution: Optional[str]
    duration_seconds: int
    rate_per_second: Decimal
    cost: Decimal
    warning_level: Optional[WarningLevel] = None
    warning: Optional[str] = None
    is_fallback_rate: bool = False

    def to_dict(self) -> dict:
        return {
            "resolution": self.resolution,
            "duration_seconds": self.duration_seconds,
            "rate_per_second": str(self.rate_per_second),
            "cost": str(self.cost),
            "warning_level": self.warning_level,
            "warning": self.warning,
            "is_fallback_rate": self.is_fallback_rate,
        }


@dataclass(frozen=True)
class CostRange:
    resolution: Optional[str]
    duration_seconds: int
    min_cost: Decimal
    point_cost: Decimal
    max_cost: Decimal

    def to_dict(self) -> dict:
        return {
            "resolution": self.resolution,
            "duration_seconds": self.duration_seconds,
            "min_cost": str(self.min_cost),
            "point_cost": str(self.point_cost),
            "max_cost": str(self.max_cost),
        }
