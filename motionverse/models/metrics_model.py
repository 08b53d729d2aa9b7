from pydantic import BaseModel, Field
from typing import Optional, Dict


class MetricValue(BaseModel):
    value: Optional[float] = None
    unit: str = ""
    available: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: float, unit: str) -> "MetricValue":
        return cls(value=float(value), unit=unit, available=True)

    @classmethod
    def unavailable(cls, unit: str, reason: str) -> "MetricValue":
        return cls(value=None, unit=unit, available=False, reason=reason)


class MetricsModel(BaseModel):
    values: Dict[str, MetricValue] = Field(default_factory=dict)

    def get(self, name: str) -> Optional[float]:
        """Numeric value, or None when the metric is unavailable."""
        mv = self.values.get(name)
        if mv is None or not mv.available:
            return None
        return mv.value

    def is_available(self, name: str) -> bool:
        mv = self.values.get(name)
        return mv is not None and mv.available

    def available_names(self):
        return [k for k, v in self.values.items() if v.available]

    def as_flat(self) -> Dict[str, Optional[float]]:
        return {k: (v.value if v.available else None) for k, v in self.values.items()}
