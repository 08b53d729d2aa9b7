from pydantic import BaseModel, Field
from typing import Optional, Dict


class MetricScore(BaseModel):
    raw_value: Optional[float] = None
    score: Optional[float] = None
    included: bool = False
    exclude_reason: Optional[str] = None
    category: Optional[str] = None


class ScoreModel(BaseModel):
    """
    Overall 0–100 score, per-category breakdown and a confidence value
    equal to the fraction of configured metrics that were available.
    """
    overall: int = 0
    breakdown: Dict[str, int] = Field(default_factory=dict)
    confidence: float = 0.0
    label: str = "INSUFFICIENT_DATA"

    details: Dict[str, MetricScore] = Field(default_factory=dict)
