from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class CoachFlaw(BaseModel):
    id: str
    title: str
    severity: str
    injury_risk: bool
    category: str
    correction: str


class CoachContext(BaseModel):
    """
    Read-only grounding data for a downstream explainer. Every value here
    is copied from the run's keyframes, metrics, score or flaws.
    """
    sport: str
    action: str
    overall_score: int
    confidence: float
    keyframes: Dict[str, Optional[int]] = Field(default_factory=dict)
    metrics: Dict[str, Optional[float]] = Field(default_factory=dict)
    metric_units: Dict[str, str] = Field(default_factory=dict)
    score_breakdown: Dict[str, int] = Field(default_factory=dict)
    flaws: List[CoachFlaw] = Field(default_factory=list)


class ReportModel(BaseModel):
    schema_id: str = "motionverse.v1"
    version: str = "1.0.0"

    coach_context: Optional[CoachContext] = None
    grounding_text: str = ""
    warnings: List[str] = Field(default_factory=list)
