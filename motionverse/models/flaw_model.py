from pydantic import BaseModel, Field
from typing import Optional, List, Literal


Severity = Literal["low", "medium", "high"]
FlawCategory = Literal["form", "power", "balance", "timing", "injury_risk"]

SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}


class Drill(BaseModel):
    name: str
    description: str = ""
    duration: Optional[str] = None


class Reference(BaseModel):
    url: str
    title: Optional[str] = None


class FlawModel(BaseModel):
    id: str
    title: str
    description: str = ""
    category: FlawCategory = "form"

    # Independent attributes: a low-severity flaw can still carry injury risk
    severity: Severity = "low"
    injury_risk: bool = False
    injury_details: Optional[str] = None

    correction: str = ""

    metric: Optional[str] = None
    actual_value: Optional[float] = None
    ideal_range: Optional[List[float]] = None
    threshold: Optional[float] = None

    affected_body_parts: List[str] = Field(default_factory=list)
    drill: Optional[Drill] = None
    reference: Optional[Reference] = None

    confidence: float = 1.0


class FlawReport(BaseModel):
    flaws: List[FlawModel] = Field(default_factory=list)
    rules_evaluated: int = 0
    rules_suppressed: int = 0
    overall_injury_risk: Literal["none", "low", "moderate", "high"] = "none"
    summary: str = ""
