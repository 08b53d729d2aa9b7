from typing import List

from motionverse.models.flaw_model import FlawModel


def aggregate_injury_risk(flaws: List[FlawModel]) -> str:
    """
    Aggregate injury risk conservatively.

    Rules:
    - Only flaws flagged injury_risk count
    - Any high-severity injury flaw => high
    - More than one injury flaw => moderate
    - Exactly one => low
    - None => none
    """
    injury = [f for f in flaws if f.injury_risk]

    if any(f.severity == "high" for f in injury):
        return "high"
    if len(injury) > 1:
        return "moderate"
    if injury:
        return "low"
    return "none"


def summarize(flaws: List[FlawModel]) -> str:
    if not flaws:
        return "Great job! No significant technique issues detected."

    injury = [f for f in flaws if f.injury_risk]
    high = [f for f in flaws if f.severity == "high"]

    if injury:
        return (
            f"Detected {len(flaws)} issue(s), including {len(injury)} potential "
            f"injury risk(s). Address these for safety."
        )
    if high:
        return (
            f"Detected {len(flaws)} issue(s), including {len(high)} "
            f"high-priority item(s) to work on."
        )
    return f"Detected {len(flaws)} minor issue(s) to improve your technique."
