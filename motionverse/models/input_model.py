from pydantic import BaseModel
from typing import Literal, Optional


HEIGHT_TO_CM = {
    "cm": 1.0,
    "m": 100.0,
    "in": 2.54,
    "ft": 30.48,
}


class InputModel(BaseModel):
    action: str
    hand: Literal["R", "L", "auto"] = "auto"
    athlete_height: Optional[float] = None
    height_unit: Literal["cm", "m", "in", "ft"] = "cm"

    def height_cm(self) -> Optional[float]:
        if self.athlete_height is None or self.athlete_height <= 0:
            return None
        return float(self.athlete_height) * HEIGHT_TO_CM[self.height_unit]
