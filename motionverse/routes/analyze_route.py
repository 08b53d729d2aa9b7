from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from motionverse.models.pose_model import PoseFrame, PoseModel
from motionverse.pipeline.runner import analyze as run_pipeline

router = APIRouter()


class AnalyzeRequest(BaseModel):
    action: str
    hand: Literal["R", "L", "auto"] = "auto"
    athlete_height: Optional[float] = None
    height_unit: Literal["cm", "m", "in", "ft"] = "cm"
    fps: Optional[float] = None
    frames: List[PoseFrame] = Field(default_factory=list)


# Error code → HTTP status
STATUS_BY_CODE = {
    "ACTION_UNSUPPORTED": 404,
    "INPUT_MALFORMED": 422,
    "CONFIG_INVALID": 500,
}


@router.post("/analyze")
def analyze(req: AnalyzeRequest):
    pose = PoseModel(fps=req.fps, frames=req.frames)

    ctx = run_pipeline(
        pose,
        req.action,
        hand=req.hand,
        athlete_height=req.athlete_height,
        height_unit=req.height_unit,
    )

    if ctx.error is not None:
        raise HTTPException(
            status_code=STATUS_BY_CODE.get(ctx.error.code, 422),
            detail=ctx.error.model_dump(),
        )

    return ctx.model_dump(
        exclude={
            "pose": {"frames": True},
            "smoothed": {"frames": True},
        },
    )
