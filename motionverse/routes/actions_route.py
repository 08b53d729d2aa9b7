from fastapi import APIRouter

from motionverse.config.registry import list_actions

router = APIRouter()


@router.get("/actions")
def actions():
    return {
        "actions": [
            {
                "action_id": cfg.action_id,
                "sport": cfg.sport,
                "display_name": cfg.display_name or cfg.action_id,
                "metrics": [m.name for m in cfg.metrics],
                "categories": [c.name for c in cfg.categories],
            }
            for cfg in list_actions()
        ]
    }
