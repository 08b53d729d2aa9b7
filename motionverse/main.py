from fastapi import FastAPI
from motionverse.routes.analyze_route import router as analyze_router
from motionverse.routes.actions_route import router as actions_router
from motionverse.routes.health_route import router as health_router

app = FastAPI(
    title="Motionverse",
    version="1.0.0"
)

# Register endpoints
app.include_router(health_router, tags=["health"])
app.include_router(actions_router, tags=["actions"])
app.include_router(analyze_router, tags=["analysis"])
