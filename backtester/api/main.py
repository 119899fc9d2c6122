from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backtester.api.routes import backtests
from backtester.config.settings import settings
from backtester.strategies.registry import default_registry
from backtester.utils.logger import setup_logging

setup_logging()

app = FastAPI(
    title=f"{settings.project_name} API",
    version=settings.version,
    description="Replay rule-based trading strategies over historical candles",
)

# CORS - allow frontend to call API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(backtests.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": f"{settings.project_name} API", "status": "running"}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.environment,
        "data_provider": settings.data_provider,
        "strategies": len(default_registry),
        "timestamp": datetime.now().isoformat(),
    }
