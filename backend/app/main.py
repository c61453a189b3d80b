"""
FastAPI main application.
Entry point for the Meal Plan API.
"""
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import get_settings
from app.core.exceptions import MealPlanError
from app.db.session import init_db
from app.api import routes_plans
from app.core.logging import setup_logging
from app.services.plan_service import PlanService, get_plan_service

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and start background sweeps."""
    logger.info("Starting Meal Plan API...")
    init_db()
    logger.info("Database initialized.")
    service = get_plan_service()
    service.start()
    yield
    logger.info("Shutting down Meal Plan API...")
    await service.stop()


# Create FastAPI app
app = FastAPI(
    title="Meal Plan API",
    description="Weekly meal plans from a recipe catalog, reconciled against the user's pantry",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes_plans.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "message": "Meal Plan API is running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check(service: PlanService = Depends(get_plan_service)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": get_settings().database_url,
        "budget": service.budget.snapshot(),
        "cache": service.cache.stats(),
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_errors(exc)},
    )


@app.exception_handler(MealPlanError)
async def meal_plan_exception_handler(request: Request, exc: MealPlanError):
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.detail},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    """Validation errors without the raw input, which may not be serializable."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
