"""
Strength Tracker Service
FastAPI application for workout sessions, strength analytics and predictions

Run with: uvicorn main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

import database
from config import (
    DEFAULT_BODYWEIGHT,
    DEFAULT_BODYWEIGHT_UNIT,
    DEFAULT_GENDER,
    LOG_LEVEL,
    PORT,
)
from routers import analytics_router, predictions_router, rest_timer_router, sessions_router
from services import ProgressTracker, RestTimer, StorageService, WorkoutSessionManager
from services.models import Gender, UserProfile, WeightUnit, utc_now

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(engine: Optional[Engine] = None, clock: Callable = utc_now) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Database to store everything in (defaults to DATABASE_URL)
        clock: Source of "now" for sessions, rest timer and records
    """
    if engine is None:
        engine = database.engine

    session_factory = database.build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.init_schema(engine)

        storage = StorageService(session_factory)
        default_profile = UserProfile(
            bodyweight=DEFAULT_BODYWEIGHT,
            bodyweight_unit=WeightUnit(DEFAULT_BODYWEIGHT_UNIT),
            gender=Gender(DEFAULT_GENDER),
        )
        progress_tracker = ProgressTracker(storage, default_profile, clock=clock)
        rest_timer = RestTimer(storage, clock=clock)
        session_manager = WorkoutSessionManager(storage, progress_tracker, clock=clock)

        # Nothing is served until the persisted state has been read
        rest_timer.restore()
        session_manager.restore()

        app.state.storage = storage
        app.state.progress_tracker = progress_tracker
        app.state.rest_timer = rest_timer
        app.state.session_manager = session_manager
        logger.info("Strength tracker ready (storage: %s)", engine.url.render_as_string(hide_password=True))

        yield

        session_manager.close()

    # Create FastAPI app
    app = FastAPI(
        title="Strength Tracker",
        description="""
        ## Workout Sessions and Strength Analytics

        ### Sessions
        - **Active Workout**: Start or resume a workout, log, edit and delete sets
        - **Finish / Cancel**: Finishing records history and personal records
        - **Rest Timer**: Countdown between sets that survives restarts

        ### Analytics
        - **1RM Estimates**: Epley estimate used for personal records
        - **Percentile Rankings**: Compared against population strength standards
        - **Tiers**: E through S, with the points needed for the next tier

        ### Predictions
        - **Strength Forecasting**: Ensemble of models at 30/90/180/365 days
        - **Goal Date Estimation**: Predict when you'll reach a target 1RM
        - **1RM Calculator**: Calculate estimated 1RM using various formulas

        ---

        **Tech Stack**: Python, FastAPI, SQLAlchemy, scikit-learn, pandas
        """,
        version=VERSION,
        docs_url="/docs",  # Swagger UI
        redoc_url="/redoc",  # ReDoc alternative
        lifespan=lifespan
    )

    # Configure CORS to allow requests from the frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:8080",   # Frontend dev server
            "http://127.0.0.1:5500",   # VS Code Live Server
            "null"                      # Local file:// access
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Check if the service is running"""
        return {
            "status": "healthy",
            "service": "strength-tracker",
            "version": VERSION
        }

    # Include routers
    app.include_router(sessions_router)
    app.include_router(rest_timer_router)
    app.include_router(analytics_router)
    app.include_router(predictions_router)

    # Root endpoint with service info
    @app.get("/", tags=["Info"])
    async def root():
        """Service information and available endpoints"""
        return {
            "service": "Strength Tracker",
            "version": VERSION,
            "documentation": "/docs",
            "endpoints": {
                "sessions": {
                    "start": "POST /sessions",
                    "active": "GET /sessions/active",
                    "complete_set": "POST /sessions/active/sets",
                    "finish": "POST /sessions/active/finish",
                    "cancel": "POST /sessions/active/cancel",
                    "history": "GET /sessions/history"
                },
                "rest_timer": {
                    "status": "GET /rest-timer",
                    "start": "POST /rest-timer/start",
                    "skip": "POST /rest-timer/skip"
                },
                "analytics": {
                    "profile": "GET|PUT /analytics/profile",
                    "1rm": "GET /analytics/1rm",
                    "percentile": "GET /analytics/percentile",
                    "tier": "GET /analytics/tier",
                    "record_lift": "POST /analytics/lifts",
                    "progress": "GET /analytics/progress/{exercise_id}"
                },
                "predictions": {
                    "strength": "GET /predictions/strength/{exercise_id}",
                    "goal": "GET /predictions/goal/{exercise_id}",
                    "series": "POST /predictions/series",
                    "1rm_calculator": "GET /predictions/1rm/calculate"
                }
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=PORT, reload=True)
