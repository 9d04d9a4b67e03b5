"""
Application Configuration
Reads tunables from the environment (and an optional .env file)
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _database_url() -> str:
    """
    Resolve the storage URL.

    DATABASE_URL wins when set. Otherwise a PostgreSQL URL is built from
    the DB_* variables if DB_HOST is present, falling back to a local
    SQLite file.
    """
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    if os.getenv('DB_HOST'):
        return (
            f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASSWORD')}"
            f"@{os.getenv('DB_HOST')}:{os.getenv('DB_PORT', '5432')}/{os.getenv('DB_NAME')}"
        )

    return "sqlite:///./strength_tracker.db"


DATABASE_URL = _database_url()

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
PORT = int(os.getenv('PORT', 8000))

# Rest timer
DEFAULT_REST_SECONDS = int(os.getenv('DEFAULT_REST_SECONDS', 90))

# Prediction models
# 15% headroom over the best recorded value is a fixed heuristic, not a fitted quantity
ASYMPTOTIC_HEADROOM = float(os.getenv('ASYMPTOTIC_HEADROOM', 1.15))
SMOOTHING_ALPHA = float(os.getenv('SMOOTHING_ALPHA', 0.3))
PREDICTION_HORIZONS = [
    int(days) for days in os.getenv('PREDICTION_HORIZONS', '30,90,180,365').split(',')
]

# Profile used for percentile ranking until the user saves their own
DEFAULT_BODYWEIGHT = float(os.getenv('DEFAULT_BODYWEIGHT', 180))
DEFAULT_BODYWEIGHT_UNIT = os.getenv('DEFAULT_BODYWEIGHT_UNIT', 'lbs')
DEFAULT_GENDER = os.getenv('DEFAULT_GENDER', 'male')
