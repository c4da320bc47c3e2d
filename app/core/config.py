import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Settings(BaseSettings):
    PROJECT_NAME: str = os.getenv('PROJECT_NAME', 'POSTURE COACH')
    API_PREFIX: str = '/api'
    BACKEND_CORS_ORIGINS: List[str] = ['*']
    LOGGING_CONFIG_FILE: str = os.path.join(BASE_DIR, 'logging.ini')

    # Storage: 'sql' (SQLAlchemy key-value table) or 'memory'
    STORAGE_BACKEND: str = os.getenv('STORAGE_BACKEND', 'sql')
    DATABASE_URL: str = os.getenv('SQL_DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'posture_coach.db'))

    # Exercise sessions
    POSE_SESSION_TIMEOUT: int = int(os.getenv('POSE_SESSION_TIMEOUT', '3600'))  # 1 hour default
    VISIBILITY_THRESHOLD: float = float(os.getenv('VISIBILITY_THRESHOLD', '0.5'))
    SAMPLE_SMOOTHING_WINDOW: int = int(os.getenv('SAMPLE_SMOOTHING_WINDOW', '1'))
    EXERCISE_CATALOG_FILE: Optional[str] = os.getenv('EXERCISE_CATALOG_FILE') or None
    SESSION_LOG_DIR: Optional[str] = os.getenv('SESSION_LOG_DIR') or None

    # History
    EXERCISE_HISTORY_LIMIT: int = int(os.getenv('EXERCISE_HISTORY_LIMIT', '100'))


settings = Settings()
