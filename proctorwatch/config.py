"""
Proctorwatch Configuration Settings

Rule thresholds are expressed in normalized units:
- Head deviation: nose-tip offset from frame center (fraction of frame)
- Gaze deviation: iris offset from eye-box center (fraction of eye box)
- Hand proximity: fingertip height (fraction of frame height from the top)
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Configuration for the proctoring service."""

    # API Settings
    APP_NAME: str = "Proctorwatch Service"
    DEBUG: bool = True
    PORT: int = 8001
    LOG_LEVEL: str = "INFO"

    # Rule thresholds (0 disables a check)
    PROCTOR_HEAD_DEVIATION_H: float = 0.15
    PROCTOR_HEAD_DEVIATION_V: float = 0.20
    PROCTOR_GAZE_DEVIATION_H: float = 0.25
    PROCTOR_GAZE_DEVIATION_V: float = 0.35
    PROCTOR_HAND_PROXIMITY_Y: float = 0.75

    # Debounce
    PROCTOR_PERSISTENCE_SECONDS: float = 5.0
    PROCTOR_MIN_HAND_CONFIDENCE: float = 0.5
    PROCTOR_FAILURE_POLICY: str = "fail_open"  # or "fail_closed"

    # Perception model
    PROCTOR_NUM_FACES: int = 2  # need >1 to detect "Multiple Faces"
    PROCTOR_NUM_HANDS: int = 2
    PROCTOR_MODELS_DIR: Optional[str] = None

    # Incident log (fire-and-forget POST on critical incidents)
    INCIDENT_LOG_URL: Optional[str] = None
    INCIDENT_LOG_TIMEOUT: float = 5.0

    # Observation loop cadence
    OBSERVATION_INTERVAL_SECONDS: float = 0.5

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
