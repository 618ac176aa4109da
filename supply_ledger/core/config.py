from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    PROJECT_NAME: str = "Water Supply Ledger"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Customer balances, water supply sessions and payments"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB (transactions require a replica set)
    MONGODB_URL: str = "mongodb://localhost:27017/?replicaSet=rs0"
    DATABASE_NAME: str = "supply_ledger"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Access gate
    APP_PASSWORD: str = ""
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720

    # Business rules
    TIMEZONE: str = "Asia/Kolkata"
    CROP_RATES: Dict[str, float] = {
        "Rice": 200,
        "Wheat": 150,
        "Sugarcane": 180,
        "Cotton": 160,
        "Vegetables": 140,
        "Other": 130,
    }
    DEFAULT_CROP_TYPE: str = "Other"
    RECENT_ACTIVITY_LIMIT: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
