from pydantic_settings import BaseSettings
from pydantic import ConfigDict

class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env")

    ENV: str = "development"

    DATABASE_URL: str = "sqlite:///./marketplace.db"
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Pricing
    DELIVERY_FEE: int = 30
    FREE_DELIVERY_THRESHOLD: int = 199

    # Delivery partners
    FALLBACK_DELIVERY_EARNINGS: int = 30
    NEARBY_DEFAULT_RADIUS_KM: float = 10.0
    NEARBY_MAX_RESULTS: int = 50


settings = Settings()
