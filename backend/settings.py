from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./bookings.db"
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30
    ROLLOVER_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow"
    )
