from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "CASHDESK"
    DATABASE_URL: str = "sqlite+pysqlite:///./cashdesk.db"
    LOG_LEVEL: str = "INFO"
    CASH_LIST_DEFAULT_PAGE_SIZE: int = 100
    CASH_LIST_MAX_PAGE_SIZE: int = 500

settings = Settings()
