from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # External DB endpoints (psycopg, pymysql, trino)
    EXTERNAL_DB_CONNECT_TIMEOUT: int = 10  # seconds, passed to the driver
    EXTERNAL_DB_POOL_SIZE: int = 5  # max idle connections kept per pool
    EXTERNAL_DB_POOL_MAX_AGE_SEC: float = 600.0

    TRINO_SOURCE: str = "pydbcp"
    TRINO_DEFAULT_SCHEMA: str = "default"


settings = Settings()  # type: ignore
