from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./classroom.db"
    REDIS_URL: str = "redis://localhost:6379/3"
    SECRET_KEY: str = "dev-secret-classroom"
    JWT_ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_ENABLED: bool = True

    # memory | redis
    SESSION_BACKEND: str = "memory"
    SESSION_TTL_MINUTES: int = 120
    REMEMBER_ME_DAYS: int = 14
    COOKIE_SECURE: bool = False

    # порядок ролей в группе = приоритет редиректа на вход
    ROLE_GROUPS: dict[str, list[str]] = {"user": ["student", "teacher"]}

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
