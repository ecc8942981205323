import os


class Settings:
    PROJECT_NAME: str = "kotoba"
    DEBUG: bool = os.environ.get("DEBUG", "") == "1"
    LOG_DIR: str = "log"
    LOG_FILE: str = "kotoba.log"
    CATALOG_FILE: str = os.environ.get("CATALOG_FILE", "flashcards.json")
    DEFAULT_COUNT: int = 20
    SESSION_COOKIE_NAME: str = "quiz_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
