import os


class Settings:
    PROJECT_NAME: str = "examplayer"
    DEBUG: bool = os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "examplayer.log"
    LOG_TO_DB: bool = os.environ.get("LOG_TO_DB", "0").lower() in ("1", "true", "yes")
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "examplayer.db"
    EXAMS_DIR: str = os.environ.get("EXAMS_DIR", "exams")
    SESSION_COOKIE_NAME: str = "exam_session_id"
    SESSION_TIMEOUT_MINUTES: int = int(os.environ.get("SESSION_TIMEOUT_MINUTES", "120"))
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")
    # Runs of three or more underscores mark a blank in fill-in templates.
    BLANK_PATTERN: str = r"_{3,}"
    FILL_IN_SEPARATOR: str = ","


settings = Settings()
