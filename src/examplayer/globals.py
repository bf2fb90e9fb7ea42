from .config import settings
from .library import ExamLibrary
from .store import SessionStore

exam_library = ExamLibrary(settings.EXAMS_DIR)
session_store = SessionStore(settings.SESSION_TIMEOUT_MINUTES)
