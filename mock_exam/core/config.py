# mock_exam/core/config.py
import os
from pathlib import Path
from typing import Dict, Any, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "Mock Exam Helper API"
    API_DESCRIPTION = "AI-generated certification mock exams with personalized feedback"
    API_VERSION = "1.0.0"

    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8070"))
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # ==================== Development Settings ====================
    USE_DUMMY_DATA = os.getenv("USE_DUMMY_DATA", "false").lower() == "true"

    # ==================== AI Service Configuration ====================
    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

    QUESTION_TEMPERATURE = float(os.getenv("QUESTION_TEMPERATURE", "0.75"))
    QUESTION_MAX_TOKENS = int(os.getenv("QUESTION_MAX_TOKENS", "4096"))
    FEEDBACK_TEMPERATURE = float(os.getenv("FEEDBACK_TEMPERATURE", "0.7"))
    FEEDBACK_MAX_TOKENS = int(os.getenv("FEEDBACK_MAX_TOKENS", "1500"))

    # Batch generation settings
    QUESTION_BATCH_SIZE = int(os.getenv("QUESTION_BATCH_SIZE", "5"))

    # Retry settings (seconds)
    RETRY_MAX_ATTEMPTS = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    RETRY_INITIAL_DELAY = float(os.getenv("RETRY_INITIAL_DELAY", "1.0"))
    RETRY_MAX_JITTER = float(os.getenv("RETRY_MAX_JITTER", "1.0"))

    # ==================== Test Configuration ====================
    TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1"))
    DEFAULT_EXAM_ID = os.getenv("DEFAULT_EXAM_ID", "iii_cert")
    DEFAULT_NUM_QUESTIONS = int(os.getenv("DEFAULT_NUM_QUESTIONS", "10"))

    # ==================== Data Files ====================
    EXAM_FORMATS_FILE = Path(os.getenv("EXAM_FORMATS_FILE", str(BASE_DIR / "data" / "exam_formats.json")))
    KNOWLEDGE_BASE_DIR = Path(os.getenv("KNOWLEDGE_BASE_DIR", str(BASE_DIR / "data" / "knowledge_base")))

    # History store: a local JSON key-value file holding one entry
    HISTORY_FILE = Path(os.getenv("HISTORY_FILE", str(Path.home() / ".mock_exam" / "storage.json")))
    HISTORY_STORAGE_KEY = os.getenv("HISTORY_STORAGE_KEY", "fantexticTestHistory")

    # ==================== Environment Overrides ====================
    @classmethod
    def from_env(cls) -> 'Config':
        """Create config with environment variable overrides"""
        return cls()

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []

        if self.QUESTION_BATCH_SIZE < 1:
            issues.append("QUESTION_BATCH_SIZE must be at least 1")

        if self.RETRY_MAX_ATTEMPTS < 1:
            issues.append("RETRY_MAX_ATTEMPTS must be at least 1")

        if self.RETRY_INITIAL_DELAY < 0 or self.RETRY_MAX_JITTER < 0:
            issues.append("Retry delays must not be negative")

        if self.DEFAULT_NUM_QUESTIONS < 1:
            issues.append("DEFAULT_NUM_QUESTIONS must be at least 1")

        if not self.USE_DUMMY_DATA and not self.GROQ_API_KEY:
            issues.append("GROQ_API_KEY is required when not using dummy data")

        if not self.EXAM_FORMATS_FILE.exists():
            issues.append(f"Exam formats file not found: {self.EXAM_FORMATS_FILE}")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "config_loaded": True,
            "using_dummy_data": self.USE_DUMMY_DATA
        }

# Global configuration instance
config = Config.from_env()

# Validate on import
validation_result = config.validate()
if not validation_result["valid"]:
    import logging
    logger = logging.getLogger(__name__)
    logger.warning(f"Configuration issues: {validation_result['issues']}")
