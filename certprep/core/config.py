# certprep/core/config.py
import os
from pathlib import Path
from typing import Dict, Any, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "Certification Practice Test API"
    API_DESCRIPTION = "Generates certification practice tests from study guides"
    API_VERSION = "1.0.0"

    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG_MODE = _env_bool("DEBUG_MODE", "false")

    # ==================== Completion Provider ====================
    COMPLETION_PROVIDER = os.getenv("COMPLETION_PROVIDER", "azure").lower()

    # Azure OpenAI settings
    AZURE_OPENAI_ENDPOINT = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    AZURE_OPENAI_API_KEY = os.getenv("AZURE_OPENAI_API_KEY", "")
    AZURE_OPENAI_DEPLOYMENT_NAME = os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "gpt-4")
    AZURE_OPENAI_API_VERSION = os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-01")

    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

    COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))
    COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "4000"))
    COMPLETION_TIMEOUT = float(os.getenv("COMPLETION_TIMEOUT", "120"))

    # ==================== Search Provider ====================
    # Empty key disables the search path, not the whole service
    BING_SEARCH_API_KEY = os.getenv("BING_SEARCH_API_KEY", "")
    BING_SEARCH_ENDPOINT = os.getenv("BING_SEARCH_ENDPOINT", "https://api.bing.microsoft.com/v7.0/search")
    SEARCH_TRUSTED_DOMAIN = os.getenv("SEARCH_TRUSTED_DOMAIN", "learn.microsoft.com")
    SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", "15"))
    SEARCH_DELAY_SECONDS = float(os.getenv("SEARCH_DELAY_SECONDS", "0.2"))
    CERTIFICATION_RESULT_COUNT = 10
    RELATED_TOPIC_LIMIT = int(os.getenv("RELATED_TOPIC_LIMIT", "10"))
    RELATED_RESULTS_PER_TOPIC = int(os.getenv("RELATED_RESULTS_PER_TOPIC", "3"))
    RELATED_RESULTS_LIMIT = int(os.getenv("RELATED_RESULTS_LIMIT", "30"))

    # ==================== Content Extraction ====================
    FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "20"))
    FETCH_USER_AGENT = os.getenv(
        "FETCH_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    MIN_CONTENT_LENGTH = int(os.getenv("MIN_CONTENT_LENGTH", "200"))

    # Related-content enrichment
    ENABLE_WEB_ENRICHMENT = _env_bool("ENABLE_WEB_ENRICHMENT", "true")
    ENRICHMENT_FETCH_COUNT = int(os.getenv("ENRICHMENT_FETCH_COUNT", "5"))
    ENRICHMENT_CONTENT_CHARS = int(os.getenv("ENRICHMENT_CONTENT_CHARS", "2000"))

    # ==================== Question Generation ====================
    MAX_CORPUS_CHARS = int(os.getenv("MAX_CORPUS_CHARS", "15000"))
    DEFAULT_QUESTION_COUNT = int(os.getenv("DEFAULT_QUESTION_COUNT", "40"))
    MAX_QUESTION_COUNT = int(os.getenv("MAX_QUESTION_COUNT", "100"))
    SINGLE_ANSWER_RATIO = float(os.getenv("SINGLE_ANSWER_RATIO", "0.6"))

    # ==================== Storage ====================
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "file").lower()
    DATA_DIR = Path(os.getenv("DATA_DIR", "data/tests"))

    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "certprep")
    TESTS_COLLECTION = os.getenv("TESTS_COLLECTION", "practice_tests")
    SESSIONS_COLLECTION = os.getenv("SESSIONS_COLLECTION", "test_sessions")

    # ==================== Derived ====================
    @property
    def SEARCH_ENABLED(self) -> bool:
        return bool(self.BING_SEARCH_API_KEY)

    @property
    def COMPLETION_MODEL(self) -> str:
        if self.COMPLETION_PROVIDER == "groq":
            return self.GROQ_MODEL
        return self.AZURE_OPENAI_DEPLOYMENT_NAME

    @property
    def CORS_ORIGIN_LIST(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # ==================== Environment Overrides ====================
    @classmethod
    def from_env(cls) -> 'Config':
        """Create config with environment variable overrides"""
        return cls()

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []

        if self.COMPLETION_PROVIDER == "azure":
            if not self.AZURE_OPENAI_ENDPOINT:
                issues.append("AZURE_OPENAI_ENDPOINT is required for the azure provider")
            if not self.AZURE_OPENAI_API_KEY:
                issues.append("AZURE_OPENAI_API_KEY is required for the azure provider")
        elif self.COMPLETION_PROVIDER == "groq":
            if not self.GROQ_API_KEY:
                issues.append("GROQ_API_KEY is required for the groq provider")
        else:
            issues.append(f"Unknown COMPLETION_PROVIDER: {self.COMPLETION_PROVIDER}")

        if self.MIN_CONTENT_LENGTH < 1:
            issues.append("MIN_CONTENT_LENGTH must be at least 1")

        if not (0 < self.SINGLE_ANSWER_RATIO < 1):
            issues.append("SINGLE_ANSWER_RATIO must be between 0 and 1")

        if self.STORAGE_BACKEND not in ("file", "mongo"):
            issues.append(f"Unknown STORAGE_BACKEND: {self.STORAGE_BACKEND}")

        if not (1 <= self.DEFAULT_QUESTION_COUNT <= self.MAX_QUESTION_COUNT):
            issues.append("DEFAULT_QUESTION_COUNT must be between 1 and MAX_QUESTION_COUNT")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "config_loaded": True,
            "search_enabled": self.SEARCH_ENABLED,
            "storage_backend": self.STORAGE_BACKEND
        }


# Global configuration instance
config = Config.from_env()
