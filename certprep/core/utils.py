# certprep/core/utils.py
import random
import re
import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from .config import config

T = TypeVar("T")


class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def get_current_timestamp() -> float:
        """Get current timestamp"""
        return time.time()

    @staticmethod
    def now_millis() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def now_iso() -> str:
        """Current UTC time as ISO-8601"""
        return datetime.now(timezone.utc).isoformat()


class ValidationUtils:
    """Utility functions for request validation"""

    @staticmethod
    def validate_url(url: Any) -> bool:
        return isinstance(url, str) and re.match(r"^https?://\S+$", url.strip()) is not None

    @staticmethod
    def validate_test_id(test_id: Any) -> bool:
        """Test ids are used as storage keys, so no path separators"""
        return isinstance(test_id, str) and re.match(r"^[A-Za-z0-9_-]{1,128}$", test_id) is not None

    @staticmethod
    def coerce_question_count(value: Any, default: int = None,
                              maximum: int = None) -> int:
        """Coerce a requested question count into [1, maximum]"""
        if default is None:
            default = config.DEFAULT_QUESTION_COUNT
        if maximum is None:
            maximum = config.MAX_QUESTION_COUNT

        if value is None or value == "":
            return default
        if isinstance(value, bool):
            raise ValueError("questionCount must be a number")
        try:
            count = int(value)
        except (TypeError, ValueError):
            raise ValueError("questionCount must be a number")

        return max(1, min(count, maximum))

    @staticmethod
    def normalize_answers(raw: Any) -> Dict[str, List[str]]:
        """Normalize a submitted answers payload into questionId -> [option, ...]"""
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError("answers must be an object of questionId -> selected options")

        answers = {}
        for question_id, selected in raw.items():
            if selected is None:
                answers[str(question_id)] = []
            elif isinstance(selected, str):
                answers[str(question_id)] = [selected]
            elif isinstance(selected, (list, tuple)):
                answers[str(question_id)] = [str(option) for option in selected]
            else:
                raise ValueError(f"answers for question {question_id} must be a list of options")
        return answers


def generate_test_id() -> str:
    """Unique test id: epoch millis plus a random suffix"""
    return f"test-{DateTimeUtils.now_millis()}-{secrets.token_hex(4)}"


def generate_question_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def generate_session_key(test_id: str, millis: Optional[int] = None) -> str:
    if millis is None:
        millis = DateTimeUtils.now_millis()
    return f"{test_id}-{millis}"


def shuffled(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle into a new list"""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
