"""
Core module containing configuration, errors, models, content pipeline,
completion client, question generation and storage
"""

from .config import config
from .database import create_repository
from .ai_services import AIService

__all__ = [
    "config",
    "create_repository",
    "AIService"
]
