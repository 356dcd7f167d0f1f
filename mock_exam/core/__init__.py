"""
Core module containing configuration, storage, AI client, prompts and utilities
"""

from .config import config
from .database import get_history_repository
from .ai_services import get_ai_service
from .content_service import get_content_service

__all__ = [
    "config",
    "get_history_repository",
    "get_ai_service",
    "get_content_service"
]
