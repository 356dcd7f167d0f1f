"""
Question generation, feedback, grading, session and export services
"""

from .test_service import TestSession, get_test_session

__all__ = [
    "TestSession",
    "get_test_session"
]
