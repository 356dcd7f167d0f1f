"""
Pydantic request schemas for the HTTP API
"""

from .schemas import AnswerRequest, SelectExamRequest, SelectQuestionCountRequest

__all__ = [
    "AnswerRequest",
    "SelectExamRequest",
    "SelectQuestionCountRequest"
]
