import json
import os
from typing import Any, Callable, Dict, List, Optional

import pytest

os.environ.setdefault("USE_DUMMY_DATA", "true")

from mock_exam.core.content_service import ContentService
from mock_exam.core.database import InMemoryHistoryRepository
from mock_exam.core.models import OPTION_KEYS
from mock_exam.services.feedback_service import FeedbackGenerator
from mock_exam.services.question_generator import QuestionGenerator
from mock_exam.services.test_service import SessionTimer, TestSession


async def no_sleep(delay: float) -> None:
    return None


NO_WAIT_RETRY = {"sleep": no_sleep, "max_jitter": 0.0}


def question_item(index: int, topic: str = "機器學習", correct: str = "A") -> Dict[str, Any]:
    return {
        "questionText": f"第 {index} 題：下列何者正確？",
        "options": [{"key": key, "text": f"選項 {key}{index}"} for key in OPTION_KEYS],
        "correctAnswerKey": correct,
        "topic": topic,
        "explanation": f"第 {index} 題的詳解",
    }


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeAIService:
    """Scripted stand-in for AIService.

    `batch_handler(call_index, questions_in_batch)` returns raw text or raises;
    `feedback_handler()` likewise for feedback.
    """

    def __init__(self, batch_handler: Optional[Callable] = None,
                 feedback_handler: Optional[Callable] = None) -> None:
        self.batch_handler = batch_handler or self.default_batch
        self.feedback_handler = feedback_handler or self.default_feedback
        self.batch_prompts: List[str] = []
        self.feedback_prompts: List[str] = []
        self._next_index = 0

    @staticmethod
    def default_batch(call_index: int, size: int) -> str:
        items = [question_item(call_index * 100 + i) for i in range(size)]
        return json.dumps(items, ensure_ascii=False)

    @staticmethod
    def default_feedback() -> str:
        return '{"learningSuggestions": "<p>多練習</p>"}'

    async def generate_question_batch(self, prompt, model, questions_in_batch, topics):
        self.batch_prompts.append(prompt)
        call_index = self._next_index
        self._next_index += 1
        result = self.batch_handler(call_index, questions_in_batch)
        if hasattr(result, "__await__"):
            result = await result
        return result

    async def generate_feedback(self, prompt, model, incorrect_count):
        self.feedback_prompts.append(prompt)
        result = self.feedback_handler()
        if hasattr(result, "__await__"):
            result = await result
        return result

    async def health_check(self):
        return {"status": "healthy", "mode": "fake"}


@pytest.fixture
def content_service() -> ContentService:
    return ContentService()


@pytest.fixture
def fake_ai() -> FakeAIService:
    return FakeAIService()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def history_repository() -> InMemoryHistoryRepository:
    return InMemoryHistoryRepository()


@pytest.fixture
def make_session(content_service, history_repository, clock):
    def factory(ai_service, repository=None) -> TestSession:
        return TestSession(
            question_generator=QuestionGenerator(ai_service, content_service, batch_size=5,
                                                 retry_options=NO_WAIT_RETRY),
            feedback_generator=FeedbackGenerator(ai_service, retry_options=NO_WAIT_RETRY),
            content_service=content_service,
            history_repository=repository or history_repository,
            model_name="test-model",
            timer=SessionTimer(tick_seconds=3600, clock=clock),
        )
    return factory
