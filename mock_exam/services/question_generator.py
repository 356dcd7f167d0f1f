# mock_exam/services/question_generator.py
import asyncio
import logging
import math
from typing import Any, Callable, List, Optional

from ..core.ai_services import AIService
from ..core.config import config
from ..core.content_service import ContentService
from ..core.errors import NoQuestionsGeneratedError
from ..core.models import OPTION_KEYS, Question
from ..core.prompts import PromptTemplates
from ..core.retry import with_retry
from ..core.utils import parse_json_response

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

def plan_batches(num_questions: int, batch_size: int) -> List[int]:
    """Sizes of the generation batches; only the last may be smaller"""
    if num_questions < 1:
        raise ValueError("num_questions must be a positive integer")
    if batch_size < 1:
        raise ValueError("batch_size must be a positive integer")

    batch_count = math.ceil(num_questions / batch_size)
    sizes = [batch_size] * batch_count
    remainder = num_questions % batch_size
    if remainder:
        sizes[-1] = remainder
    return sizes

def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())

def is_valid_question(item: Any) -> bool:
    """Structural check of one generated question"""
    if not isinstance(item, dict):
        return False

    options = item.get("options")
    if not isinstance(options, list) or len(options) != len(OPTION_KEYS):
        return False

    keys = []
    for option in options:
        if not isinstance(option, dict):
            return False
        key, text = option.get("key"), option.get("text")
        if key not in OPTION_KEYS or not _non_empty_string(text):
            return False
        keys.append(key)
    if len(set(keys)) != len(keys):
        return False

    return (
        _non_empty_string(item.get("questionText"))
        and item.get("correctAnswerKey") in OPTION_KEYS
        and _non_empty_string(item.get("topic"))
        and _non_empty_string(item.get("explanation"))
    )

class QuestionGenerator:
    """Generates a validated question set in concurrent batches"""

    def __init__(self, ai_service: AIService, content_service: ContentService,
                 batch_size: Optional[int] = None, retry_options: Optional[dict] = None):
        self.ai_service = ai_service
        self.content_service = content_service
        self.batch_size = batch_size or config.QUESTION_BATCH_SIZE
        self.retry_options = retry_options or {}

    async def generate_questions(self, num_questions: int, topics: List[str], exam_name: str,
                                 model_name: str,
                                 on_progress: Optional[ProgressCallback] = None) -> Optional[List[Question]]:
        """Generate up to `num_questions` questions.

        Raises NoQuestionsGeneratedError when every batch came back empty and
        returns None when batches returned items but none passed validation.
        """
        if not topics:
            raise ValueError("At least one topic is required")

        batch_sizes = plan_batches(num_questions, self.batch_size)
        batch_count = len(batch_sizes)
        knowledge_base = self.content_service.get_knowledge_base(exam_name)

        logger.info(
            f"🤖 Generating {num_questions} questions for {exam_name} in {batch_count} batches "
            f"(knowledge base: {'yes' if knowledge_base else 'no'})"
        )

        generated_count = 0

        async def run_batch(index: int, size: int) -> List[Any]:
            nonlocal generated_count

            prompt = PromptTemplates.create_batch_questions_prompt(
                exam_name=exam_name,
                topics=topics,
                questions_in_batch=size,
                batch_index=index,
                batch_count=batch_count,
                total_questions=num_questions,
                knowledge_base=knowledge_base,
            )
            items = await self._fetch_batch(index, prompt, model_name, size, topics)

            generated_count += len(items)
            if on_progress:
                on_progress(min(generated_count, num_questions))
            return items

        batches = await asyncio.gather(*(run_batch(i, size) for i, size in enumerate(batch_sizes)))
        all_items = [item for batch in batches for item in batch]

        if not all_items:
            logger.error(f"❌ Failed to generate any questions after all batches for exam: {exam_name}")
            raise NoQuestionsGeneratedError("AI 未能生成任何題目，請稍後再試。")

        valid_items = [item for item in all_items if is_valid_question(item)][:num_questions]

        if len(valid_items) < num_questions:
            logger.warning(
                f"Generated {len(valid_items)} valid questions, but {num_questions} were requested"
            )
        if not valid_items:
            logger.error(f"❌ No valid questions could be processed from any AI response for {exam_name}")
            return None

        questions = [
            Question.from_dict(item, question_id=f"q{index}")
            for index, item in enumerate(valid_items, 1)
        ]
        logger.info(f"✅ Generated {len(questions)} questions successfully")
        return questions

    async def _fetch_batch(self, index: int, prompt: str, model_name: str, size: int,
                           topics: List[str]) -> List[Any]:
        """Items of one batch; any failure yields an empty list"""
        try:
            response = await with_retry(
                lambda: self.ai_service.generate_question_batch(prompt, model_name, size, topics),
                **self.retry_options,
            )
        except Exception as e:
            logger.error(f"❌ Batch {index + 1} failed during generation: {e}")
            return []

        if not response:
            logger.warning(f"AI returned an empty response for batch {index + 1}")
            return []

        parsed = parse_json_response(response)
        if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
            parsed = parsed["questions"]
        if not isinstance(parsed, list):
            logger.warning(f"Failed to parse questions from batch {index + 1}")
            return []

        return parsed
