# mock_exam/services/feedback_service.py
import logging
from typing import Dict, Optional

from ..core.ai_services import AIService
from ..core.models import TopicAnalysis
from ..core.prompts import PromptTemplates
from ..core.retry import with_retry
from ..core.utils import parse_json_response

logger = logging.getLogger(__name__)

class FeedbackGenerator:
    """Requests AI-written learning suggestions for a completed test"""

    def __init__(self, ai_service: AIService, retry_options: Optional[dict] = None):
        self.ai_service = ai_service
        self.retry_options = retry_options or {}

    async def get_feedback(self, correct_count: int, incorrect_count: int, elapsed_seconds: int,
                           exam_name: str, model_name: str,
                           topic_analysis: Optional[TopicAnalysis] = None) -> Optional[Dict[str, str]]:
        """Return {"learningSuggestions": html} or None; remote errors propagate"""
        prompt = PromptTemplates.create_feedback_prompt(
            correct_count, incorrect_count, elapsed_seconds, exam_name, topic_analysis
        )

        response = await with_retry(
            lambda: self.ai_service.generate_feedback(prompt, model_name, incorrect_count),
            **self.retry_options,
        )

        if not response:
            logger.error(f"❌ AI returned an empty response for feedback generation for exam: {exam_name}")
            return None

        parsed = parse_json_response(response)
        suggestions = parsed.get("learningSuggestions") if isinstance(parsed, dict) else None
        if not isinstance(suggestions, str) or not suggestions.strip():
            logger.error(f"❌ Feedback response missing learningSuggestions for exam: {exam_name}")
            return None

        logger.info(f"✅ Learning suggestions generated for {exam_name}")
        return {"learningSuggestions": suggestions}
