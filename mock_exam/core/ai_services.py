# mock_exam/core/ai_services.py
import logging
import time
from typing import Any, Dict, List, Optional

import groq
from groq import AsyncGroq

from .config import config
from .dummy_data import dummy_feedback_response, dummy_question_batch_response
from .errors import AIServiceError, ErrorKind

logger = logging.getLogger(__name__)

class AIService:
    """Thin async wrapper around the Groq chat completion API.

    Every provider exception leaves this class as an AIServiceError carrying
    its ErrorKind.
    """

    def __init__(self, api_key: Optional[str] = None, use_dummy: Optional[bool] = None,
                 client: Optional[AsyncGroq] = None):
        self.use_dummy = config.USE_DUMMY_DATA if use_dummy is None else use_dummy
        self.client = client

        if self.use_dummy:
            logger.info("🔧 AI Service in dummy mode - using mock responses")
        elif self.client is None:
            self._init_groq_client(api_key or config.GROQ_API_KEY)

    def _init_groq_client(self, api_key: str):
        """Initialize the Groq client"""
        if not api_key:
            raise AIServiceError("GROQ_API_KEY not provided", ErrorKind.INVALID_CREDENTIAL)

        self.client = AsyncGroq(api_key=api_key)
        logger.info("✅ Groq client initialized")

    async def generate_question_batch(self, prompt: str, model: str, questions_in_batch: int,
                                      topics: List[str]) -> str:
        """Raw model text for one question batch"""
        if self.use_dummy:
            return dummy_question_batch_response(questions_in_batch, topics)

        return await self._complete(
            prompt=prompt,
            model=model,
            temperature=config.QUESTION_TEMPERATURE,
            max_tokens=config.QUESTION_MAX_TOKENS,
        )

    async def generate_feedback(self, prompt: str, model: str, incorrect_count: int) -> str:
        """Raw model text for the learning suggestions object"""
        if self.use_dummy:
            return dummy_feedback_response(incorrect_count)

        return await self._complete(
            prompt=prompt,
            model=model,
            temperature=config.FEEDBACK_TEMPERATURE,
            max_tokens=config.FEEDBACK_MAX_TOKENS,
            json_object=True,
        )

    async def _complete(self, prompt: str, model: str, temperature: float, max_tokens: int,
                        json_object: bool = False) -> str:
        if not self.client:
            raise AIServiceError("AI service not available")

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }
        if json_object:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except groq.RateLimitError as e:
            raise AIServiceError(f"429 rate limited: {e}", ErrorKind.RATE_LIMITED) from e
        except groq.AuthenticationError as e:
            raise AIServiceError(f"API key not valid: {e}", ErrorKind.INVALID_CREDENTIAL) from e
        except groq.APIError as e:
            raise AIServiceError(f"Groq API error: {e}") from e

        if not completion.choices:
            return ""
        return (completion.choices[0].message.content or "").strip()

    async def health_check(self) -> Dict[str, Any]:
        """Check AI service health"""
        if self.use_dummy:
            return {
                "status": "healthy",
                "mode": "dummy",
                "client_ready": True,
                "message": "Running in dummy data mode"
            }

        if not self.client:
            return {"status": "error", "message": "Client not initialized"}

        try:
            start_time = time.time()
            response = await self.client.chat.completions.create(
                model=config.GROQ_MODEL,
                messages=[{"role": "user", "content": "ping"}],
                max_completion_tokens=5
            )
            response_time = time.time() - start_time

            if response.choices:
                return {
                    "status": "healthy",
                    "mode": "live",
                    "model": config.GROQ_MODEL,
                    "response_time_ms": round(response_time * 1000, 2),
                    "client_ready": True
                }
            return {"status": "error", "message": "No response from LLM"}

        except groq.APIError as e:
            return {"status": "error", "message": str(e)}

# Singleton pattern for AI service
_ai_service = None

def get_ai_service() -> AIService:
    """Get AI service instance (singleton)"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service

def close_ai_service():
    """Close AI service instance"""
    global _ai_service
    if _ai_service:
        _ai_service = None
