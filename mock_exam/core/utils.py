# mock_exam/core/utils.py
import json
import logging
import re
import time
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")

def parse_json_response(raw: Optional[str]) -> Optional[Any]:
    """Parse a model response that should contain JSON.

    Accepts an optional code fence around the payload and repairs trailing
    commas before a closing bracket. Returns None instead of raising.
    """
    if not raw:
        return None

    cleaned = raw.strip()
    match = FENCE_PATTERN.match(cleaned)
    if match and match.group(2):
        cleaned = match.group(2).strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Strict JSON parse failed ({e}), retrying without trailing commas")

    try:
        return json.loads(TRAILING_COMMA_PATTERN.sub(r"\1", cleaned))
    except json.JSONDecodeError as e:
        logger.error(f"❌ Failed to parse JSON response even after repair: {e}. Raw: {raw[:500]}")
        return None

def format_elapsed_time(total_seconds: int) -> str:
    """Format seconds as 'M 分 S 秒' (minutes omitted when zero)"""
    minutes, seconds = divmod(int(total_seconds), 60)
    if minutes > 0:
        return f"{minutes} 分 {seconds} 秒"
    return f"{seconds} 秒"

def single_line(text: str) -> str:
    """Display names may span lines; prompts and records want one line"""
    return text.replace("\n", " ")

class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def get_current_timestamp() -> float:
        """Get current timestamp"""
        return time.time()

    @staticmethod
    def current_millis() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def format_timestamp(timestamp_ms: int, format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
        """Format a millisecond timestamp to string"""
        try:
            dt = datetime.fromtimestamp(timestamp_ms / 1000)
            return dt.strftime(format_str)
        except (ValueError, OSError, OverflowError):
            return "Invalid timestamp"
