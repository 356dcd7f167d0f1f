# mock_exam/core/errors.py
"""
Error kinds for the remote LLM boundary and the user-facing messages for them.

Provider messages are mapped into an ErrorKind here and nowhere else.
"""
from enum import Enum
from typing import Optional

class ErrorKind(Enum):
    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIAL = "invalid_credential"
    SERVICE_BUSY = "service_busy"
    UNKNOWN = "unknown"

RATE_LIMIT_MARKERS = ("429", "resource has been exhausted", "rate limit", "rate_limit_exceeded")
INVALID_CREDENTIAL_MARKERS = ("api key not valid", "api_key_invalid", "invalid_api_key", "invalid api key", "401")

class AIServiceError(Exception):
    """Failure reported by the LLM service, tagged with its kind"""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind

class ServiceBusyError(AIServiceError):
    """Raised when rate-limit retries are exhausted"""

    def __init__(self, message: str = "API 請求過於頻繁，請稍後再試。 (API is busy, please try again later.)"):
        super().__init__(message, ErrorKind.SERVICE_BUSY)

class NoQuestionsGeneratedError(Exception):
    """Raised when every generation batch came back empty"""

def classify_error(error: BaseException) -> ErrorKind:
    """Map an exception to an ErrorKind"""
    if isinstance(error, AIServiceError) and error.kind is not ErrorKind.UNKNOWN:
        return error.kind

    message = (str(error) or repr(error)).lower()
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    if any(marker in message for marker in INVALID_CREDENTIAL_MARKERS):
        return ErrorKind.INVALID_CREDENTIAL
    return ErrorKind.UNKNOWN

def is_rate_limited(error: BaseException) -> bool:
    return classify_error(error) is ErrorKind.RATE_LIMITED

def user_message(error: BaseException, action: Optional[str] = None) -> str:
    """Short localized message for an error raised while doing `action`"""
    kind = classify_error(error)

    if kind is ErrorKind.INVALID_CREDENTIAL:
        return "Groq API Key 設定無效。請確認部署環境中已正確設定 GROQ_API_KEY 環境變數。"
    if kind is ErrorKind.RATE_LIMITED:
        return "API 請求頻率過高，請稍後再試。"
    if kind is ErrorKind.SERVICE_BUSY:
        return str(error)

    detail = str(error) or error.__class__.__name__
    if action:
        return f"{action}時發生錯誤: {detail}"
    return f"發生錯誤: {detail}"
