# mock_exam/core/content_service.py
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import config
from .models import ExamFormat

logger = logging.getLogger(__name__)

# (substring of the exam name, knowledge base file stem, display label)
KNOWLEDGE_BASE_CATEGORIES: List[Tuple[str, str, str]] = [
    ("資策會", "iii_cert", "資策會生成式AI能力認證"),
    ("iPAS AI應用規劃師初級", "ipas_ai_planner", "iPAS AI應用規劃師初級"),
    ("iPAS 淨零碳規劃管理師", "ipas_net_zero", "iPAS 淨零碳規劃管理師"),
]

class ContentService:
    """Read-only access to the exam catalog and the knowledge-base texts"""

    def __init__(self, exam_formats_file: Optional[Path] = None,
                 knowledge_base_dir: Optional[Path] = None):
        self.exam_formats_file = Path(exam_formats_file or config.EXAM_FORMATS_FILE)
        self.knowledge_base_dir = Path(knowledge_base_dir or config.KNOWLEDGE_BASE_DIR)
        self._exam_formats = self._load_exam_formats()
        self._knowledge_cache: Dict[str, Optional[str]] = {}

    def _load_exam_formats(self) -> List[ExamFormat]:
        with self.exam_formats_file.open(encoding="utf-8") as f:
            raw = json.load(f)

        formats = [ExamFormat.from_dict(item) for item in raw]
        if not formats:
            raise ValueError(f"No exam formats defined in {self.exam_formats_file}")

        logger.info(f"📚 Loaded {len(formats)} exam formats from {self.exam_formats_file.name}")
        return formats

    @property
    def exam_formats(self) -> List[ExamFormat]:
        return list(self._exam_formats)

    def get_exam_format(self, exam_id: str) -> Optional[ExamFormat]:
        for exam_format in self._exam_formats:
            if exam_format.id == exam_id:
                return exam_format
        return None

    def get_exam_format_or_default(self, exam_id: str) -> ExamFormat:
        return self.get_exam_format(exam_id) or self._exam_formats[0]

    def get_knowledge_base(self, exam_name: str) -> Optional[Tuple[str, str]]:
        """Return (label, text) of the knowledge base matching the exam name"""
        for marker, stem, label in KNOWLEDGE_BASE_CATEGORIES:
            if marker in exam_name:
                text = self._read_knowledge_base(stem)
                return (label, text) if text else None
        return None

    def _read_knowledge_base(self, stem: str) -> Optional[str]:
        if stem not in self._knowledge_cache:
            path = self.knowledge_base_dir / f"{stem}.md"
            try:
                self._knowledge_cache[stem] = path.read_text(encoding="utf-8").strip() or None
            except FileNotFoundError:
                logger.warning(f"Knowledge base file missing: {path}")
                self._knowledge_cache[stem] = None
        return self._knowledge_cache[stem]

# Singleton pattern for content service
_content_service = None

def get_content_service() -> ContentService:
    """Get content service instance (singleton)"""
    global _content_service
    if _content_service is None:
        _content_service = ContentService()
    return _content_service
