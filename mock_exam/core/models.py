# mock_exam/core/models.py
"""
Domain records for a test run and the exam catalog.

Serialized with the camelCase field names used by the browser client and the
history store.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

OPTION_KEYS = ("A", "B", "C", "D")

class TestState(Enum):
    __test__ = False

    WELCOME = "WELCOME"
    GENERATING_QUESTIONS = "GENERATING_QUESTIONS"
    ANSWERING_QUESTIONS = "ANSWERING_QUESTIONS"
    GRADING = "GRADING"
    VIEWING_FEEDBACK = "VIEWING_FEEDBACK"
    HISTORY = "HISTORY"

@dataclass(frozen=True)
class QuestionOption:
    key: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "text": self.text}

@dataclass(frozen=True)
class Question:
    id: str
    question_text: str
    options: tuple
    correct_answer_key: str
    topic: str
    explanation: str

    def option(self, key: Optional[str]) -> Optional[QuestionOption]:
        for opt in self.options:
            if opt.key == key:
                return opt
        return None

    def to_dict(self, include_answer: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "questionText": self.question_text,
            "options": [opt.to_dict() for opt in self.options],
            "topic": self.topic,
        }
        if include_answer:
            data["correctAnswerKey"] = self.correct_answer_key
            data["explanation"] = self.explanation
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], question_id: Optional[str] = None) -> "Question":
        return cls(
            id=question_id or data["id"],
            question_text=data["questionText"],
            options=tuple(QuestionOption(key=o["key"], text=o["text"]) for o in data["options"]),
            correct_answer_key=data["correctAnswerKey"],
            topic=data.get("topic", ""),
            explanation=data.get("explanation", ""),
        )

@dataclass
class Score:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    def to_dict(self) -> Dict[str, int]:
        return {"correct": self.correct, "incorrect": self.incorrect}

@dataclass
class TopicStats:
    correct: int = 0
    incorrect: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"correct": self.correct, "incorrect": self.incorrect, "total": self.total}

TopicAnalysis = Dict[str, TopicStats]

def topic_analysis_to_dict(analysis: Optional[TopicAnalysis]) -> Optional[Dict[str, Dict[str, int]]]:
    if analysis is None:
        return None
    return {topic: stats.to_dict() for topic, stats in analysis.items()}

def topic_analysis_from_dict(data: Dict[str, Dict[str, int]]) -> TopicAnalysis:
    return {
        topic: TopicStats(stats.get("correct", 0), stats.get("incorrect", 0), stats.get("total", 0))
        for topic, stats in (data or {}).items()
    }

@dataclass(frozen=True)
class TestRecord:
    """Snapshot of one completed run, appended to the history"""
    __test__ = False

    id: str
    exam_id: str
    exam_name: str
    timestamp: int
    score: Score
    elapsed_time_in_seconds: int
    questions: List[Question]
    answers: Dict[str, str]
    topic_analysis: TopicAnalysis

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "examId": self.exam_id,
            "examName": self.exam_name,
            "timestamp": self.timestamp,
            "score": self.score.to_dict(),
            "elapsedTimeInSeconds": self.elapsed_time_in_seconds,
            "questions": [q.to_dict() for q in self.questions],
            "answers": dict(self.answers),
            "topicAnalysis": topic_analysis_to_dict(self.topic_analysis),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestRecord":
        score = data.get("score") or {}
        return cls(
            id=str(data["id"]),
            exam_id=data.get("examId", ""),
            exam_name=data.get("examName", ""),
            timestamp=int(data.get("timestamp", 0)),
            score=Score(score.get("correct", 0), score.get("incorrect", 0)),
            elapsed_time_in_seconds=int(data.get("elapsedTimeInSeconds", 0)),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            answers=dict(data.get("answers") or {}),
            topic_analysis=topic_analysis_from_dict(data.get("topicAnalysis") or {}),
        )

@dataclass(frozen=True)
class ExamFormat:
    id: str
    display_name: str
    topics: List[str]
    question_count_options: List[int]
    default_num_questions: int
    description: str = ""
    color: str = ""
    title_color: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "displayName": self.display_name,
            "description": self.description,
            "topics": list(self.topics),
            "questionCountOptions": list(self.question_count_options),
            "defaultNumQuestions": self.default_num_questions,
            "color": self.color,
            "titleColor": self.title_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExamFormat":
        return cls(
            id=data["id"],
            display_name=data["displayName"],
            topics=list(data["topics"]),
            question_count_options=[int(n) for n in data["questionCountOptions"]],
            default_num_questions=int(data["defaultNumQuestions"]),
            description=data.get("description", ""),
            color=data.get("color", ""),
            title_color=data.get("titleColor", ""),
        )

@dataclass
class Feedback:
    error_analysis: str
    learning_suggestions: str

    def to_dict(self) -> Dict[str, str]:
        return {"errorAnalysis": self.error_analysis, "learningSuggestions": self.learning_suggestions}
