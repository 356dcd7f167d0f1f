# mock_exam/models/schemas.py
from pydantic import BaseModel, Field

class SelectExamRequest(BaseModel):
    exam_id: str = Field(..., min_length=1)

class SelectQuestionCountRequest(BaseModel):
    num_questions: int = Field(..., ge=1)

class AnswerRequest(BaseModel):
    question_id: str = Field(..., min_length=1)
    option_key: str = Field(..., pattern="^[A-D]$")
