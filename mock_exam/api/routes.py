# mock_exam/api/routes.py
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import Response

from ..core.content_service import ContentService, get_content_service
from ..core.utils import DateTimeUtils
from ..models.schemas import AnswerRequest, SelectExamRequest, SelectQuestionCountRequest
from ..services.export_service import export_filename, export_history_csv
from ..services.test_service import EMPTY_HISTORY_ERROR, TestSession, get_test_session

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
async def home():
    """Home endpoint"""
    return {
        "service": "Mock Exam Helper API",
        "status": "operational"
    }

@router.get("/api/health")
async def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "timestamp": DateTimeUtils.get_current_timestamp()
    }

@router.get("/api/exams")
async def list_exams(content_service: ContentService = Depends(get_content_service)):
    """Exam catalog"""
    formats = content_service.exam_formats
    return {
        "count": len(formats),
        "exams": [f.to_dict() for f in formats]
    }

# ==================== Session ====================

@router.get("/api/session")
async def get_session(session: TestSession = Depends(get_test_session)):
    return session.snapshot()

@router.post("/api/session/exam")
async def select_exam(request: SelectExamRequest, session: TestSession = Depends(get_test_session)):
    session.select_exam(request.exam_id)
    return session.snapshot()

@router.post("/api/session/question-count")
async def select_question_count(request: SelectQuestionCountRequest,
                                session: TestSession = Depends(get_test_session)):
    session.select_question_count(request.num_questions)
    return session.snapshot()

@router.post("/api/session/start", status_code=202)
async def start_test(background_tasks: BackgroundTasks, session: TestSession = Depends(get_test_session)):
    """Start generating questions; poll GET /api/session for progress"""
    epoch = session.begin_test()
    background_tasks.add_task(session.generate_test, epoch)
    return {
        "accepted": True,
        "examId": session.selected_exam_id,
        "numQuestions": session.selected_num_questions
    }

@router.post("/api/session/answer")
async def select_answer(request: AnswerRequest, session: TestSession = Depends(get_test_session)):
    session.select_answer(request.question_id, request.option_key)
    return session.snapshot()

@router.post("/api/session/next")
async def next_question(session: TestSession = Depends(get_test_session)):
    """Advance, or grade when on the last question"""
    await session.next_question()
    return session.snapshot()

@router.post("/api/session/previous")
async def previous_question(session: TestSession = Depends(get_test_session)):
    session.previous_question()
    return session.snapshot()

@router.post("/api/session/dismiss-error")
async def dismiss_error(session: TestSession = Depends(get_test_session)):
    session.dismiss_error()
    return session.snapshot()

@router.post("/api/session/history")
async def go_to_history(session: TestSession = Depends(get_test_session)):
    session.go_to_history()
    return session.snapshot()

@router.post("/api/session/welcome")
async def go_to_welcome(session: TestSession = Depends(get_test_session)):
    session.go_to_welcome()
    return session.snapshot()

@router.post("/api/session/restart")
async def restart(session: TestSession = Depends(get_test_session)):
    session.restart()
    return session.snapshot()

# ==================== History ====================

@router.get("/api/history")
async def get_history(session: TestSession = Depends(get_test_session)):
    """Completed tests, newest first"""
    records = session.history_newest_first()
    return {
        "count": len(records),
        "records": [r.to_dict() for r in records]
    }

@router.get("/api/history/export")
async def export_history(session: TestSession = Depends(get_test_session)):
    """CSV download of every answered question in the history"""
    if not session.history:
        session.set_error(EMPTY_HISTORY_ERROR)
        raise HTTPException(status_code=404, detail=EMPTY_HISTORY_ERROR)

    content = export_history_csv(session.history)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"}
    )
