import asyncio
import json

import pytest

from mock_exam.core.database import JsonFileHistoryRepository
from mock_exam.core.errors import AIServiceError, ErrorKind
from mock_exam.core.models import TestState
from mock_exam.services.test_service import (
    FEEDBACK_PLACEHOLDER, FEEDBACK_UNAVAILABLE_ERROR, MISSING_ANSWER_ERROR, NO_VALID_QUESTIONS_ERROR,
    SessionTimer,
)

from conftest import FakeAIService, FakeClock


async def answer_all(session, key="A"):
    """Answer each question in turn and press next until grading is done"""
    while session.state is TestState.ANSWERING_QUESTIONS:
        session.select_answer(session.current_question.id, key)
        await session.next_question()


async def answer_each(session, keys):
    """Answer the questions in order with the given keys, pressing next after each"""
    for key in keys:
        session.select_answer(session.current_question.id, key)
        await session.next_question()


def test_initial_selection_uses_default_exam(make_session) -> None:
    session = make_session(FakeAIService())
    assert session.state is TestState.WELCOME
    assert session.selected_exam_id == "iii_cert"
    assert session.selected_num_questions == 10
    assert session.exam_name == "資策會 生成式AI能力認證"


def test_select_exam_resets_unsupported_count(make_session) -> None:
    session = make_session(FakeAIService())
    session.select_question_count(30)

    session.select_exam("ipas_s1")
    assert session.selected_exam_id == "ipas_s1"
    assert session.selected_num_questions == 20

    session.select_question_count(10)
    session.select_exam("iii_cert")
    assert session.selected_num_questions == 10


def test_select_rejects_invalid_input(make_session) -> None:
    session = make_session(FakeAIService())
    with pytest.raises(ValueError):
        session.select_exam("no_such_exam")
    with pytest.raises(ValueError):
        session.select_question_count(7)


def test_full_run_reaches_feedback_and_saves_history(make_session, history_repository, clock) -> None:
    fake = FakeAIService()
    session = make_session(fake)
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        assert session.state is TestState.ANSWERING_QUESTIONS
        assert session.generated_count == 5
        assert session.generating_model == "test-model"
        clock.now += 95
        await answer_all(session, "A")

    asyncio.run(scenario())

    assert session.state is TestState.VIEWING_FEEDBACK
    assert session.error is None
    assert session.score.correct == 5
    assert session.score.incorrect == 0
    assert session.feedback.learning_suggestions == "<p>多練習</p>"
    assert "恭喜" in session.feedback.error_analysis
    assert session.elapsed_seconds == 95

    assert len(history_repository.records) == 1
    record = history_repository.records[0]
    assert record.exam_id == "iii_cert"
    assert record.elapsed_time_in_seconds == 95
    assert record.score.correct == 5
    assert len(record.questions) == 5
    assert session.history == history_repository.records


def test_next_without_answer_sets_error(make_session) -> None:
    session = make_session(FakeAIService())
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        await session.next_question()
        assert session.error == MISSING_ANSWER_ERROR
        assert session.current_index == 0

        session.select_answer("q1", "B")
        assert session.error is None
        await session.next_question()
        assert session.current_index == 1

        session.previous_question()
        assert session.current_index == 0
        session.previous_question()
        assert session.current_index == 0

    asyncio.run(scenario())


def test_select_answer_validates_input(make_session) -> None:
    session = make_session(FakeAIService())
    session.select_question_count(5)
    asyncio.run(session.start_test())

    with pytest.raises(ValueError):
        session.select_answer("q99", "A")
    with pytest.raises(ValueError):
        session.select_answer("q1", "E")


def test_answers_hidden_until_graded(make_session) -> None:
    session = make_session(FakeAIService())
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        snapshot = session.snapshot()
        assert snapshot["state"] == "ANSWERING_QUESTIONS"
        assert "correctAnswerKey" not in snapshot["currentQuestion"]
        assert all("explanation" not in q for q in snapshot["questions"])

        await answer_all(session, "B")
        snapshot = session.snapshot()
        assert snapshot["state"] == "VIEWING_FEEDBACK"
        assert snapshot["currentQuestion"]["correctAnswerKey"] == "A"
        assert snapshot["score"] == {"correct": 0, "incorrect": 5}

    asyncio.run(scenario())


def test_feedback_error_returns_to_answering(make_session, history_repository, clock) -> None:
    def feedback_handler():
        raise AIServiceError("network down")

    fake = FakeAIService(feedback_handler=feedback_handler)
    session = make_session(fake)
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        clock.now += 40
        await answer_each(session, "ABCDA")

        assert session.state is TestState.ANSWERING_QUESTIONS
        assert session.error == "取得回饋時發生錯誤: network down"
        assert session.answers == {"q1": "A", "q2": "B", "q3": "C", "q4": "D", "q5": "A"}
        assert session.current_index == 4
        assert session.feedback is None
        assert session.is_loading is False

        assert session.timer.running
        assert session.timer.started_at == 1000.0
        clock.now += 10
        assert session.timer.tick() == 50

        fake.feedback_handler = FakeAIService.default_feedback
        await session.next_question()

    asyncio.run(scenario())

    assert session.state is TestState.VIEWING_FEEDBACK
    assert session.error is None
    assert session.feedback.learning_suggestions == "<p>多練習</p>"
    assert session.elapsed_seconds == 50
    assert len(history_repository.records) == 2


def test_unusable_feedback_uses_placeholder(make_session) -> None:
    session = make_session(FakeAIService(feedback_handler=lambda: "garbage"))
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        await answer_all(session)

    asyncio.run(scenario())

    assert session.state is TestState.VIEWING_FEEDBACK
    assert session.feedback.learning_suggestions == FEEDBACK_PLACEHOLDER
    assert session.error == FEEDBACK_UNAVAILABLE_ERROR


def test_invalid_credential_message_on_feedback(make_session) -> None:
    def feedback_handler():
        raise AIServiceError("API key not valid", ErrorKind.INVALID_CREDENTIAL)

    session = make_session(FakeAIService(feedback_handler=feedback_handler))
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        await answer_each(session, "AAAAA")

    asyncio.run(scenario())
    assert session.state is TestState.ANSWERING_QUESTIONS
    assert len(session.answers) == 5
    assert "GROQ_API_KEY" in session.error


def test_no_questions_returns_to_welcome(make_session) -> None:
    session = make_session(FakeAIService(batch_handler=lambda i, size: ""))
    asyncio.run(session.start_test())

    assert session.state is TestState.WELCOME
    assert session.error.startswith("生成題目時發生錯誤")
    assert session.questions == []
    assert session.is_loading is False


def test_invalid_questions_return_to_welcome(make_session) -> None:
    session = make_session(FakeAIService(batch_handler=lambda i, size: '[{"questionText": "Q"}]'))
    asyncio.run(session.start_test())

    assert session.state is TestState.WELCOME
    assert session.error == NO_VALID_QUESTIONS_ERROR


def test_partial_generation_starts_with_fewer_questions(make_session) -> None:
    def handler(call_index, size):
        if call_index == 0:
            raise AIServiceError("overloaded")
        return FakeAIService.default_batch(call_index, size)

    session = make_session(FakeAIService(batch_handler=handler))
    asyncio.run(session.start_test())

    assert session.state is TestState.ANSWERING_QUESTIONS
    assert len(session.questions) == 5
    assert session.selected_num_questions == 10


def test_restart_discards_pending_generation(make_session) -> None:
    gate = None

    async def handler_coro(call_index, size):
        await gate.wait()
        return FakeAIService.default_batch(call_index, size)

    session = make_session(FakeAIService(batch_handler=handler_coro))
    session.select_question_count(5)

    async def scenario():
        nonlocal gate
        gate = asyncio.Event()
        task = asyncio.create_task(session.start_test())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert session.state is TestState.GENERATING_QUESTIONS

        session.restart()
        gate.set()
        await task

    asyncio.run(scenario())

    assert session.state is TestState.WELCOME
    assert session.questions == []
    assert session.generated_count == 0
    assert session.error is None


def test_restart_discards_pending_feedback(make_session, history_repository) -> None:
    gate = None

    async def feedback_coro():
        await gate.wait()
        return '{"learningSuggestions": "<p>late</p>"}'

    session = make_session(FakeAIService(feedback_handler=feedback_coro))
    session.select_question_count(5)

    async def scenario():
        nonlocal gate
        gate = asyncio.Event()
        await session.start_test()
        for _ in range(4):
            session.select_answer(session.current_question.id, "A")
            await session.next_question()
        session.select_answer(session.current_question.id, "A")

        task = asyncio.create_task(session.next_question())
        await asyncio.sleep(0)
        assert session.state is TestState.GRADING

        session.restart()
        gate.set()
        await task

    asyncio.run(scenario())

    assert session.state is TestState.WELCOME
    assert session.feedback is None
    assert len(history_repository.records) == 1


def test_navigation_between_welcome_and_history(make_session) -> None:
    session = make_session(FakeAIService())
    session.go_to_history()
    assert session.state is TestState.HISTORY

    with pytest.raises(ValueError):
        session.go_to_history()

    session.go_to_welcome()
    assert session.state is TestState.WELCOME

    with pytest.raises(ValueError):
        asyncio.run(session.next_question())


def test_history_persists_to_json_file(make_session, tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"otherKey": "keep me"}), encoding="utf-8")
    repository = JsonFileHistoryRepository(path=path, storage_key="fantexticTestHistory")

    for _ in range(2):
        session = make_session(FakeAIService(), repository=repository)
        session.select_question_count(5)

        async def scenario():
            await session.start_test()
            await answer_all(session)

        asyncio.run(scenario())

    store = json.loads(path.read_text(encoding="utf-8"))
    assert store["otherKey"] == "keep me"
    assert len(store["fantexticTestHistory"]) == 2

    reloaded = make_session(FakeAIService(), repository=JsonFileHistoryRepository(path=path))
    assert len(reloaded.history) == 2
    newest = reloaded.history_newest_first()
    assert newest[0].timestamp >= newest[1].timestamp


def test_history_survives_corrupt_store(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileHistoryRepository(path=path).load() == []


def test_history_survives_corrupt_history_entry(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"fantexticTestHistory": "[{broken"}), encoding="utf-8")
    assert JsonFileHistoryRepository(path=path).load() == []

    path.write_text(json.dumps({"fantexticTestHistory": {"not": "a list"}}), encoding="utf-8")
    assert JsonFileHistoryRepository(path=path).load() == []


def test_history_string_entry_is_decoded(make_session, tmp_path) -> None:
    source = make_session(FakeAIService())
    source.select_question_count(5)

    async def scenario():
        await source.start_test()
        await answer_all(source)

    asyncio.run(scenario())

    path = tmp_path / "storage.json"
    encoded = json.dumps([r.to_dict() for r in source.history], ensure_ascii=False)
    path.write_text(json.dumps({"fantexticTestHistory": encoded}, ensure_ascii=False), encoding="utf-8")

    records = JsonFileHistoryRepository(path=path).load()
    assert len(records) == 1
    assert records[0].score.correct == 5


def test_failed_save_leaves_no_temp_file(make_session, tmp_path, monkeypatch) -> None:
    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("mock_exam.core.database.os.replace", failing_replace)
    repository = JsonFileHistoryRepository(path=tmp_path / "storage.json")
    session = make_session(FakeAIService(), repository=repository)
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        await answer_all(session)

    asyncio.run(scenario())

    assert session.state is TestState.VIEWING_FEEDBACK
    assert len(session.history) == 1
    assert list(tmp_path.iterdir()) == []


def test_timer_recomputes_from_start() -> None:
    clock = FakeClock(500.0)
    timer = SessionTimer(tick_seconds=1, clock=clock)
    timer.start()
    assert timer.running

    clock.now = 565.4
    assert timer.tick() == 65
    clock.now = 570.0
    assert timer.stop() == 70
    assert not timer.running

    clock.now = 900.0
    assert timer.tick() == 70

    timer.reset()
    assert timer.elapsed_seconds == 0


def test_mixed_score_with_unusable_feedback(make_session) -> None:
    session = make_session(FakeAIService(feedback_handler=lambda: '{"learningSuggestions": ""}'))
    session.select_question_count(5)

    async def scenario():
        await session.start_test()
        await answer_each(session, "AAACC")

    asyncio.run(scenario())

    assert session.state is TestState.VIEWING_FEEDBACK
    assert session.score.correct == 3
    assert session.score.incorrect == 2
    assert session.topic_analysis["機器學習"].total == 5
    assert "題目 4" in session.feedback.error_analysis
    assert "題目 5" in session.feedback.error_analysis
    assert session.feedback.learning_suggestions == FEEDBACK_PLACEHOLDER
    assert session.error == FEEDBACK_UNAVAILABLE_ERROR


def test_begin_test_claims_generation_synchronously(make_session) -> None:
    session = make_session(FakeAIService())
    session.select_question_count(5)

    epoch = session.begin_test()
    assert session.state is TestState.GENERATING_QUESTIONS
    assert session.is_loading is True
    with pytest.raises(ValueError):
        session.begin_test()

    asyncio.run(session.generate_test(epoch))
    assert session.state is TestState.ANSWERING_QUESTIONS
    assert len(session.questions) == 5


def test_generation_after_restart_is_dropped(make_session) -> None:
    fake = FakeAIService()
    session = make_session(fake)
    epoch = session.begin_test()
    session.restart()

    asyncio.run(session.generate_test(epoch))
    assert session.state is TestState.WELCOME
    assert fake.batch_prompts == []
