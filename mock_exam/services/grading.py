# mock_exam/services/grading.py
"""
Local grading: score, per-topic tally and the error-analysis document.
None of this needs the AI service.
"""
import html
from typing import Dict, List

import markdown

from ..core.models import Question, Score, TopicAnalysis, TopicStats

NO_ERRORS_HTML = "<p>本次測驗無錯誤題目，恭喜！</p>"
QUESTION_SEPARATOR = "<hr />"

def is_correct(question: Question, answers: Dict[str, str]) -> bool:
    return answers.get(question.id) == question.correct_answer_key

def grade(questions: List[Question], answers: Dict[str, str]) -> Score:
    correct = sum(1 for q in questions if is_correct(q, answers))
    return Score(correct=correct, incorrect=len(questions) - correct)

def build_topic_analysis(questions: List[Question], answers: Dict[str, str]) -> TopicAnalysis:
    analysis: TopicAnalysis = {}
    for q in questions:
        if not q.topic:
            continue
        stats = analysis.setdefault(q.topic, TopicStats())
        if is_correct(q, answers):
            stats.correct += 1
        else:
            stats.incorrect += 1
        stats.total += 1
    return analysis

def _render_text(text: str) -> str:
    return markdown.markdown(text) if text else ""

def _option_label(question: Question, key) -> str:
    option = question.option(key)
    if option is None:
        return ""
    return html.escape(f"{option.key}. {option.text}")

def render_error_analysis(questions: List[Question], answers: Dict[str, str]) -> str:
    """HTML listing every wrong or unanswered question with the right answer"""
    blocks = []
    for number, q in enumerate(questions, 1):
        if is_correct(q, answers):
            continue

        user_answer = _option_label(q, answers.get(q.id)) or "(未作答)"
        correct_answer = _option_label(q, q.correct_answer_key) or "N/A"
        explanation = _render_text(q.explanation) or "<p>此題未提供詳解。</p>"

        blocks.append(f"""<div class="error-item">
  <h4>題目 {number}: {html.escape(q.question_text)}</h4>
  <div class="user-answer">
    <p class="label">你的答案 (錯誤)</p>
    <p>{user_answer}</p>
  </div>
  <div class="correct-answer">
    <p class="label">正確答案</p>
    <p>{correct_answer}</p>
  </div>
  <div class="explanation">
    <p class="label">詳解說明：</p>
    {explanation}
  </div>
</div>""")

    if not blocks:
        return NO_ERRORS_HTML
    return QUESTION_SEPARATOR.join(blocks)
