# mock_exam/core/dummy_data.py
"""
Canned model responses for running without an API key (USE_DUMMY_DATA=true).
"""
import json
import random
from typing import Any, Dict, List

from .models import OPTION_KEYS

QUESTION_TEMPLATES: List[Dict[str, Any]] = [
    {
        "stem": "下列關於「{topic}」的敘述，何者最為正確？",
        "options": [
            "此概念僅適用於學術研究，與實務導入無關",
            "應依據情境評估效益與風險後再決定導入方式",
            "只要採用最新技術即可自動解決所有問題",
            "相關法規與標準對此領域沒有任何影響",
        ],
        "correct": 1,
        "explanation": "「{topic}」的實務應用須兼顧情境、效益與風險，其他選項均過度簡化或與事實不符。",
    },
    {
        "stem": "某企業在推動「{topic}」時，最應優先進行的步驟為何？",
        "options": [
            "盤點現況並設定可衡量的目標",
            "直接採購最昂貴的解決方案",
            "等待競爭對手完成導入後再評估",
            "僅由資訊部門獨立決定",
        ],
        "correct": 0,
        "explanation": "推動「{topic}」應先盤點現況並設定可衡量目標，後續規劃才有依據。",
    },
    {
        "stem": "關於「{topic}」的常見誤解，下列何者「錯誤」？",
        "options": [
            "需要持續監控與改善",
            "需要跨部門協作",
            "一次建置後便不需要任何維護",
            "需要考量資料品質",
        ],
        "correct": 2,
        "explanation": "「{topic}」需要持續維護與改善，一次建置後即不需維護的說法錯誤。",
    },
]

def dummy_question_batch_response(questions_in_batch: int, topics: List[str]) -> str:
    """A fenced JSON array of plausible questions"""
    questions = []
    for i in range(questions_in_batch):
        topic = random.choice(topics) if topics else "一般知識"
        template = QUESTION_TEMPLATES[i % len(QUESTION_TEMPLATES)]
        questions.append({
            "questionText": template["stem"].format(topic=topic),
            "options": [
                {"key": key, "text": text}
                for key, text in zip(OPTION_KEYS, template["options"])
            ],
            "correctAnswerKey": OPTION_KEYS[template["correct"]],
            "topic": topic,
            "explanation": template["explanation"].format(topic=topic),
        })

    return "```json\n" + json.dumps(questions, ensure_ascii=False, indent=2) + "\n```"

def dummy_feedback_response(incorrect_count: int) -> str:
    if incorrect_count > 0:
        suggestions = (
            "<h4>強化答錯主題的核心概念</h4>"
            "<p>建議回顧本次答錯題目的<strong>詳解說明</strong>，整理相關主題的關鍵名詞與定義。</p>"
            "<h4>以情境題練習應用能力</h4>"
            "<p>多練習<strong>情境應用題</strong>，思考每個選項為何正確或錯誤。</p>"
        )
    else:
        suggestions = (
            "<h4>深入研究前沿應用</h4>"
            "<p>您的基礎相當紮實，建議關注<strong>最新產業案例</strong>與相關法規的發展。</p>"
        )
    return json.dumps({"learningSuggestions": suggestions}, ensure_ascii=False)
