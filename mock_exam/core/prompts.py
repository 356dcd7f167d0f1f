# mock_exam/core/prompts.py
import json
from typing import Any, Dict, List, Optional, Tuple

from .models import OPTION_KEYS, TopicAnalysis
from .utils import format_elapsed_time

QUESTION_ITEM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "questionText": {"type": "string", "description": "The text of the question."},
        "options": {
            "type": "array",
            "description": "An array of four possible answers.",
            "minItems": 4,
            "maxItems": 4,
            "items": {
                "type": "object",
                "properties": {
                    "key": {"type": "string", "enum": list(OPTION_KEYS)},
                    "text": {"type": "string", "description": "The text for the option."},
                },
                "required": ["key", "text"],
            },
        },
        "correctAnswerKey": {"type": "string", "enum": list(OPTION_KEYS)},
        "topic": {
            "type": "string",
            "description": "The specific topic this question relates to, chosen exactly from the provided list.",
        },
        "explanation": {
            "type": "string",
            "description": "Why the correct answer is correct, clarifying the key concepts.",
        },
    },
    "required": ["questionText", "options", "correctAnswerKey", "topic", "explanation"],
}

FEEDBACK_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "learningSuggestions": {
            "type": "string",
            "description": "HTML learning suggestions using only <h4>, <p> and <strong> tags.",
        }
    },
    "required": ["learningSuggestions"],
}

def question_batch_schema(exam_name: str, questions_in_batch: int) -> Dict[str, Any]:
    return {
        "type": "array",
        "description": f"List of {questions_in_batch} questions for the {exam_name} exam.",
        "items": QUESTION_ITEM_SCHEMA,
    }

# (substring of the exam name, target pass rate, basic / applied / integrative share)
DIFFICULTY_CATEGORIES: List[Tuple[str, int, Tuple[int, int, int]]] = [
    ("資策會", 70, (50, 40, 10)),
]
DEFAULT_DIFFICULTY: Tuple[int, Tuple[int, int, int]] = (30, (30, 50, 20))

ADVANCED_INSTRUCTIONS_THRESHOLD = 20

class PromptTemplates:
    """Centralized prompt template management"""

    @staticmethod
    def difficulty_calibration(exam_name: str) -> Tuple[int, Tuple[int, int, int]]:
        """Target pass rate and tier distribution for an exam"""
        for marker, pass_rate, tiers in DIFFICULTY_CATEGORIES:
            if marker in exam_name:
                return pass_rate, tiers
        return DEFAULT_DIFFICULTY

    @staticmethod
    def _difficulty_instructions(exam_name: str) -> str:
        pass_rate, (basic, applied, integrative) = PromptTemplates.difficulty_calibration(exam_name)

        if pass_rate >= 50:
            narrative = "出題應著重評估考生對核心知識的理解與基本應用能力，確保掌握關鍵技能。"
        else:
            narrative = "題目需具備高度鑑別度，能有效區分出具備深入知識與實務應用能力的考生。"

        return f"""- **難度校準**：此測驗為專業級認證，目標考照率約為 {pass_rate}%。{narrative}
- **難度分佈**：
    - **基礎知識題 (約 {basic}%)**：評量對核心概念、專有名詞、法規與標準的理解。
    - **情境應用題 (約 {applied}%)**：以實務情境評量考生應用知識解決問題的能力。
    - **整合分析題 (約 {integrative}%)**：結合多個知識點進行比較、分析與判斷。"""

    @staticmethod
    def _exam_specific_instructions(exam_name: str) -> str:
        if "淨零碳" in exam_name:
            return """- **法規與時事重點**：優先評量考生對近期新增或即將上路的國內外淨零碳法規、政策與標準的理解，
  例如 COP 最新決議、歐盟 CBAM 實施細節、ISO 14068-1、《氣候變遷因應法》子法與碳費機制，並融入情境題。"""
        return ""

    @staticmethod
    def _advanced_instructions(total_questions: int) -> str:
        if total_questions < ADVANCED_INSTRUCTIONS_THRESHOLD:
            return ""
        return f"""- **測驗整體性**：這是一份 {total_questions} 題的完整測驗，
    - 題目應廣泛覆蓋「測驗目標」中的多個主題，避免集中於少數主題。
    - 適度加入比較分析或整合判斷題型，提高鑑別度。
    - 避免題意或考點過於相似的題目。"""

    @staticmethod
    def _knowledge_base_context(knowledge_base: Optional[Tuple[str, str]]) -> str:
        if not knowledge_base:
            return ""
        label, text = knowledge_base
        return f"""**核心知識庫：**
您必須嚴格根據以下「{label}」知識庫內容設計所有題目及其詳解。
---
{text}
---"""

    @staticmethod
    def create_batch_questions_prompt(exam_name: str, topics: List[str], questions_in_batch: int,
                                      batch_index: int, batch_count: int, total_questions: int,
                                      knowledge_base: Optional[Tuple[str, str]] = None) -> str:
        """Create prompt for one question generation batch"""
        topic_list = "\n".join(f"- {topic}" for topic in topics)
        schema = json.dumps(question_batch_schema(exam_name, questions_in_batch), ensure_ascii=False, indent=2)

        sections = [
            f"身為「{exam_name}」的資深考試委員，請設計 {questions_in_batch} 道高品質的模擬測驗題目。",
            PromptTemplates._knowledge_base_context(knowledge_base),
            f"**測驗目標：**\n評估考生在以下考試範圍的知識與應用能力：\n{topic_list}",
            "**題目設計指引：**",
            PromptTemplates._exam_specific_instructions(exam_name),
            """- **題型**：全部為單選題，每題四個選項（A, B, C, D），有且僅有一個最佳答案。
- **選項設計**：正確選項分配盡量均勻；干擾選項應與正確答案概念相關、具誘答性，避免明顯錯誤的選項。
- **時事結合**：在適當情況下結合最新的產業動態、政策或法規發展。""",
            PromptTemplates._difficulty_instructions(exam_name),
            PromptTemplates._advanced_instructions(total_questions),
            """- **主題關聯**：每道題目必須對應「測驗目標」中的一個主題，並將該主題完整字串填入 'topic' 欄位。
- **詳解**：每道題目必須提供 'explanation' 欄位，說明正確答案的理由並釐清相關概念。""",
        ]

        if batch_count > 1:
            sections.append(
                f"- **批次提醒**：這是系列請求中的第 {batch_index + 1} 批 (共 {batch_count} 批)。"
                "請確保題目與其他批次具有多樣性，涵蓋不同的子主題。"
            )

        sections.append(
            "請直接輸出符合以下 JSON Schema 的 JSON 陣列，不要包含任何額外說明：\n" + schema
        )
        return "\n\n".join(section for section in sections if section)

    @staticmethod
    def create_feedback_prompt(correct_count: int, incorrect_count: int, elapsed_seconds: int,
                               exam_name: str, topic_analysis: Optional[TopicAnalysis] = None) -> str:
        """Create prompt for learning suggestions after a completed test"""
        elapsed = format_elapsed_time(elapsed_seconds)
        total = correct_count + incorrect_count

        if topic_analysis:
            analysis_text = "答題主題分析：\n" + "\n".join(
                f"- 主題「{topic}」: {stats.correct} / {stats.total} 答對"
                for topic, stats in topic_analysis.items()
            )
        else:
            analysis_text = "無主題分析資料。"

        html_rules = """每個建議為一個獨立區塊：
- **建議標題**：使用 <h4> 標籤包裹。
- **詳細內容**：在 <h4> 之後使用一個或多個 <p> 標籤說明，並以 <strong> 標籤強調關鍵概念或行動建議。"""

        if incorrect_count > 0:
            guidance = (
                f"根據考生在「{exam_name}」的答錯情況（特別是答錯較多的主題）與作答總時間（{elapsed}），"
                f"請提供 2-3 項具體的學習建議，針對較弱的知識點。\n{html_rules}\n"
                "若作答時間相對題數明顯過長，可提醒考生注意時間分配。"
            )
        else:
            guidance = (
                f"考生在「{exam_name}」測驗中全部答對，作答總時間為 {elapsed}。"
                f"請提供 1-2 個相關領域的進階學習方向。\n{html_rules}"
            )

        schema = json.dumps(FEEDBACK_SCHEMA, ensure_ascii=False, indent=2)

        return f"""您是「{exam_name}」的考試委員，請根據考生的作答摘要提供學習建議。

**考生表現概要 ({exam_name})：**
總題數：{total}
答對題數：{correct_count}
答錯題數：{incorrect_count}
作答總時間：{elapsed}
{analysis_text}

**'learningSuggestions' 內容指引：**
{guidance}

只允許使用 <h4>、<p>、<strong> 三種 HTML 標籤，不要使用 Markdown。
請保持專業、嚴謹且具鼓勵性的語氣，僅輸出符合以下 JSON Schema 的 JSON 物件：
{schema}"""
