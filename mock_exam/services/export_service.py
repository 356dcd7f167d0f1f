# mock_exam/services/export_service.py
import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from ..core.models import TestRecord

CSV_HEADERS = [
    "測驗ID", "測驗日期", "測驗時間", "考試名稱", "總耗時(秒)", "總分(答對/總題數)",
    "題目編號", "題目內容", "題目主題", "選項A", "選項B", "選項C", "選項D",
    "正確答案(Key)", "使用者答案(Key)", "是否答對", "詳解",
]

UTF8_BOM = "\ufeff"

def export_history_csv(records: Iterable[TestRecord]) -> str:
    """One row per question across all records, prefixed with a UTF-8 BOM"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for record in records:
        taken_at = datetime.fromtimestamp(record.timestamp / 1000)
        for number, q in enumerate(record.questions, 1):
            user_key = record.answers.get(q.id) or "N/A"
            options = {opt.key: opt.text for opt in q.options}
            writer.writerow([
                record.id,
                taken_at.strftime("%Y/%m/%d"),
                taken_at.strftime("%H:%M"),
                record.exam_name,
                record.elapsed_time_in_seconds,
                f"'{record.score.correct}/{len(record.questions)}",
                number,
                q.question_text,
                q.topic,
                options.get("A", ""),
                options.get("B", ""),
                options.get("C", ""),
                options.get("D", ""),
                q.correct_answer_key,
                user_key,
                "是" if user_key == q.correct_answer_key else "否",
                q.explanation,
            ])

    return UTF8_BOM + buffer.getvalue()

def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"fantextic_test_history_{now.strftime('%Y-%m-%d')}.csv"
