"""
services/report_service.py

Arabic prompt builders for the AI report endpoints and the calls that run them.
- Each run_* coroutine raises AIServiceError; routers turn that into AI_FALLBACK_MESSAGE.
- analyze_sentiment never fails the caller: errors are logged and "neutral" is returned.
"""

import logging
from typing import Iterable, Optional

from schemas.enums import AttendanceStatus, PERM_COUNSELOR
from services.exceptions import AIServiceError
from services.llm.base import TextGenerator

logger = logging.getLogger(__name__)

AI_FALLBACK_MESSAGE = "تعذر الاتصال بخدمة الذكاء الاصطناعي."
DEFAULT_COUNSELOR_TITLE = "الموجه الطلابي"

SENTIMENTS = ("positive", "negative", "neutral")


# ==========================================================
# Prompt builders
# ==========================================================
def executive_report_prompt(stats: dict) -> str:
    return f"""
بصفتك مستشاراً تربويًا وإداريًا خبيراً، قم بإعداد "تقرير تنفيذي شامل" لإدارة المدرسة بناءً على البيانات التالية:
- نسبة الحضور العامة: {stats['attendance_rate']}%
- نسبة الغياب: {stats['absence_rate']}%
- نسبة التأخر: {stats['lateness_rate']}%
- إجمالي المخالفات السلوكية: {stats['total_violations']}
- عدد الطلاب في دائرة الخطر (غياب متكرر): {stats['risk_count']}
- الصف الأكثر غياباً: {stats['most_absent_grade']}

المطلوب:
1. ملخص تنفيذي لحالة الانضباط في المدرسة.
2. تحليل نقاط الضعف.
3. ثلاث توصيات عملية ومحددة للإدارة لتحسين الوضع الأسبوع القادم.

الصيغة: تقرير رسمي مهني، نقاط واضحة، لغة عربية فصحى.
""".strip()


def student_report_prompt(student_name: str, absent_days: int, late_days: int,
                          behavior_count: int, points: int, counselor_name: str) -> str:
    return f"""
اكتب رسالة تربوية موجهة لولي أمر الطالب "{student_name}".
البيانات:
- الغياب: {absent_days} أيام.
- التأخر: {late_days} أيام.
- المخالفات السلوكية: {behavior_count}.
- نقاط التميز: {points}.

الأسلوب:
- إذا كان الأداء ممتازاً (غياب قليل، نقاط عالية): كن مشجعاً وفخوراً.
- إذا كانت هناك ملاحظات: كن لطيفاً وواضحاً في التنبيه على ضرورة التحسن بأسلوب تربوي.
- اختم بنصيحة قصيرة.

التوقيع في نهاية الرسالة يجب أن يكون حرفياً كالتالي:
{DEFAULT_COUNSELOR_TITLE}
{counselor_name}
""".strip()


def behavior_action_prompt(violation_name: str, history_count: int) -> str:
    return f"""
طالب قام بمخالفة: "{violation_name}".
هذه هي المرة رقم {history_count + 1} التي يرتكب فيها مخالفة.
بناءً على قواعد السلوك والمواظبة المدرسية العامة:
1. ما هو الإجراء النظامي المقترح؟ (تدرج في العقوبة إذا كان مكرراً).
2. نصيحة قصيرة يمكن توجيهها للطالب أثناء التحقيق.
""".strip()


def guidance_plan_prompt(student_name: str, history: str) -> str:
    return f"""
بصفتك خبيراً تربوياً، قم بإعداد "خطة علاجية فردية" رسمية وجاهزة للطباعة للطالب: {student_name}.

سياق الحالة والملاحظات: {history}.

اكتب الخطة مباشرة بصيغة رسمية بالهيكل التالي:
1. التشخيص التربوي.
2. الأهداف السلوكية.
3. الإجراءات العلاجية (خطوات عملية للمعلم وولي الأمر والطالب).
4. التوصيات الختامية.

استخدم لغة عربية فصحى رسمية، بصيغة المتكلم (الموجه الطلابي).
""".strip()


def sentiment_prompt(text: str) -> str:
    return (
        "Analyze the sentiment of this text (Student Report). "
        f"Return ONLY one word: 'positive', 'negative', or 'neutral'. Text: \"{text}\""
    )


# ==========================================================
# Helpers
# ==========================================================
def counselor_name(staff: Iterable) -> str:
    """First staff member holding the counselor permission, else the generic title."""
    for s in staff:
        if PERM_COUNSELOR in (s.permissions or []):
            return s.name
    return DEFAULT_COUNSELOR_TITLE


def parse_sentiment(raw: str) -> str:
    clean = (raw or "").strip().lower()
    # "negative" is checked first so "not positive" style answers are not misread
    if "negative" in clean:
        return "negative"
    if "positive" in clean:
        return "positive"
    return "neutral"


# ==========================================================
# Runners
# ==========================================================
async def run_executive_report(generator: TextGenerator, stats: dict) -> str:
    return await generator.complete(executive_report_prompt(stats))


async def run_student_report(generator: TextGenerator, student_name: str, history: Iterable,
                             behavior_count: int, points: int, counselor: str) -> str:
    history = list(history)
    absent = sum(1 for h in history if h.status == AttendanceStatus.ABSENT)
    late = sum(1 for h in history if h.status == AttendanceStatus.LATE)
    return await generator.complete(
        student_report_prompt(student_name, absent, late, behavior_count, points, counselor)
    )


async def run_behavior_suggestion(generator: TextGenerator, violation_name: str, history_count: int) -> str:
    return await generator.complete(behavior_action_prompt(violation_name, history_count))


async def run_guidance_plan(generator: TextGenerator, student_name: str, history: str) -> str:
    return await generator.complete(guidance_plan_prompt(student_name, history))


async def analyze_sentiment(generator: TextGenerator, text: str) -> str:
    try:
        raw = await generator.complete(sentiment_prompt(text))
    except AIServiceError as e:
        logger.warning("sentiment analysis failed, defaulting to neutral: %s", e.message)
        return "neutral"
    return parse_sentiment(raw)


def fallback_payload(error: Optional[AIServiceError] = None) -> dict:
    if error is not None:
        logger.error("AI report generation failed: %s", error.message)
    return {
        "success": False,
        "data": {"text": AI_FALLBACK_MESSAGE},
        "error": {"code": AIServiceError.code, "message": AI_FALLBACK_MESSAGE},
    }
