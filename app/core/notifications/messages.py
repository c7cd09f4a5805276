"""Onboarding push notification texts (ar, en, ja, ko)."""

from __future__ import annotations

from typing import Dict, Literal, NamedTuple, Tuple


NotificationDay = Literal["day1", "day2", "day3"]

SUPPORTED_LANGUAGES = ("ar", "en", "ja", "ko")
DEFAULT_LANGUAGE = "en"

# day -> hours after signup
ONBOARDING_SCHEDULE: Tuple[Tuple[str, int], ...] = (
    ("day1", 24),
    ("day2", 48),
    ("day3", 72),
)


class NotificationMessage(NamedTuple):
    title: str
    body: str


ONBOARDING_NOTIFICATIONS: Dict[str, Dict[str, NotificationMessage]] = {
    "day1": {
        "ar": NotificationMessage(
            "💪 هذه المرة مختلفة",
            "واصل رحلتك الصحية اليوم. سجل وجباتك الآن",
        ),
        "en": NotificationMessage(
            "💪 This time is different",
            "Continue your healthy journey today. Track your meals now",
        ),
        "ja": NotificationMessage(
            "💪 今回は違います",
            "健康な生活を続けましょう。今日の食事を記録してください",
        ),
        "ko": NotificationMessage(
            "💪 이번엔 다릅니다",
            "건강한 여정을 계속하세요. 오늘 식사를 기록하세요",
        ),
    },
    "day2": {
        "ar": NotificationMessage(
            "🌟 الخطوات الصغيرة تصنع التغيير الكبير",
            "كل وجبة تسجلها تقربك من هدفك. استمر في التقدم",
        ),
        "en": NotificationMessage(
            "🌟 Small steps lead to big changes",
            "Every meal you track brings you closer to your goal. Keep moving forward",
        ),
        "ja": NotificationMessage(
            "🌟 小さな一歩が大きな変化を生む",
            "記録する食事一つ一つが目標に近づけます。前進を続けましょう",
        ),
        "ko": NotificationMessage(
            "🌟 작은 발걸음이 큰 변화를 만듭니다",
            "기록하는 모든 식사가 목표에 가까워지게 합니다. 계속 나아가세요",
        ),
    },
    "day3": {
        "ar": NotificationMessage(
            "❤️ التغيير الحقيقي يبدأ هنا",
            "أنت لست وحدك في هذه الرحلة. سجل وجباتك واستمر في بناء مستقبلك الصحي",
        ),
        "en": NotificationMessage(
            "❤️ Real change starts here",
            "You're not alone in this journey. Track your meals and keep building your healthy future",
        ),
        "ja": NotificationMessage(
            "❤️ 本当の変化はここから始まります",
            "この旅にあなたは一人ではありません。食事を記録して健康な未来を築き続けましょう",
        ),
        "ko": NotificationMessage(
            "❤️ 진정한 변화는 여기서 시작됩니다",
            "이 여정에서 당신은 혼자가 아닙니다. 식사를 기록하고 건강한 미래를 계속 만들어가세요",
        ),
    },
}


def validate_language(language: str | None) -> str:
    if language in SUPPORTED_LANGUAGES:
        return language
    return DEFAULT_LANGUAGE


def get_notification_message(day: str, language: str) -> NotificationMessage:
    return ONBOARDING_NOTIFICATIONS[day][validate_language(language)]


__all__ = [
    "NotificationDay",
    "NotificationMessage",
    "SUPPORTED_LANGUAGES",
    "ONBOARDING_SCHEDULE",
    "ONBOARDING_NOTIFICATIONS",
    "validate_language",
    "get_notification_message",
]
