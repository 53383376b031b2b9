"""
Action Item Generator
=====================

Produces a prioritized list of 2-5 specific actions in Bangla for a crop,
based on its stage, the current weather and the assessed risk level.
"""

import re
from dataclasses import dataclass
from typing import List

from ..models import CropContext, CropStage, RiskLevel, StorageMethod, WeatherConditions

MIN_ACTIONS = 2
MAX_ACTIONS = 5

GENERIC_ACTIONS = [
    "ফসলের অবস্থা নিয়মিত পর্যবেক্ষণ করুন",
    "আবহাওয়ার পূর্বাভাস পর্যবেক্ষণ করুন",
]

_BANGLA = re.compile(r"[\u0980-\u09FF]")


@dataclass(frozen=True)
class ActionItem:
    text: str
    priority: int  # higher first


def storage_actions(crop: CropContext, weather: WeatherConditions, risk_level: RiskLevel) -> List[ActionItem]:
    actions: List[ActionItem] = []

    if risk_level == RiskLevel.CRITICAL:
        actions.append(ActionItem("জরুরি: ফসল অবিলম্বে শুকিয়ে নিন", 100))

    # mold risk
    if weather.humidity > 80 and weather.temperature > 30:
        actions.append(ActionItem("ছাঁচ প্রতিরোধে ফসল নিয়মিত পরীক্ষা করুন", 90))

    if weather.humidity > 80:
        actions.append(ActionItem("গুদামে ফ্যান চালু করুন এবং বায়ুচলাচল বাড়ান", 85))

    if weather.rainfall > 20 and crop.storage_method == StorageMethod.OPEN_SPACE:
        actions.append(ActionItem("ফসল তাড়াতাড়ি ঢেকে রাখুন বা নিরাপদ স্থানে সরান", 95))
        actions.append(ActionItem("পানি নিষ্কাশনের ব্যবস্থা করুন", 80))

    if weather.temperature > 35:
        actions.append(ActionItem("গুদামের তাপমাত্রা কমাতে ছায়ার ব্যবস্থা করুন", 70))

    if weather.wind_speed > 10:
        actions.append(ActionItem("গুদামের দরজা-জানালা ভালোভাবে বন্ধ করুন", 75))

    actions.append(ActionItem("ফসলের অবস্থা নিয়মিত পর্যবেক্ষণ করুন", 30))
    actions.append(ActionItem("গুদামে আর্দ্রতা নিয়ন্ত্রণ করুন", 40))
    return actions


def growing_actions(crop: CropContext, weather: WeatherConditions, risk_level: RiskLevel) -> List[ActionItem]:
    actions: List[ActionItem] = []

    if risk_level == RiskLevel.CRITICAL:
        actions.append(ActionItem("জরুরি: ফসল রক্ষায় তাৎক্ষণিক ব্যবস্থা নিন", 100))

    if weather.rainfall > 50:
        actions.append(ActionItem("জমিতে পানি নিষ্কাশনের ব্যবস্থা করুন", 90))
        actions.append(ActionItem("ফসল কাটা কয়েক দিন বিলম্বিত করুন", 85))

    if weather.temperature > 35:
        actions.append(ActionItem("নিয়মিত সেচ দিন এবং মাটির আর্দ্রতা বজায় রাখুন", 88))
        actions.append(ActionItem("সম্ভব হলে ছায়ার ব্যবস্থা করুন", 75))

    if weather.wind_speed > 10:
        actions.append(ActionItem("ফসল খুঁটি দিয়ে বেঁধে রাখুন", 87))
        actions.append(ActionItem("ক্ষতিগ্রস্ত গাছ সরিয়ে ফেলুন", 70))

    # disease risk
    if weather.humidity > 80 and weather.temperature > 30:
        actions.append(ActionItem("ছত্রাকনাশক স্প্রে করার কথা বিবেচনা করুন", 80))

    actions.append(ActionItem("ফসলের স্বাস্থ্য নিয়মিত পরীক্ষা করুন", 30))
    actions.append(ActionItem("আবহাওয়ার পূর্বাভাস পর্যবেক্ষণ করুন", 35))
    return actions


def ensure_action_count(texts: List[str]) -> List[str]:
    """Deduplicate and bound the list to MIN_ACTIONS..MAX_ACTIONS items."""
    unique: List[str] = []
    for text in texts:
        if text not in unique:
            unique.append(text)

    if not unique:
        return list(GENERIC_ACTIONS)

    if len(unique) < MIN_ACTIONS:
        for generic in GENERIC_ACTIONS:
            if generic not in unique:
                unique.append(generic)
                break

    return unique[:MAX_ACTIONS]


def generate_action_items(
    crop: CropContext,
    weather: WeatherConditions,
    risk_level: RiskLevel,
) -> List[str]:
    """
    Generate 2-5 prioritized action items in Bangla.

    Args:
        crop: Crop stage and storage
        weather: Current readings
        risk_level: Assessed risk level

    Returns:
        Action texts, highest priority first
    """
    if crop.stage == CropStage.HARVESTED:
        candidates = storage_actions(crop, weather, risk_level)
    else:
        candidates = growing_actions(crop, weather, risk_level)

    # sorted() is stable, equal priorities keep rule order
    ranked = sorted(candidates, key=lambda a: a.priority, reverse=True)
    return ensure_action_count([a.text for a in ranked])


def contains_bangla_text(text: str) -> bool:
    """True when the text has at least one character from the Bangla block."""
    return bool(_BANGLA.search(text or ""))
