"""Simple two-language (ko/en) translation helper."""

from moonsight.models import PhaseLabel

_STRINGS: dict[str, dict[str, str]] = {
    "page_title": {
        "ko": "지금 달이 보일까?",
        "en": "Can you see the moon?",
    },
    "answer_yes": {
        "ko": "네",
        "en": "YES",
    },
    "answer_no": {
        "ko": "아니요",
        "en": "NO",
    },
    "above_horizon": {
        "ko": "달이 지평선 위에 있어요",
        "en": "The moon is above the horizon",
    },
    "below_horizon": {
        "ko": "달이 지평선 아래에 있어요",
        "en": "The moon is below the horizon",
    },
    "label_location": {
        "ko": "위치",
        "en": "Location",
    },
    "option_device": {
        "ko": "내 위치",
        "en": "My location",
    },
    "btn_refresh": {
        "ko": "↻ 새로고침",
        "en": "↻ Refresh",
    },
    "btn_retry": {
        "ko": "다시 시도",
        "en": "Try Again",
    },
    "loading_compute": {
        "ko": "달의 위치를 계산하는 중",
        "en": "Calculating moon position",
    },
    "loading_location": {
        "ko": "위치를 확인하는 중",
        "en": "Finding your location",
    },
    "card_phase": {
        "ko": "달의 위상",
        "en": "Moon Phase",
    },
    "card_position": {
        "ko": "위치",
        "en": "Position",
    },
    "card_moonrise": {
        "ko": "월출",
        "en": "Moonrise",
    },
    "card_moonset": {
        "ko": "월몰",
        "en": "Moonset",
    },
    "illuminated": {
        "ko": "{percent}% 밝음",
        "en": "{percent}% illuminated",
    },
    "moon_age": {
        "ko": "월령 {days}일",
        "en": "{days} days old",
    },
    "altitude": {
        "ko": "고도 {degrees}",
        "en": "{degrees} alt",
    },
    "in_time": {
        "ko": "{hours}시간 {minutes}분 후",
        "en": "in {hours}h {minutes}m",
    },
    "next_phase": {
        "ko": "다음 {label}: {date}",
        "en": "Next {label}: {date}",
    },
    "last_updated": {
        "ko": "마지막 업데이트: {time}",
        "en": "Last updated: {time}",
    },
    "not_available": {
        "ko": "없음",
        "en": "N/A",
    },
    "error_location": {
        "ko": "위치를 가져올 수 없어요. ({error})",
        "en": "Could not get your location. ({error})",
    },
    "error_ephemeris": {
        "ko": "달의 위치를 계산할 수 없어요. ({error})",
        "en": "Failed to get moon data. ({error})",
    },
    "error_coordinate": {
        "ko": "잘못된 좌표예요. ({error})",
        "en": "Invalid coordinates. ({error})",
    },
    PhaseLabel.NEW_MOON.value: {
        "ko": "삭",
        "en": "New Moon",
    },
    PhaseLabel.WAXING_CRESCENT.value: {
        "ko": "초승달",
        "en": "Waxing Crescent",
    },
    PhaseLabel.FIRST_QUARTER.value: {
        "ko": "상현달",
        "en": "First Quarter",
    },
    PhaseLabel.WAXING_GIBBOUS.value: {
        "ko": "차오르는 볼록달",
        "en": "Waxing Gibbous",
    },
    PhaseLabel.FULL_MOON.value: {
        "ko": "보름달",
        "en": "Full Moon",
    },
    PhaseLabel.WANING_GIBBOUS.value: {
        "ko": "기우는 볼록달",
        "en": "Waning Gibbous",
    },
    PhaseLabel.LAST_QUARTER.value: {
        "ko": "하현달",
        "en": "Last Quarter",
    },
    PhaseLabel.WANING_CRESCENT.value: {
        "ko": "그믐달",
        "en": "Waning Crescent",
    },
}


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
