"""Simple two-language (en/ar) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "fajr": {
        "en": "Fajr",
        "ar": "الفجر",
    },
    "sunrise": {
        "en": "Sunrise",
        "ar": "الشروق",
    },
    "dhuhr": {
        "en": "Dhuhr",
        "ar": "الظهر",
    },
    "asr": {
        "en": "Asr",
        "ar": "العصر",
    },
    "maghrib": {
        "en": "Maghrib",
        "ar": "المغرب",
    },
    "isha": {
        "en": "Isha",
        "ar": "العشاء",
    },
    "middleOfNight": {
        "en": "Middle of Night",
        "ar": "منتصف الليل",
    },
    "lastThirdOfNight": {
        "en": "Last Third",
        "ar": "الثلث الأخير",
    },
    "summary_off": {
        "en": "Off",
        "ar": "متوقف",
    },
    "summary_enabled": {
        "en": "Enabled",
        "ar": "مفعّل",
    },
    "summary_traveling": {
        "en": "Traveling",
        "ar": "في سفر",
    },
    "summary_prayer_count": {
        "en": "{count} prayers",
        "ar": "{count} صلوات",
    },
    "qasr_badge": {
        "en": "Qasr · {rakahs} rak'ahs",
        "ar": "قصر · {rakahs} ركعات",
    },
    "jama_dhuhr_asr": {
        "en": "Combine Dhuhr & Asr",
        "ar": "جمع الظهر والعصر",
    },
    "jama_maghrib_isha": {
        "en": "Combine Maghrib & Isha",
        "ar": "جمع المغرب والعشاء",
    },
    "next_prayer_in": {
        "en": "{prayer} in {hours}h {minutes}m {seconds}s",
        "ar": "{prayer} بعد {hours} س {minutes} د {seconds} ث",
    },
    "distance_from_home": {
        "en": "{km:.1f} km from home",
        "ar": "{km:.1f} كم من المنزل",
    },
    "travel_day": {
        "en": "Day {day} of {max_days}",
        "ar": "اليوم {day} من {max_days}",
    },
}


def t(key: str, lang: str) -> str:
    """Look up key for lang, falling back to English and then to the key itself."""
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
