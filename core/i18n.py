"""
Localized message catalog.
"""

from core.locale import DEFAULT_LOCALE, Locale, coerce_locale

TRANSLATIONS: dict[str, dict[str, str]] = {
    Locale.EN.value: {
        "access.free-for-all": "Free for All",
        "access.free-by-quota": "Free",
        "access.premium-available": "Premium - Available",
        "access.premium-required": "Premium Required",
        "access.denied": "This test requires a premium subscription",
        "tests.not_found": "Test not found",
        "safety.warning": "Handle all reagents with gloves and eye protection.",
        "plans.currency": "SAR",
        "auth.signed_in": "Successfully signed in!",
        "auth.redirecting": "Redirecting...",
    },
    Locale.AR.value: {
        "access.free-for-all": "مجاني للجميع",
        "access.free-by-quota": "مجاني",
        "access.premium-available": "مميز - متاح",
        "access.premium-required": "يتطلب اشتراك مميز",
        "access.denied": "هذا الاختبار يتطلب اشتراكاً مميزاً",
        "tests.not_found": "الاختبار غير موجود",
        "safety.warning": "تعامل مع جميع الكواشف باستخدام القفازات وواقي العينين.",
        "plans.currency": "ريال",
        "auth.signed_in": "تم تسجيل الدخول بنجاح!",
        "auth.redirecting": "جاري إعادة التوجيه...",
    },
}


def get_translations(lang: str | None) -> dict[str, str]:
    """Return the message catalog for *lang* (default locale when unsupported)."""
    return TRANSLATIONS[coerce_locale(lang).value]


def translate(key: str, lang: str | None) -> str:
    """Look up *key*, falling back to the default locale and then the key itself."""
    message = get_translations(lang).get(key)
    if message is None:
        message = TRANSLATIONS[DEFAULT_LOCALE.value].get(key, key)
    return message


def pick(lang: str | None, en: str | None, ar: str | None) -> str | None:
    """Choose between an English and Arabic field, falling back to English."""
    if coerce_locale(lang) == Locale.AR and ar:
        return ar
    return en
