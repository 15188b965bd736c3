"""
Plan configuration for subscriptions.

This module is the single source of truth for plan prices and features.
It lives in core/ so both service and API layers can import from it
without creating circular dependencies.
"""

# Tests per month on the free plan; -1 means unlimited
FREE_PLAN_TEST_LIMIT = 5

PLANS = {
    "free": {
        "name": "Free Plan",
        "name_ar": "الخطة المجانية",
        "description": "Perfect for trying out our service",
        "description_ar": "مثالية لتجربة خدمتنا",
        "price": 0,
        "currency": "SAR",
        "duration": "monthly",
        "tier": "free",
        "test_limit": FREE_PLAN_TEST_LIMIT,
        "is_popular": False,
        "features": [
            "5 tests per month",
            "Basic color analysis",
            "Standard support",
            "Mobile access",
        ],
        "features_ar": [
            "5 اختبارات شهرياً",
            "تحليل ألوان أساسي",
            "دعم عادي",
            "وصول من الجوال",
        ],
    },
    "monthly": {
        "name": "Monthly Premium",
        "name_ar": "الاشتراك الشهري المميز",
        "description": "Full access to all features",
        "description_ar": "وصول كامل لجميع الميزات",
        "price": 29.99,
        "currency": "SAR",
        "duration": "monthly",
        "tier": "premium",
        "test_limit": -1,
        "is_popular": True,
        "features": [
            "Unlimited tests",
            "Advanced color analysis",
            "Priority support",
            "Export reports",
            "API access",
            "Custom test types",
        ],
        "features_ar": [
            "اختبارات غير محدودة",
            "تحليل ألوان متقدم",
            "دعم أولوية",
            "تصدير التقارير",
            "وصول API",
            "أنواع اختبارات مخصصة",
        ],
    },
    "yearly": {
        "name": "Yearly Premium",
        "name_ar": "الاشتراك السنوي المميز",
        "description": "Best value - 2 months free!",
        "description_ar": "أفضل قيمة - شهرين مجاناً!",
        "price": 299.99,
        "currency": "SAR",
        "duration": "yearly",
        "tier": "premium",
        "test_limit": -1,
        "is_popular": False,
        "features": [
            "Unlimited tests",
            "Advanced color analysis",
            "Priority support",
            "Export reports",
            "API access",
            "Custom test types",
            "Advanced analytics",
            "Team collaboration",
        ],
        "features_ar": [
            "اختبارات غير محدودة",
            "تحليل ألوان متقدم",
            "دعم أولوية",
            "تصدير التقارير",
            "وصول API",
            "أنواع اختبارات مخصصة",
            "تحليلات متقدمة",
            "تعاون الفريق",
        ],
    },
}

PAID_PLANS = tuple(plan_id for plan_id, plan in PLANS.items() if plan["price"] > 0)


def plan_tier(plan_id: str | None) -> str:
    """Map a plan id to its entitlement tier ("free" for unknown ids)."""
    plan = PLANS.get(plan_id or "")
    return plan["tier"] if plan else "free"
