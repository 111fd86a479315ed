from app.core.constants import AchievementEnum
from app.services.achievement_catalog import (
    ACHIEVEMENT_CATALOG,
    FALLBACK_ACHIEVEMENT,
    get_achievement_details,
    list_achievements,
)


def test_every_achievement_has_catalog_entry():
    assert set(ACHIEVEMENT_CATALOG) == {a.value for a in AchievementEnum}


def test_known_achievement_details():
    detail = get_achievement_details("five_hours")
    assert detail.title == "Time Invested"
    assert detail.description == "Spent 5 hours learning"


def test_unknown_achievement_falls_back():
    assert get_achievement_details("unknown") == FALLBACK_ACHIEVEMENT
    assert get_achievement_details("").title == "Achievement"


def test_list_achievements_keeps_catalog_order():
    assert [a.id for a in list_achievements()] == list(ACHIEVEMENT_CATALOG)
