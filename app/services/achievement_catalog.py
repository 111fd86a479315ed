from typing import Dict, List

from app.core.constants import AchievementEnum
from app.schemas.achievement import AchievementDetail, AchievementRead


ACHIEVEMENT_CATALOG: Dict[str, AchievementDetail] = {
    AchievementEnum.FIRST_LESSON.value: AchievementDetail(
        title="First Steps",
        description="Completed your first lesson",
        icon="🎯",
    ),
    AchievementEnum.FIVE_LESSONS.value: AchievementDetail(
        title="Knowledge Seeker",
        description="Completed 5 lessons",
        icon="📚",
    ),
    AchievementEnum.COURSE_COMPLETE.value: AchievementDetail(
        title="Course Master",
        description="Completed an entire course",
        icon="🏆",
    ),
    AchievementEnum.WEEK_STREAK.value: AchievementDetail(
        title="Consistent Learner",
        description="Maintained a 7-day learning streak",
        icon="🔥",
    ),
    AchievementEnum.FIVE_HOURS.value: AchievementDetail(
        title="Time Invested",
        description="Spent 5 hours learning",
        icon="⏰",
    ),
}

FALLBACK_ACHIEVEMENT = AchievementDetail(title="Achievement", description="", icon="⭐")


def get_achievement_details(achievement_id: str) -> AchievementDetail:
    return ACHIEVEMENT_CATALOG.get(achievement_id, FALLBACK_ACHIEVEMENT)


def list_achievements() -> List[AchievementRead]:
    return [
        AchievementRead(id=achievement_id, **detail.model_dump())
        for achievement_id, detail in ACHIEVEMENT_CATALOG.items()
    ]
