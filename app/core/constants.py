from enum import Enum


PROGRESS_COLLECTION_KEY = "courseProgress"

SECONDS_PER_DAY = 60 * 60 * 24

class AchievementEnum(str, Enum):
    FIRST_LESSON = "first_lesson"
    FIVE_LESSONS = "five_lessons"
    COURSE_COMPLETE = "course_complete"
    WEEK_STREAK = "week_streak"
    FIVE_HOURS = "five_hours"

# Achievement thresholds
FIVE_LESSONS_THRESHOLD = 5
WEEK_STREAK_THRESHOLD = 7
FIVE_HOURS_THRESHOLD_SECONDS = 5 * 60 * 60

class ProgressBackendEnum(str, Enum):
    JSON = "json"
    DATABASE = "database"
