from pydantic import BaseModel, ConfigDict


class AchievementDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    icon: str


class AchievementRead(AchievementDetail):
    id: str
