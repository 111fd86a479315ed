from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint, func
from app.core.database import Base


class CourseProgressRecord(Base):
    __tablename__ = "course_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    course_id = Column(String(255), nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_course_progress_user_course"),
    )

    def __repr__(self):
        return f"<CourseProgressRecord(user_id={self.user_id!r}, course_id={self.course_id!r})>"
