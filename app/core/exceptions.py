class ProgressError(Exception):
    """Base error raised by the progress store and engine."""

    status_code = 400
    code = "PROGRESS_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidProgressUpdate(ProgressError):
    """A mutation carried a value the store refuses, e.g. a negative time delta."""

    code = "INVALID_PROGRESS_UPDATE"


class DuplicateProgressError(ProgressError):
    """A progress record already exists for the (user, course) pair."""

    status_code = 409
    code = "DUPLICATE_PROGRESS"

    def __init__(self, user_id: str, course_id: str):
        self.user_id = user_id
        self.course_id = course_id
        super().__init__(f"Progress for user {user_id} in course {course_id} already exists")


class ProgressStoreError(ProgressError):
    """The backing store could not be written."""

    status_code = 503
    code = "PROGRESS_STORE_UNAVAILABLE"
