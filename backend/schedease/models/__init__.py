from schedease.models.activity_log import ActivityLog  # noqa: F401
from schedease.models.course import Course, CourseKind  # noqa: F401
from schedease.models.enrollment import Enrollment  # noqa: F401
from schedease.models.instructor import Instructor  # noqa: F401
from schedease.models.room import Room, RoomKind  # noqa: F401
from schedease.models.schedule import WEEKLY_OCCURRENCE, Schedule, ScheduleStatus  # noqa: F401
from schedease.models.schedule_request import (  # noqa: F401
    RequestPurpose,
    RequestStatus,
    RequestType,
    ScheduleRequest,
)
from schedease.models.student import Student  # noqa: F401
