from app.models.absence import Absence, AbsenceStatus  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.period import Period, PeriodType  # noqa: F401
from app.models.proxy_assignment import ProxyAssignment  # noqa: F401
from app.models.schedule_slot import ScheduleSlot, Weekday  # noqa: F401
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
