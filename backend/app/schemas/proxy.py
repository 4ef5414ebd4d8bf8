from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.absence import AbsenceStatus


class DaySlotOut(BaseModel):
    date: date
    day_slot: int
    day_name: str


class AvailableTeacherOut(BaseModel):
    teacher_id: str
    name: str
    employee_code: str
    regular_periods: int
    proxy_count: int
    current_load: int
    is_overloaded: bool = False

    model_config = {"from_attributes": True}


class AvailableTeachersOut(BaseModel):
    date: date
    day_slot: int
    period_id: str
    teachers: list[AvailableTeacherOut]


class ScheduleEntryOut(BaseModel):
    slot_id: str
    period_id: str
    period_no: int
    start_time: str
    end_time: str
    class_id: str
    class_name: str
    subject_id: str
    subject_name: str
    subject_code: str

    model_config = {"from_attributes": True}


class TeacherSummaryOut(BaseModel):
    id: str
    name: str
    employee_code: str

    model_config = {"from_attributes": True}


class AbsenceOut(BaseModel):
    id: str
    teacher_id: str
    absence_date: date
    status: AbsenceStatus
    reason: str | None = None
    marked_by: str

    model_config = {"from_attributes": True}


class ProxyAssignmentChoice(BaseModel):
    period_id: str = Field(min_length=1, max_length=36)
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    substitute_teacher_id: str = Field(min_length=1, max_length=36)
    remarks: str | None = Field(default=None, max_length=1000)


class BulkAssignmentCreate(BaseModel):
    date: date
    absent_teacher_id: str = Field(min_length=1, max_length=36)
    status: AbsenceStatus
    reason: str | None = Field(default=None, max_length=1000)
    assignments: list[ProxyAssignmentChoice] = Field(default_factory=list, max_length=50)
    created_by: str | None = Field(default=None, max_length=100)


class ProxyAssignmentOut(BaseModel):
    id: str
    assignment_date: date
    absent_teacher_id: str
    absent_teacher_name: str | None = None
    substitute_teacher_id: str
    substitute_teacher_name: str | None = None
    period_id: str
    period_no: int
    class_id: str
    class_name: str
    subject_id: str
    subject_name: str
    status: AbsenceStatus
    remarks: str | None = None
    created_by: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class BulkAssignmentOut(BaseModel):
    message: str
    absence: AbsenceOut
    proxies: list[ProxyAssignmentOut]


class TeacherDayScheduleOut(BaseModel):
    teacher: TeacherSummaryOut
    date: date
    day_slot: int
    day_name: str
    absence: AbsenceOut | None = None
    schedule: list[ScheduleEntryOut]
    existing_proxies: list[ProxyAssignmentOut]


class SuggestionOut(BaseModel):
    period_id: str
    period_no: int
    class_id: str
    class_name: str
    subject_id: str
    subject_name: str
    substitute: AvailableTeacherOut | None = None
    candidate_count: int


class SuggestionsOut(BaseModel):
    date: date
    absent_teacher_id: str
    suggestions: list[SuggestionOut]


class TeacherLoadOut(BaseModel):
    teacher_id: str
    start_date: date | None = None
    end_date: date | None = None
    proxy_count: int
    proxies: list[ProxyAssignmentOut]


class DeleteAssignmentOut(BaseModel):
    message: str
    id: str
