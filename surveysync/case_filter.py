"""Bulk case filter sent to the provider's respondents endpoint.

The provider accepts a large filter object where nearly every criterion is
optional. Each criterion here has a sentinel meaning "not set": ``None`` for
nullable objects and dates, ``""`` for comma separated lists, ``UNSET_INT``
for integer enums, and ``SENTINEL_DATE`` for the callback and last-call date
range bounds. The default filter selects every eligible case of a project.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
import json
from typing import Any, get_args


SENTINEL_DATE = datetime(1899, 12, 31)
UNSET_INT = -1


def _wire(name: str, default: Any) -> Any:
    return field(default=default, metadata={"wire": name})


@dataclass(frozen=True)
class CaseFilterQuery:
    filter_id: int = _wire("FilterId", 0)
    filter_title: str | None = _wire("FilterTitle", None)
    project_id: str = _wire("ProjectId", "")
    question_list: object | None = _wire("QuestionList", None)
    location: str = _wire("Location", "")
    dialing_mode: int = _wire("DialingMode", UNSET_INT)
    time_slot_mode: int = _wire("TimeSlotMode", UNSET_INT)
    time_slot_id: str = _wire("TimeSlotId", "")
    time_slot_operator: str = _wire("TimeSlotOperator", "")
    time_slot_hit_count: str = _wire("TimeSlotHitCount", "")
    last_dialing_mode: int = _wire("LastDialingMode", 0)
    respondent_case: int = _wire("RespondentCase", 7)
    respondent_state: int = _wire("RespondentState", 0)
    last_call_date_time: datetime | None = _wire("LastCallDateTime", None)
    call_back_date_time: datetime | None = _wire("CallBackDateTime", None)
    # Key spelling is the provider's.
    last_call_treated_separately: bool = _wire("IsLastCallDateTimeTreadtedSeperatly", False)
    callback_treated_separately: bool = _wire("IsCallbackDateTimeTreatedSeperatly", False)
    is_call_back: bool = _wire("IsCallBack", False)
    is_not_recoded: bool = _wire("IsNotRecoded", False)
    view_additional_columns: object | None = _wire("ViewAdditionalColumns", None)
    question_has_open_end: str = _wire("QuestionHasOpenEnd", "")
    is_not_in_closed_strata: bool = _wire("IsNotInClosedStrata", False)
    interviewer_ids: str = _wire("InterviewerIds", "")
    result_codes: str = _wire("ResultCodes", "")
    last_call_result_codes: str = _wire("LastCallResultCodes", "")
    languages: str = _wire("Languages", "")
    user_time_zone: int = _wire("UserTimeZone", 0)
    linked_to_a4s: int = _wire("LinkedToA4S", 1)
    is_missing_records: bool = _wire("IsMissingRecords", False)
    is_missing_records_pronto: bool = _wire("IsMissingRecordsPronto", False)
    exclude_records_in_interview: bool = _wire("ExcludeRecordsInInterview", False)
    sql_statement: object | None = _wire("SqlStatementWithOrWithoutEquation", None)
    equation: str = _wire("Equation", "")
    use_current_date_for_start_call_back: bool = _wire("UseCurrentDateForStartCallBack", False)
    call_back_from_date: datetime = _wire("CallBackDateTimeFromDate", SENTINEL_DATE)
    call_back_from_time: datetime = _wire("CallBackDateTimeFromTime", SENTINEL_DATE)
    use_current_date_for_end_call_back: bool = _wire("UseCurrentDateForEndCallBack", False)
    call_back_to_date: datetime = _wire("CallBackDateTimeToDate", SENTINEL_DATE)
    call_back_to_time: datetime = _wire("CallBackDateTimeToTime", SENTINEL_DATE)
    use_current_date_for_start_last_call: bool = _wire("UseCurrentDateForStartLastCall", False)
    last_call_start_date: datetime = _wire("LastCallDateTimeStartDate", SENTINEL_DATE)
    last_call_start_time: datetime = _wire("LastCallDateTimeStartTime", SENTINEL_DATE)
    use_current_date_for_end_last_call: bool = _wire("UseCurrentDateForEndLastCall", False)
    last_call_end_date: datetime = _wire("LastCallDateTimeEndDate", SENTINEL_DATE)
    last_call_end_time: datetime = _wire("LastCallDateTimeEndTime", SENTINEL_DATE)
    is_valid: bool = _wire("IsValid", False)
    summary: str | None = _wire("Summary", None)
    count: int = _wire("Count", 0)
    cycle_phone_number: int = _wire("CyclePhoneNumber", UNSET_INT)
    keyword_filter: tuple = _wire("KeywordFilter", ())
    selection: int = _wire("Selection", 0)
    state: int = _wire("State", 0)
    number_of_cases: int = _wire("NumberOfCases", 0)
    agent_id: int = _wire("AgentId", 0)
    is_anonymized: bool | None = _wire("IsAnonymized", None)
    max_records: int = _wire("MaxRecords", 0)
    case_filter_type: int = _wire("CaseFilterType", 0)
    last_modification_start_date: datetime | None = _wire("LastModificationDateTimeStartDate", None)
    last_modification_treated_separately: bool = _wire("IsLastModificationDateTimeTreatedSeperatly", False)
    completed_date_time: datetime | None = _wire("CompletedDateTime", None)
    completed_treated_separately: bool = _wire("IsCompletedDateTimeTreatedSeperatly", False)
    completed_start_date: datetime | None = _wire("CompletedDateTimeStartDate", None)
    completed_end_date: datetime | None = _wire("CompletedDateTimeEndDate", None)

    def __post_init__(self) -> None:
        if not isinstance(self.project_id, str) or not self.project_id.strip():
            raise ValueError("project_id is required")
        for item in fields(self):
            value = getattr(self, item.name)
            if not _matches(value, item.type):
                raise ValueError(f"{item.name} has invalid value {value!r}")
        for name in ("dialing_mode", "time_slot_mode", "cycle_phone_number"):
            if getattr(self, name) < UNSET_INT:
                raise ValueError(f"{name} must be {UNSET_INT} (unset) or a non-negative enum value")

    def to_payload(self) -> dict[str, Any]:
        case_filter = {item.metadata["wire"]: _wire_value(getattr(self, item.name)) for item in fields(self)}
        return {"CaseFilter": case_filter, "Variables": ""}

    def serialize(self) -> bytes:
        return json.dumps(self.to_payload(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _matches(value: Any, annotation: Any) -> bool:
    for option in get_args(annotation) or (annotation,):
        if option is type(None):
            if value is None:
                return True
        elif option is int:
            if isinstance(value, int) and not isinstance(value, bool):
                return True
        elif isinstance(value, option):
            return True
    return False


def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}"
    if isinstance(value, tuple):
        return list(value)
    return value


def build_filter(project_id: str) -> CaseFilterQuery:
    return CaseFilterQuery(project_id=project_id)
