# medtrack/models.py
import re
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def normalize_time(value: str) -> str:
    """Return a zero-padded HH:MM string, or raise ValueError."""
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"invalid time of day: {value!r} (expected HH:MM)")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def _new_id() -> str:
    return str(uuid.uuid4())


def _wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    # everything is local wall-clock time; an offset is dropped, not converted
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class DoseUnit(str, Enum):
    MG = "mg"
    ML = "ml"
    TABLETS = "tablets"
    DROPS = "drops"
    CAPSULES = "capsules"
    G = "g"
    UNITS = "units"


class FrequencyType(str, Enum):
    TIMES_PER_DAY = "times_per_day"
    EVERY_N_HOURS = "every_n_hours"
    SPECIFIC_TIMES = "specific_times"


class MedicationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class DoseStatus(str, Enum):
    PENDING = "pending"
    TAKEN = "taken"
    SKIPPED = "skipped"
    POSTPONED = "postponed"


class AlertType(str, Enum):
    MISSED_DOSE = "missed_dose"
    LOW_STOCK = "low_stock"
    PANIC = "panic"


class StockOperation(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Medication(CamelModel):
    id: str = Field(default_factory=_new_id)
    name: str
    generic_name: Optional[str] = None
    dose: float = Field(gt=0)
    dose_unit: DoseUnit = DoseUnit.TABLETS
    frequency_type: FrequencyType = FrequencyType.SPECIFIC_TIMES
    frequency_value: int = 1
    schedules: List[str] = Field(default_factory=list)  # e.g. ["08:00", "20:00"]
    instructions: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    prescribed_by: Optional[str] = None
    color: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    status: MedicationStatus = MedicationStatus.ACTIVE
    # inventory
    stock: int = Field(default=0, ge=0)
    stock_unit: Optional[DoseUnit] = None
    low_stock_threshold: int = Field(default=5, ge=0)
    last_stock_update: Optional[datetime] = None
    # caregiver alerting
    is_critical: bool = False
    critical_alert_delay: int = Field(default=60, ge=0)  # minutes
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("schedules")
    @classmethod
    def _sorted_unique_times(cls, value: List[str]) -> List[str]:
        return sorted({normalize_time(t) for t in value})

    @field_validator("created_at", "updated_at", "last_stock_update")
    @classmethod
    def _naive(cls, value):
        return _wall_clock(value)


class DoseRecord(CamelModel):
    id: str = Field(default_factory=_new_id)
    medication_id: str
    scheduled_time: str
    date: date
    status: DoseStatus = DoseStatus.PENDING
    actual_time: Optional[datetime] = None
    notes: Optional[str] = None
    # stock units the "taken" transition actually removed; given back on reversal
    stock_deducted: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("scheduled_time")
    @classmethod
    def _time(cls, value: str) -> str:
        return normalize_time(value)

    @field_validator("actual_time", "created_at")
    @classmethod
    def _naive(cls, value):
        return _wall_clock(value)

    @property
    def key(self):
        return (self.medication_id, self.date, self.scheduled_time)


class Recorded(CamelModel):
    kind: Literal["recorded"] = "recorded"
    record: DoseRecord


class ImplicitPending(CamelModel):
    """A scheduled occurrence nobody has acted on yet; never stored."""

    kind: Literal["implicit"] = "implicit"


DoseOutcome = Annotated[Union[Recorded, ImplicitPending], Field(discriminator="kind")]


class DoseForDay(CamelModel):
    medication: Medication
    scheduled_date: date
    time: str
    dose: float
    dose_unit: DoseUnit
    outcome: DoseOutcome = Field(default_factory=ImplicitPending)

    @computed_field
    @property
    def status(self) -> DoseStatus:
        if isinstance(self.outcome, Recorded):
            return self.outcome.record.status
        return DoseStatus.PENDING

    @property
    def record(self) -> Optional[DoseRecord]:
        if isinstance(self.outcome, Recorded):
            return self.outcome.record
        return None


class DaySummary(CamelModel):
    date: date
    total: int = 0
    taken: int = 0
    pending: int = 0
    skipped: int = 0
    postponed: int = 0
    rate: int = 0


class CompliancePoint(CamelModel):
    date: date
    rate: int


class MissedDose(CamelModel):
    medication_id: str
    medication_name: str
    scheduled_time: str
    minutes_late: int


class AlertEvent(CamelModel):
    type: AlertType
    medication_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class SideEffectNote(CamelModel):
    id: str = Field(default_factory=_new_id)
    medication_id: str
    date: date
    symptoms: str
    severity: Severity = Severity.MILD
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("created_at")
    @classmethod
    def _naive(cls, value):
        return _wall_clock(value)


def require_schedule_when_active(medication: Medication) -> Medication:
    if medication.status == MedicationStatus.ACTIVE and not medication.schedules:
        raise ValueError("an active medication needs at least one scheduled time")
    return medication


# request bodies


class MedicationCreate(Medication):
    @model_validator(mode="after")
    def _needs_schedule_when_active(self):
        return require_schedule_when_active(self)


class SideEffectCreate(CamelModel):
    symptoms: str = Field(min_length=1)
    severity: Severity = Severity.MILD
    on: Optional[date] = Field(default=None, alias="date")  # defaults to today
    notes: Optional[str] = None


class StockUpdate(CamelModel):
    quantity: int
    operation: StockOperation = StockOperation.SET


class DoseUpdate(CamelModel):
    status: DoseStatus
    on: Optional[date] = Field(default=None, alias="date")  # defaults to today
    notes: Optional[str] = None


class PanicRequest(CamelModel):
    message: str = "I need help with my medication"
    medication_id: Optional[str] = None
