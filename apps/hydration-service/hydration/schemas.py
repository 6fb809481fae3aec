from pydantic import BaseModel
from typing import Optional, List, Union, Any


# ── Decrypting boundary ──────────────────────────────────


class DecryptRequest(BaseModel):
    data: Union[str, List[str], None] = None


class DecryptResponse(BaseModel):
    success: bool
    decrypted: Union[str, List[Optional[str]]]


# ── Group data ───────────────────────────────────────────


class UserGroupOut(BaseModel):
    group: str


class LeafFailureOut(BaseModel):
    patient_id: str
    date: str
    index: int
    sensor_id: Any
    reason: str

    class Config:
        from_attributes = True


class GroupDataOut(BaseModel):
    group: str
    data: dict
    failures: List[LeafFailureOut] = []


class PatientSummaryOut(BaseModel):
    patient_id: str
    name: str
    nurse: str
    room: str
    dates: List[str]
    ounces: List[float]
    average_ounces: float
    today_ounces: float
    three_day_ounces: float
    seven_day_ounces: float
    days_over_60oz: int
    total_days: int
    hydration_status: str
    has_decryption_failures: bool

    class Config:
        from_attributes = True


class PatientListOut(BaseModel):
    group: str
    patients: List[PatientSummaryOut]
    dehydrated_count: int
    nurses: List[str]
    failures: List[LeafFailureOut] = []


class RosterPatientOut(BaseModel):
    id: str
    name: str
    room: str
    hydration_status: str


class NurseOut(BaseModel):
    name: str
    patient_count: int
    patients: List[RosterPatientOut]
