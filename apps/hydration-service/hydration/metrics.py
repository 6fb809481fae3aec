"""Hydration summaries derived from a decrypted measurement tree."""

from dataclasses import dataclass, field
from datetime import datetime

DEHYDRATED_BELOW_OZ = 40
MILD_DEHYDRATION_BELOW_OZ = 120
DAILY_TARGET_OZ = 60

UNASSIGNED = "Unassigned"

# Date layouts seen from upstream besides ISO 8601.
_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%d-%m-%Y")

# Metadata keys the upstream API mixes into nurse/room mappings.
_META_KEYS = frozenset({"status", "group"})


@dataclass
class PatientSummary:
    patient_id: str
    name: str
    nurse: str
    room: str
    dates: list[str] = field(default_factory=list)  # newest first
    ounces: list[float] = field(default_factory=list)
    average_ounces: float = 0.0
    today_ounces: float = 0.0
    three_day_ounces: float = 0.0
    seven_day_ounces: float = 0.0
    days_over_60oz: int = 0
    total_days: int = 0
    hydration_status: str = "dehydrated"
    has_decryption_failures: bool = False


def hydration_status(three_day_ounces: float) -> str:
    if three_day_ounces < DEHYDRATED_BELOW_OZ:
        return "dehydrated"
    if three_day_ounces < MILD_DEHYDRATION_BELOW_OZ:
        return "mild dehydration"
    return "hydrated"


def daily_amounts(tree: dict, failures=()) -> dict[str, list[tuple[str, float]]]:
    """First reading per date for each patient.

    Readings listed in ``failures`` did not decrypt; their dates are skipped
    rather than counted as zero intake.
    """
    failed = {(f.patient_id, f.date, f.index) for f in failures}
    out: dict[str, list[tuple[str, float]]] = {}
    for patient_id, dates in tree.items():
        out[patient_id] = []
        for date, readings in dates.items():
            if not readings or (patient_id, date, 0) in failed:
                continue
            out[patient_id].append((date, float(readings[0][1])))
    return out


def _date_key(text) -> tuple:
    if isinstance(text, str):
        try:
            return (1, datetime.fromisoformat(text).replace(tzinfo=None), text)
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return (1, datetime.strptime(text, fmt), text)
            except ValueError:
                continue
    return (0, datetime.min, str(text))


def _first_assignment(value) -> str:
    if isinstance(value, list):
        return value[0] if value and value[0] else UNASSIGNED
    if isinstance(value, str) and value:
        return value
    return UNASSIGNED


def summarize_patients(
    tree: dict,
    names: dict,
    nurses: dict,
    rooms: dict,
    failures=(),
) -> list[PatientSummary]:
    """Per-patient totals, least hydrated (by seven-day total) first.

    Dates are ordered newest first by calendar value; keys that do not parse
    as a date sort after every dated key.
    """
    failed_patients = {f.patient_id for f in failures}
    summaries: list[PatientSummary] = []

    for patient_id, days in daily_amounts(tree, failures).items():
        days.sort(key=lambda d: _date_key(d[0]), reverse=True)
        dates = [d for d, _ in days]
        ounces = [oz for _, oz in days]
        three_day = sum(ounces[:3])
        summaries.append(
            PatientSummary(
                patient_id=patient_id,
                name=names.get(patient_id) or patient_id,
                nurse=_first_assignment(nurses.get(patient_id)),
                room=_first_assignment(rooms.get(patient_id)),
                dates=dates,
                ounces=ounces,
                average_ounces=sum(ounces) / len(ounces) if ounces else 0.0,
                today_ounces=ounces[0] if ounces else 0.0,
                three_day_ounces=three_day,
                seven_day_ounces=sum(ounces[:7]),
                days_over_60oz=sum(1 for oz in ounces if oz >= DAILY_TARGET_OZ),
                total_days=len(dates),
                hydration_status=hydration_status(three_day),
                has_decryption_failures=patient_id in failed_patients,
            )
        )

    summaries.sort(key=lambda s: s.seven_day_ounces)
    return summaries


def count_dehydrated(summaries: list[PatientSummary]) -> int:
    return sum(1 for s in summaries if s.hydration_status == "dehydrated")


def all_nurses(nurses: dict) -> list[str]:
    unique: set[str] = set()
    for patient_id, value in nurses.items():
        if patient_id in _META_KEYS:
            continue
        if isinstance(value, list):
            unique.update(n for n in value if n)
        elif isinstance(value, str) and value:
            unique.add(value)
    return sorted(unique)


def nurse_rosters(summaries: list[PatientSummary]) -> dict[str, list[PatientSummary]]:
    rosters: dict[str, list[PatientSummary]] = {}
    for s in summaries:
        rosters.setdefault(s.nurse, []).append(s)
    return rosters
