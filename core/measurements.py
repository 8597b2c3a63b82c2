# core/measurements.py
import re
from enum import Enum
from typing import Dict, Optional, Tuple


class MeasurementColumn(str, Enum):
    weight = "weight"
    height = "height"
    neck = "neck"
    chest = "chest"
    waist = "waist"
    stomach = "stomach"
    shoulder_width = "shoulder_width"
    left_bicep = "left_bicep"
    right_bicep = "right_bicep"
    left_forearm = "left_forearm"
    right_forearm = "right_forearm"
    left_leg = "left_leg"
    right_leg = "right_leg"
    left_calf = "left_calf"
    right_calf = "right_calf"
    # strength maxes
    bench_max = "bench_max"
    overhead_press_max = "overhead_press_max"
    rows_max = "rows_max"
    squats_max = "squats_max"
    deadlift_max = "deadlift_max"


_C = MeasurementColumn

# Human names, written with single spaces. Lookups also accept the same name
# with underscores or with the spaces dropped ("left_bicep", "leftbicep").
_SYNONYMS: Dict[str, MeasurementColumn] = {
    "weight": _C.weight,
    "body weight": _C.weight,
    "height": _C.height,
    "neck": _C.neck,
    "chest": _C.chest,
    "waist": _C.waist,
    "stomach": _C.stomach,
    "belly": _C.stomach,
    "shoulder": _C.shoulder_width,
    "shoulders": _C.shoulder_width,
    "shoulder width": _C.shoulder_width,
    "left bicep": _C.left_bicep,
    "right bicep": _C.right_bicep,
    "left forearm": _C.left_forearm,
    "right forearm": _C.right_forearm,
    "left leg": _C.left_leg,
    "right leg": _C.right_leg,
    "left calf": _C.left_calf,
    "right calf": _C.right_calf,
    "bench": _C.bench_max,
    "bench press": _C.bench_max,
    "bench max": _C.bench_max,
    "overhead press": _C.overhead_press_max,
    "overhead press max": _C.overhead_press_max,
    "ohp": _C.overhead_press_max,
    "shoulder press": _C.overhead_press_max,
    "row": _C.rows_max,
    "rows": _C.rows_max,
    "barbell row": _C.rows_max,
    "rows max": _C.rows_max,
    "squat": _C.squats_max,
    "squats": _C.squats_max,
    "squat max": _C.squats_max,
    "squats max": _C.squats_max,
    "deadlift": _C.deadlift_max,
    "deadlifts": _C.deadlift_max,
    "deadlift max": _C.deadlift_max,
}
# column names themselves resolve too ("shoulder_width", "bench_max")
for _col in MeasurementColumn:
    _SYNONYMS.setdefault(_col.value.replace("_", " "), _col)

_COMPACT: Dict[str, MeasurementColumn] = {
    k.replace(" ", ""): v for k, v in _SYNONYMS.items()
}

_FILLER = re.compile(r"^(?:my|the)\s+|\s+(?:measurement|measurements)$")

# longest first so "left bicep" wins over "bicep"-less partials and "bench press" over "bench"
_SCAN_ORDER = sorted(_SYNONYMS, key=len, reverse=True)
_SCAN_PATTERNS = [
    (name, re.compile(r"\b" + r"[\s_]?".join(map(re.escape, name.split(" "))) + r"\b"))
    for name in _SCAN_ORDER
]


def _canonical(name: str) -> str:
    text = re.sub(r"[\s_\-]+", " ", name.strip().lower())
    prev = None
    while prev != text:
        prev, text = text, _FILLER.sub("", text).strip()
    return text


def resolve_measurement(name: object) -> Optional[MeasurementColumn]:
    """
    Closed lookup from a human measurement name to its column; unknown names are None.
    """
    if not isinstance(name, str) or not name.strip():
        return None
    key = _canonical(name)
    return _SYNONYMS.get(key) or _COMPACT.get(key.replace(" ", ""))


def find_measurement(text: str) -> Optional[Tuple[str, MeasurementColumn]]:
    """
    First known measurement mentioned in free text, preferring the longest name.
    Returns (name as written in the table, column).
    """
    lower = text.lower()
    for name, pattern in _SCAN_PATTERNS:
        if pattern.search(lower):
            return name, _SYNONYMS[name]
    return None


def known_names() -> str:
    return (
        "weight, height, chest, waist, neck, stomach, shoulder, left/right bicep, "
        "left/right forearm, left/right leg, left/right calf, bench, overhead press, "
        "rows, squats, deadlift"
    )
