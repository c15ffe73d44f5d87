from dataclasses import dataclass
from typing import Any, Optional

from .models import WeekSource
from .validators import parse_positive_int, week_from_filename


@dataclass(frozen=True)
class ResolvedWeek:
    week: Optional[int]
    source: WeekSource
    origin: Optional[str] = None  # "filename" | "image" | "hint"


UNKNOWN = ResolvedWeek(None, "unknown")


def image_week(extracted: Any) -> Optional[int]:
    # A bare "week" field is ignored unless the model marked it as read off the image
    if not isinstance(extracted, dict):
        return None
    if str(extracted.get("weekSource") or "").strip().lower() != "image":
        return None
    return parse_positive_int(extracted.get("week"))


def resolve_week(filename: Optional[str] = None, extracted: Any = None, hint: Any = None) -> ResolvedWeek:
    """Filename first, then image-provenance week, then the caller's hint.

    A filename is something the user chose, so it is reported as "manual".
    """
    week = week_from_filename(filename)
    if week is not None:
        return ResolvedWeek(week, "manual", "filename")

    week = image_week(extracted)
    if week is not None:
        return ResolvedWeek(week, "image", "image")

    week = parse_positive_int(hint)
    if week is not None:
        return ResolvedWeek(week, "manual", "hint")

    return UNKNOWN
