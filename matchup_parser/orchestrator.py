from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .errors import ErrorKind, Result, StoreUnavailable
from .extractor import extract_json
from .history import HistoryStore, make_entry
from .image import check_image_bytes, decode_data_url, load_image
from .logging_config import LoggingConfig
from .models import TIE_WINNER, WeekSnapshot
from .normalizer import REJECT, normalize_matchups
from .validators import parse_positive_int
from .vision import VisionClient
from .week import resolve_week

logger = LoggingConfig.get_logger(__name__)


@dataclass
class ImageSubmission:
    data_url: Optional[str] = None
    data: Optional[bytes] = None
    mime: Optional[str] = None
    filename: Optional[str] = None
    week: Any = None
    previous_id: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchupOrchestrator:
    """image -> vision model -> extract -> normalize -> resolve week -> history"""

    def __init__(self, vision: VisionClient, store: Optional[HistoryStore] = None,
                 policy: str = REJECT, clock: Callable[[], datetime] = _utcnow):
        self.vision = vision
        self.store = store
        self.policy = policy
        self.clock = clock

    def _read_image(self, sub: ImageSubmission) -> Result:
        if sub.data is not None:
            return check_image_bytes(sub.data, sub.mime)
        return decode_data_url(sub.data_url)

    def _call_model(self, data: bytes, mime: str) -> Result:
        try:
            return self.vision.extract_text(data, mime)
        except Exception as e:
            logger.exception("vision client raised")
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, f"Vision model call failed: {e}")

    def parse(self, sub: ImageSubmission) -> Result:
        image = self._read_image(sub)
        if not image.ok:
            return self._fail(image)
        data, mime = image.value

        described = load_image(data)
        if not described.ok:
            return self._fail(described)

        hint = sub.week
        if isinstance(hint, str):
            hint = hint.strip() or None
        if hint is not None and parse_positive_int(hint) is None:
            return self._fail(Result.failure(ErrorKind.INVALID_INPUT, "week must be a positive integer"))

        called = self._call_model(data, mime)
        if not called.ok:
            return self._fail(called)
        raw_text = called.value

        extracted = extract_json(raw_text)
        if not extracted.ok:
            return self._fail(extracted)

        normalized = normalize_matchups(extracted.value, self.policy)
        if not normalized.ok:
            err = normalized.error
            return self._fail(Result.failure(err.kind, err.message, raw=raw_text))
        matchups, skipped = normalized.value

        resolved = resolve_week(sub.filename, extracted.value, hint)
        snapshot = WeekSnapshot(
            week=resolved.week,
            matchups=matchups,
            savedAt=self.clock().isoformat(),
            meta={
                "weekSource": resolved.source,
                "weekFrom": resolved.origin,
                "tieWinner": TIE_WINNER,
                "skipped": skipped,
                "model": getattr(self.vision, "model", None),
                "filename": sub.filename,
                **described.value,
            },
        )
        logger.info("parsed %d matchups week=%s source=%s", len(matchups), resolved.week, resolved.source)

        body = {"week": snapshot.week, "matchups": [m.model_dump() for m in matchups],
                "meta": {**snapshot.meta, "savedAt": snapshot.savedAt}, "saved": None}
        if snapshot.week is not None and self.store is not None:
            try:
                entry = self.store.append(make_entry(snapshot, sub.previous_id))
                body["saved"] = {"id": entry.id, "label": entry.label}
            except StoreUnavailable as e:
                # persistence is best effort; the parse result still goes back
                logger.error("history write failed: %s", e)
                body["meta"]["persistError"] = str(e)
        return Result.success(body)

    def _fail(self, res: Result) -> Result:
        logger.warning("parse failed: %s: %s", res.error.kind.value, res.error.message)
        return res
