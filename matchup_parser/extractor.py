"""
Pull a JSON object out of free-form model output.

Attempts, first success wins:
  1. the interior of a ```json fenced block
  2. from the {"matchups" marker to the last closing brace
  3. from the first { to the last }
Each candidate gets trailing commas removed before json.loads.
"""
import json
import re
from typing import Iterator, Optional

from .errors import ErrorKind, Result
from .logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.S)
MARKER_RE = re.compile(r'\{\s*"matchups"\s*:')
TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def repair_json(text: str) -> str:
    return TRAILING_COMMA_RE.sub(r"\1", text)


def _candidates(text: str) -> Iterator[str]:
    for m in FENCE_RE.finditer(text):
        yield m.group(1)

    last_close = text.rfind("}")
    marker = MARKER_RE.search(text)
    if marker and last_close > marker.start():
        yield text[marker.start():last_close + 1]

    first_open = text.find("{")
    if first_open != -1 and last_close > first_open:
        yield text[first_open:last_close + 1]


def _try_parse(candidate: str) -> Optional[object]:
    candidate = candidate.strip()
    repaired = repair_json(candidate)
    # The unrepaired text goes first so a ",}" inside a string value survives
    for attempt in dict.fromkeys((candidate, repaired)):
        try:
            return json.loads(attempt)
        except ValueError:
            continue
    return None


def extract_json(text: Optional[str]) -> Result:
    """Return Result(value=<parsed JSON object>) or an ExtractionFailed error with the raw text."""
    raw = text or ""
    if not raw.strip():
        return Result.failure(ErrorKind.EXTRACTION_FAILED, "Model returned no text", raw=raw)

    for attempt, candidate in enumerate(_candidates(raw), start=1):
        parsed = _try_parse(candidate)
        if isinstance(parsed, dict):
            logger.debug("extracted JSON on attempt %d", attempt)
            return Result.success(parsed)

    return Result.failure(ErrorKind.EXTRACTION_FAILED, "No JSON returned", raw=raw)
