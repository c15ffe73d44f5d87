from typing import Any, List

from pydantic import ValidationError

from .errors import ErrorKind, Result
from .logging_config import LoggingConfig
from .models import ExtractionPayload, MatchupRecord, RawMatchup
from .validators import clean_team_name, parse_score_safe
from .winner import compute_diff, compute_winner

logger = LoggingConfig.get_logger(__name__)

REJECT = "reject"
SKIP = "skip"


def normalize_record(item: Any, index: int) -> Result:
    """Coerce one raw record. winner and diff are always recomputed."""
    if not isinstance(item, dict):
        return Result.failure(ErrorKind.SCHEMA_INVALID, f"Matchup {index} is not an object")
    raw = RawMatchup.model_validate(item)

    home_score = parse_score_safe(raw.homeScore)
    away_score = parse_score_safe(raw.awayScore)
    if home_score is None or away_score is None:
        bad = "homeScore" if home_score is None else "awayScore"
        value = raw.homeScore if home_score is None else raw.awayScore
        return Result.failure(ErrorKind.NON_NUMERIC_SCORE, f"Matchup {index}: {bad} is not a number ({value!r})")

    home_score, away_score = round(home_score, 2), round(away_score, 2)
    home_team = clean_team_name(raw.homeTeam)
    away_team = clean_team_name(raw.awayTeam)
    return Result.success(MatchupRecord(
        homeTeam=home_team,
        homeScore=home_score,
        awayTeam=away_team,
        awayScore=away_score,
        winner=compute_winner(home_team, home_score, away_team, away_score),
        diff=compute_diff(home_score, away_score),
    ))


def parse_payload(obj: Any) -> Result:
    if not isinstance(obj, dict):
        return Result.failure(ErrorKind.SCHEMA_INVALID, "Model output is not a JSON object")
    try:
        return Result.success(ExtractionPayload.model_validate(obj))
    except ValidationError:
        return Result.failure(ErrorKind.SCHEMA_INVALID, "Model output has no 'matchups' list")


def normalize_matchups(obj: Any, policy: str = REJECT) -> Result:
    """Validate the extracted object and return Result(value=(records, skipped)).

    Under the "reject" policy the first bad record fails the batch; under
    "skip" bad records are dropped and counted.
    """
    payload = parse_payload(obj)
    if not payload.ok:
        return payload

    records: List[MatchupRecord] = []
    skipped = 0
    for index, item in enumerate(payload.value.matchups):
        res = normalize_record(item, index)
        if res.ok:
            records.append(res.value)
            continue
        if policy == SKIP:
            logger.warning("skipping matchup: %s", res.error.message)
            skipped += 1
            continue
        return res

    return Result.success((records, skipped))
