import math
from typing import Iterable, Union

from .models import MatchupRecord


def format_score(n) -> str:
    # Scores are shown with two decimals, as on the league screenshots
    if isinstance(n, (int, float)) and not isinstance(n, bool) and math.isfinite(n):
        return f"{n:.2f}"
    try:
        num = float(n)
    except (TypeError, ValueError):
        return str(n)
    return f"{num:.2f}" if math.isfinite(num) else str(n)


def to_tsv(matchups: Iterable[Union[MatchupRecord, dict]]) -> str:
    """Team<TAB>Score lines, two per matchup, blank line between matchups."""
    blocks = []
    for m in matchups:
        if isinstance(m, MatchupRecord):
            m = m.model_dump()
        home = f"{m['homeTeam']}\t{format_score(m['homeScore'])}"
        away = f"{m['awayTeam']}\t{format_score(m['awayScore'])}"
        blocks.append(f"{home}\n{away}")
    return "\n\n".join(blocks)
