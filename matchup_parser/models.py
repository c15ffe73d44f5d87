from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

WeekSource = Literal["image", "manual", "unknown"]

# Winner value when both scores are exactly equal
TIE_WINNER = ""


class MatchupRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    homeTeam: str
    homeScore: float
    awayTeam: str
    awayScore: float
    winner: str = TIE_WINNER
    diff: float = 0.0


class RawMatchup(BaseModel):
    """One record as the model returned it; nothing is trusted yet."""
    model_config = ConfigDict(extra="allow")

    homeTeam: Any = None
    homeScore: Any = None
    awayTeam: Any = None
    awayScore: Any = None


class ExtractionPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    matchups: List[Any]
    week: Any = None
    weekSource: Any = None


class WeekSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    week: Optional[int] = None
    matchups: List[MatchupRecord] = Field(default_factory=list)
    savedAt: str
    meta: Dict[str, Any] = Field(default_factory=dict)


class HistorySummary(BaseModel):
    id: str
    week: Optional[int] = None
    label: str
    savedAt: str
    previousId: Optional[str] = None


class HistoryEntry(WeekSnapshot):
    id: str
    label: str
    previousId: Optional[str] = None

    def summary(self) -> HistorySummary:
        return HistorySummary(id=self.id, week=self.week, label=self.label,
                              savedAt=self.savedAt, previousId=self.previousId)


class ParseRequest(BaseModel):
    imageDataUrl: Optional[str] = None
    week: Optional[Any] = None
    filename: Optional[str] = None
    previousId: Optional[str] = None
