from .models import TIE_WINNER


def compute_winner(home_team, home_score, away_team, away_score):
    # Strictly higher score wins; exact tie gets the sentinel
    if home_score > away_score: return home_team
    if away_score > home_score: return away_team
    return TIE_WINNER


def compute_diff(home_score, away_score):
    return round(abs(home_score - away_score), 2)
