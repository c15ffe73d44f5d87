"""Fantasy football matchup screenshot parser."""

__version__ = "0.1.0"
