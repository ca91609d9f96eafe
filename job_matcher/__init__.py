"""Job Matcher: match scoring, skill gap analysis and Telegram job alerts."""

__version__ = "1.0.0"
