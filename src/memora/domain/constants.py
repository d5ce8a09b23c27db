"""Centralized constants for the Memora scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ratings ----------
MIN_RATING = 0
MAX_RATING = 5
PASSING_RATING = 3  # >= counts as a successful recall
ACCEPTABLE_RATING = 4  # >= ends a same-session re-review
FAILED_PRIORITY_MAX_RATING = 2
MARGINAL_RATING = 3

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FIRST_SUCCESS_INTERVAL = 1
SECOND_SUCCESS_INTERVAL = 6
FAILED_INTERVAL = 1

# ---------- Statistics ----------
UPCOMING_WINDOW_DAYS = 30

# ---------- Storage ----------
DEFAULT_CARDS_FILE = "cards.json"
DEFAULT_INTERESTS_FILE = "interests.json"
LOG_FILE_NAME = "memora.log"
