from __future__ import annotations

"""
Central enum definitions used across AKFlix.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (stored in the database and
  sent to clients).
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Accounts
# ──────────────────────────────────────────────────────────────
class UserRole(str, PyEnum):
    """Exactly one role per principal."""
    USER = "user"
    ADMIN = "admin"


class RecommendationSetting(str, PyEnum):
    ALL = "all"
    SIMILAR = "similar"
    PERSONALIZED = "personalized"


# ──────────────────────────────────────────────────────────────
# Catalog
# ──────────────────────────────────────────────────────────────
class MovieType(str, PyEnum):
    MOVIE = "movie"
    TV_SHOW = "tv-show"


# ──────────────────────────────────────────────────────────────
# Token verification
# ──────────────────────────────────────────────────────────────
class TokenRejection(str, PyEnum):
    """Closed set of reasons a signed token can be refused.

    Only ever logged; clients see one uniform message regardless of reason.
    """
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


__all__ = [
    "UserRole",
    "RecommendationSetting",
    "MovieType",
    "TokenRejection",
]
