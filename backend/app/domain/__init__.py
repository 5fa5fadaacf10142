"""Domain models representing normalized market candidates."""

from .models import Candidate, Tag

__all__ = [
    "Candidate",
    "Tag",
]
