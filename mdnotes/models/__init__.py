"""Domain models for the note store."""

from mdnotes.models.article import Article, utc_timestamp
from mdnotes.models.tag import Tag

__all__ = ["Article", "Tag", "utc_timestamp"]
