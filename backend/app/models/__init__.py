"""ORM models. Importing this package registers every table on Base.metadata."""

from app.models.note import Note
from app.models.section import Section
from app.models.user import User

__all__ = ["Note", "Section", "User"]
