"""Push event data models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Author(BaseModel):
    """Commit author as reported by the push webhook."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str
    username: str = ""


class Commit(BaseModel):
    """Single commit carried by a push event."""

    model_config = ConfigDict(frozen=True)

    id: str
    author: Author
    message: Optional[str] = None
    url: Optional[str] = None


class Repository(BaseModel):
    """Repository the push was made to."""

    model_config = ConfigDict(frozen=True)

    name: str


class PushEvent(BaseModel):
    """Push notification received from the webhook."""

    model_config = ConfigDict(frozen=True)

    ref: str  # e.g. 'refs/heads/master'
    repository: Repository
    commits: List[Commit] = []

    @field_validator("commits", mode="before")
    @classmethod
    def _empty_when_null(cls, value):
        return [] if value is None else value

    @property
    def repository_name(self) -> str:
        return self.repository.name
