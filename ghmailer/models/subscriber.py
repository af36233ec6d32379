"""Subscriber and filter data models."""

from typing import List

from pydantic import BaseModel, ConfigDict, field_validator


class Filter(BaseModel):
    """
    Interest filter owned by a subscriber.

    Each dimension is a list of accepted values. An empty list accepts
    any value for that dimension.
    """

    model_config = ConfigDict(frozen=True)

    authors: List[str] = []
    branches: List[str] = []
    repos: List[str] = []

    @field_validator("authors", "branches", "repos", mode="before")
    @classmethod
    def _empty_when_null(cls, value):
        return [] if value is None else value


class Subscriber(BaseModel):
    """Notification recipient and the filters selecting their commits."""

    model_config = ConfigDict(frozen=True)

    email: str
    filters: List[Filter] = []

    @field_validator("filters", mode="before")
    @classmethod
    def _empty_when_null(cls, value):
        return [] if value is None else value
