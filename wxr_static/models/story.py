from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Download(BaseModel):
    src: str
    dest: str


class Quote(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    from_: str = Field(..., alias="from")
    content: str
    image: Optional[str] = None


class MapLocation(BaseModel):
    """Pin data of a ``map`` post, attached to the story it links to."""

    location: Optional[str] = None
    industries: list[str] = Field(default_factory=list)
    name: str = ""
    latitude: Optional[str] = None
    longitude: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Optional[str]):
        return (v or "").strip()


class SimplePage(BaseModel):
    """Front matter of a generation 1 ``.adoc`` page."""

    model_config = ConfigDict(extra="allow")

    layout: str = "simplepage"
    title: str = ""
    date: Optional[str] = None
    post_name: str = Field(..., min_length=1)

    @field_validator("post_name", mode="before")
    @classmethod
    def _strip_post_name(cls, v: Optional[str]):
        return (v or "").strip()

    def to_front_matter(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UserStory(BaseModel):
    """A generation 2 user story, serialized to ``<post_name>/index.yaml``."""

    model_config = ConfigDict(populate_by_name=True)

    map: Optional[MapLocation] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)
    title: str = ""
    date: Optional[str] = None
    post_name: str = Field(..., min_length=1)
    quotes: Optional[list[Quote]] = None
    image: Optional[str] = None
    tag_line: Optional[str] = None
    submitted_by: Optional[str] = None
    downloads: list[Download] = Field(default_factory=list, exclude=True)

    @field_validator("post_name", mode="before")
    @classmethod
    def _strip_post_name(cls, v: Optional[str]):
        return (v or "").strip()

    def to_front_matter(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
