from __future__ import annotations

from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field


class Segment(BaseModel):
    """
    One tile of the mosaic.

    Missing `audioUrl` / `imageUrl` means the tile has not been released yet;
    `width` is always present so clients can draw a placeholder of the right size.
    """
    audioUrl: Optional[str] = None
    imageUrl: Optional[str] = None
    width: int = Field(ge=1)

    # "numbered" form (later schema revisions)
    trackNum: Optional[int] = None
    segmentNum: Optional[int] = None
    trackName: Optional[str] = None
    start: Optional[float] = None  # seconds into the track audio
    end: Optional[float] = None


class CompleteSegment(Segment):
    audioUrl: str
    imageUrl: str


class Track(BaseModel):
    segments: list[Segment] = Field(default_factory=list)
    height: int = Field(ge=1)
    name: Optional[str] = None


class CompleteTrack(Track):
    segments: list[CompleteSegment] = Field(default_factory=list)


class Link(BaseModel):
    url: str
    date: Optional[AwareDatetime] = None  # defaults to releaseEnd


class PartialLink(BaseModel):
    url: Optional[str] = None
    date: Optional[AwareDatetime] = None


class MetadataBase(BaseModel):
    # saved here to avoid calculating repeatedly
    segmentCount: int = Field(ge=1)

    # image size in pixels
    totalWidth: int = Field(ge=1)
    totalHeight: int = Field(ge=1)

    # release window; determines the rate at which new segments are released
    releaseStart: AwareDatetime
    releaseEnd: AwareDatetime


class CompleteMetadata(MetadataBase):
    """
    Stored record: every segment carries both URLs. Never sent to clients.
    """
    tracks: list[CompleteTrack]
    links: dict[str, Link] = Field(default_factory=dict)


class PartialMetadata(MetadataBase):
    """
    Client-facing projection of CompleteMetadata with unreleased URLs removed.
    """
    tracks: list[Track]
    links: dict[str, PartialLink] = Field(default_factory=dict)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
