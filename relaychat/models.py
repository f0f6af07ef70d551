# Pydantic models for the documents kept in MongoDB (via Motor).
# Field aliases are the stored / wire names; Python code uses snake_case.
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    # BSON dates only keep milliseconds; round up so the stamp never precedes now
    now = datetime.now(timezone.utc)
    extra = now.microsecond % 1000
    if extra:
        now += timedelta(microseconds=1000 - extra)
    return now


def as_utc(value):
    # Motor hands back naive datetimes unless the client is tz_aware
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: Optional[str] = Field(default=None, alias='_id')

    @field_validator('id', mode='before')
    @classmethod
    def id_to_str(cls, value):
        return str(value) if value is not None else None

    def to_document(self) -> Dict[str, Any]:
        """Fields as stored, without the store-assigned id."""
        return self.model_dump(by_alias=True, exclude={'id'})

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict sent over HTTP and the websocket."""
        return self.model_dump(by_alias=True, mode='json')


class Message(Document):
    sender: str
    content: str = ''
    file_url: Optional[str] = Field(default=None, alias='fileUrl')
    file_type: Optional[str] = Field(default=None, alias='fileType')
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator('timestamp', mode='before')
    @classmethod
    def timestamp_utc(cls, value):
        return as_utc(value)


class User(Document):
    username: str
    socket_id: Optional[str] = Field(default=None, alias='socketId')
    joined_at: datetime = Field(default_factory=utcnow, alias='joinedAt')

    @field_validator('joined_at', mode='before')
    @classmethod
    def joined_at_utc(cls, value):
        return as_utc(value)
