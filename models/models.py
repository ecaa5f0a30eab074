from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Shlok(BaseModel):
    # chapter and verse stay text; integers only at serialization boundaries
    chapter: str
    verse: str
    sanskrit: str
    transliteration: str
    english_meaning: str
    application: str = ""

    @field_validator("chapter", "verse", mode="before")
    @classmethod
    def canonical_number(cls, value: Any) -> str:
        return str(value).strip()

    @property
    def chapter_number(self) -> int:
        return int(self.chapter)

    @property
    def verse_number(self) -> int:
        return int(self.verse)

    def get_id(self):
        return f"{self.chapter}.{self.verse}"

    def to_mongo(self) -> dict:
        doc = self.model_dump()
        doc["chapter"] = self.chapter_number
        doc["verse"] = self.verse_number
        return doc


class DailySelection(BaseModel):
    date_string: str
    date_hash: int
    index: int
    corpus_size: int


# Response models
class ShlokResponse(BaseModel):
    success: bool = True
    shlok: Shlok


class SelectionResponse(BaseModel):
    success: bool = True
    selection: DailySelection


class HealthResponse(BaseModel):
    status: str
    message: str
    version: str
    timestamp: datetime


# Notification models
class NotificationPreferences(BaseModel):
    notificationsEnabled: bool = False
    notificationTime: Optional[str] = None
    fcmToken: Optional[str] = None
    lastUpdated: Optional[Any] = None


class UserRecord(BaseModel):
    id: str
    preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )

    @classmethod
    def from_mongo(cls, data: dict) -> "UserRecord":
        return cls(
            id=str(data.get("_id")),
            preferences=NotificationPreferences(**(data.get("preferences") or {})),
        )


class NotificationMessage(BaseModel):
    title: str
    body: str
    data: dict[str, str]
    token: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def to_mongo(self) -> dict:
        return self.model_dump()


class DispatchResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    total_processed: int = 0
    total_sent: int = 0
    errors: Optional[list[str]] = None
