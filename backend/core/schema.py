from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ImageResult(BaseModel):
    url: str
    title: str = ""
    width: int | None = None
    height: int | None = None
    thumbnail_url: str | None = None
    source_page_url: str | None = None
    query: str
    cached_at: datetime


class MenuPrices(BaseModel):
    student: str = ""
    staff: str = ""
    guest: str = ""
    pupil: str = ""


class MenuItem(BaseModel):
    category: str = ""
    name: str = ""
    tags: str = ""
    allergens: str = ""
    additives: str = ""
    prices: MenuPrices = Field(default_factory=MenuPrices)


class MenuItemWithImage(MenuItem):
    image: ImageResult | None = None


class MenuDay(BaseModel):
    date: str
    date_formatted: str
    weekday: str = ""
    is_today: bool = False
    is_tomorrow: bool = False
    items: list[MenuItem] = Field(default_factory=list)


class Card(BaseModel):
    """Task card projected onto a fixed field set."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    title: str = ""
    description: str = ""
    duedate: str | None = None
    labels: list[Any] = Field(default_factory=list)
    assigned_users: list[Any] = Field(default_factory=list, alias="assignedUsers")
    created_at: int | str | None = Field(default=None, alias="createdAt")
    last_modified: int | str | None = Field(default=None, alias="lastModified")
    archived: bool = False
    done: bool = False
    order: int = 0
    type: str = "plain"

    @field_validator("title", "description", "type", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return "plain" if info.field_name == "type" else ""
        return value

    @field_validator("labels", "assigned_users", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("archived", "done", mode="before")
    @classmethod
    def _truthy_flag(cls, value: Any) -> bool:
        # deck reports ``done`` as a completion timestamp on newer servers
        if isinstance(value, bool):
            return value
        return bool(value)

    @field_validator("order", mode="before")
    @classmethod
    def _order_or_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class Stack(BaseModel):
    id: int | str
    title: str = ""
    order: int = 0
    cards: list[Card] = Field(default_factory=list)

    @field_validator("order", mode="before")
    @classmethod
    def _order_or_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class Board(BaseModel):
    id: int | str
    title: str = "Untitled Board"
    color: str | None = None
    stacks: list[Stack] = Field(default_factory=list)
    total_cards: int = 0
    strategy: str = ""


class TaskSnapshot(BaseModel):
    boards: list[Board] = Field(default_factory=list)
    total_cards: int = 0
    fetched_at: datetime
    failures: list[dict[str, Any]] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
