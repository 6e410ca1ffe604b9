"""Pydantic models for chat webhooks and the lookups that enrich them."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, field_validator


class FlowdockBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ThreadPayload(FlowdockBaseModel):
    id: str
    title: str | None = None


class MessageEvent(FlowdockBaseModel):
    event: str
    id: int | str
    flow: str
    user: int | str
    content: str = ""
    created_at: datetime
    thread_id: str | None = None
    thread: ThreadPayload | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _stringify_content(cls, value: object) -> object:
        if isinstance(value, dict):
            return value.get("text") or value.get("title") or ""
        return "" if value is None else value

    @property
    def thread_key(self) -> str | None:
        if self.thread is not None:
            return self.thread.id
        return self.thread_id


class OrganizationPayload(FlowdockBaseModel):
    parameterized_name: str


class FlowPayload(FlowdockBaseModel):
    id: str
    parameterized_name: str
    organization: OrganizationPayload


class FlowdockUser(FlowdockBaseModel):
    id: int | str
    nick: str
    email: str | None = None
    name: str | None = None
