"""Pydantic models for form-response webhooks."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_SCALAR_TYPES = frozenset({"text", "email", "number", "boolean", "url", "date"})


class TypeformBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AnswerField(TypeformBaseModel):
    id: str
    ref: str | None = None
    type: str | None = None


class Answer(TypeformBaseModel):
    type: str
    field: AnswerField
    text: str | None = None
    email: str | None = None
    number: float | None = None
    boolean: bool | None = None
    url: str | None = None
    date: str | None = None
    choice: dict[str, Any] | None = None
    choices: dict[str, Any] | None = None

    @property
    def key(self) -> str:
        return self.field.ref or self.field.id

    @property
    def value(self) -> Any:
        if self.type == "choice" and self.choice is not None:
            return self.choice.get("label") or self.choice.get("other")
        if self.type == "choices" and self.choices is not None:
            return self.choices.get("labels") or []
        if self.type in _SCALAR_TYPES:
            return getattr(self, self.type)
        return None


class FormDefinition(TypeformBaseModel):
    id: str
    title: str | None = None


class FormResponse(TypeformBaseModel):
    form_id: str
    token: str
    submitted_at: datetime
    landed_at: datetime | None = None
    definition: FormDefinition | None = None
    answers: list[Answer] = Field(default_factory=list)
    hidden: dict[str, Any] = Field(default_factory=dict)


class FormWebhook(TypeformBaseModel):
    event_id: str
    event_type: str
    form_response: FormResponse | None = None
