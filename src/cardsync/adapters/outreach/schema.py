"""Pydantic models for CRM webhooks and API resources."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OutreachBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ResourceLinks(OutreachBaseModel):
    self_url: str | None = Field(default=None, alias="self")


class WebhookMeta(OutreachBaseModel):
    event_name: str = Field(alias="eventName")
    delivered_at: datetime = Field(alias="deliveredAt")


class WebhookResource(OutreachBaseModel):
    type: str
    id: int | str
    attributes: dict[str, Any] = Field(default_factory=dict)


class WebhookPayload(OutreachBaseModel):
    data: WebhookResource
    meta: WebhookMeta

    @property
    def action(self) -> str:
        """Event action without the resource prefix, e.g. ``created``."""

        return self.meta.event_name.rpartition(".")[2]


class SequenceAttributes(OutreachBaseModel):
    name: str | None = None
    share_type: str | None = Field(default=None, alias="shareType")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @property
    def is_public(self) -> bool:
        return self.share_type in (None, "shared")

    def changed_at(self, *, created: bool, delivered_at: datetime) -> datetime:
        """When the sequence changed: creation time for new sequences, else the last update.

        An ``updatedAt`` equal to ``createdAt`` carries no update, so the delivery
        time stands in for it.
        """

        if created and self.created_at is not None:
            return self.created_at
        if self.updated_at is not None and self.updated_at != self.created_at:
            return self.updated_at
        return delivered_at


class SequenceResource(OutreachBaseModel):
    id: int | str | None = None
    attributes: SequenceAttributes = Field(default_factory=SequenceAttributes)


class SequenceDocument(OutreachBaseModel):
    data: SequenceResource = Field(default_factory=SequenceResource)


class ProspectAttributes(OutreachBaseModel):
    emails: list[str] = Field(default_factory=list)
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    title: str | None = None
    address_city: str | None = Field(default=None, alias="addressCity")
    address_country: str | None = Field(default=None, alias="addressCountry")
    nickname: str | None = None
    tags: list[str] = Field(default_factory=list)


class ProspectResource(OutreachBaseModel):
    id: int | str
    type: str = "prospect"
    attributes: ProspectAttributes = Field(default_factory=ProspectAttributes)
    links: ResourceLinks = Field(default_factory=ResourceLinks)


class ProspectDocument(OutreachBaseModel):
    data: ProspectResource


class ProspectCollection(OutreachBaseModel):
    data: list[ProspectResource] = Field(default_factory=list)


class ApiError(OutreachBaseModel):
    id: str | None = None
    detail: str | None = None


class ApiErrorDocument(OutreachBaseModel):
    errors: list[ApiError] = Field(default_factory=list)
