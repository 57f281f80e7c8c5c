"""Pydantic models describing Wikibase Action API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WikibaseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DataValuePayload(WikibaseBaseModel):
    type: str
    value: Any


class SnakPayload(WikibaseBaseModel):
    snaktype: str = "value"
    property: str
    datavalue: DataValuePayload | None = None
    datatype: str | None = None


class ReferencePayload(WikibaseBaseModel):
    hash: str | None = None
    snaks: dict[str, list[SnakPayload]] = Field(default_factory=dict)
    snaks_order: list[str] = Field(default_factory=list, alias="snaks-order")


class StatementPayload(WikibaseBaseModel):
    id: str
    mainsnak: SnakPayload
    rank: str = "normal"
    qualifiers: dict[str, list[SnakPayload]] = Field(default_factory=dict)
    references: list[ReferencePayload] = Field(default_factory=list)


class TermPayload(WikibaseBaseModel):
    language: str
    value: str


class EntityPayload(WikibaseBaseModel):
    id: str
    type: str | None = None
    missing: str | None = None
    labels: dict[str, TermPayload] = Field(default_factory=dict)
    descriptions: dict[str, TermPayload] = Field(default_factory=dict)
    aliases: dict[str, list[TermPayload]] = Field(default_factory=dict)
    claims: dict[str, list[StatementPayload]] = Field(default_factory=dict)

    @property
    def is_missing(self) -> bool:
        return self.missing is not None


class EntitiesResponse(WikibaseBaseModel):
    entities: dict[str, EntityPayload]


class ApiErrorPayload(WikibaseBaseModel):
    code: str
    info: str = ""


class ErrorResponse(WikibaseBaseModel):
    error: ApiErrorPayload


class TokensPayload(WikibaseBaseModel):
    csrftoken: str | None = None
    logintoken: str | None = None


class TokensQuery(WikibaseBaseModel):
    tokens: TokensPayload


class TokensResponse(WikibaseBaseModel):
    query: TokensQuery


class LoginResult(WikibaseBaseModel):
    result: str
    reason: str | None = None
    lgusername: str | None = None


class LoginResponse(WikibaseBaseModel):
    login: LoginResult


class ClaimResponse(WikibaseBaseModel):
    claim: StatementPayload | None = None
    success: int | None = None
