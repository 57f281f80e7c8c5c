"""Pydantic models for SPARQL 1.1 JSON results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SparqlBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Binding(SparqlBaseModel):
    type: str
    value: str
    datatype: str | None = None
    language: str | None = Field(default=None, alias="xml:lang")


class SparqlResults(SparqlBaseModel):
    bindings: list[dict[str, Binding]] = Field(default_factory=list)


class SparqlHead(SparqlBaseModel):
    vars: list[str] = Field(default_factory=list)


class SparqlResponse(SparqlBaseModel):
    head: SparqlHead = Field(default_factory=SparqlHead)
    results: SparqlResults
