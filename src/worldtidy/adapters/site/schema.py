"""Pydantic models for the MediaWiki Action API responses we read."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MediaWikiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GeneralInfo(MediaWikiBaseModel):
    generator: str | None = None
    phpversion: str | None = None
    dbtype: str | None = None
    dbversion: str | None = None
    lang: str | None = None


class NamespaceInfo(MediaWikiBaseModel):
    id: int
    defaultcontentmodel: str | None = None


class StatisticsInfo(MediaWikiBaseModel):
    pages: int | None = None
    articles: int | None = None
    edits: int | None = None
    images: int | None = None
    users: int | None = None
    activeusers: int | None = None
    admins: int | None = None


class SiteInfoQuery(MediaWikiBaseModel):
    general: GeneralInfo = Field(default_factory=GeneralInfo)
    namespaces: dict[str, NamespaceInfo] = Field(default_factory=dict)
    statistics: StatisticsInfo = Field(default_factory=StatisticsInfo)


class SiteInfoResponse(MediaWikiBaseModel):
    query: SiteInfoQuery


class LogEvent(MediaWikiBaseModel):
    timestamp: str | None = None
    title: str | None = None


class LogEventsQuery(MediaWikiBaseModel):
    logevents: list[LogEvent] = Field(default_factory=list)


class LogEventsResponse(MediaWikiBaseModel):
    query: LogEventsQuery


class AllPagesQuery(MediaWikiBaseModel):
    allpages: list[dict[str, object]]


class AllPagesContinue(MediaWikiBaseModel):
    apcontinue: str | None = None


class AllPagesResponse(MediaWikiBaseModel):
    query: AllPagesQuery
    continue_: AllPagesContinue | None = Field(default=None, alias="continue")
    warnings: dict[str, object] | None = None


class ExtUrlUsage(MediaWikiBaseModel):
    url: str


class ExtUrlUsageQuery(MediaWikiBaseModel):
    exturlusage: list[ExtUrlUsage]


class ExtUrlUsageContinue(MediaWikiBaseModel):
    eucontinue: str | None = None


class ExtUrlUsageResponse(MediaWikiBaseModel):
    query: ExtUrlUsageQuery
    continue_: ExtUrlUsageContinue | None = Field(default=None, alias="continue")
