"""Record store backed by the Wikibase Action API of the world instance."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from worldtidy.adapters.http_resilience import ResilienceConfig, ResilientClient
from worldtidy.config.world import WorldConfig
from worldtidy.domain.ports import RecordStore, RecordStoreError, TooManyRequestsError

from .schema import (
    ClaimResponse,
    EntitiesResponse,
    ErrorResponse,
    LoginResponse,
    TokensResponse,
)
from .translator import datavalue_for, record_from_entity, snaks_for, statement_for

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from types import TracebackType

    from worldtidy.domain.records import Claim, Record
    from worldtidy.domain.values import ClaimValue

log = getLogger(__name__)

THROTTLE_ERROR_CODES: Final[frozenset[str]] = frozenset({"ratelimited", "maxlag"})
_RECORD_PROPS: Final[str] = "labels|descriptions|aliases|claims"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class WikibaseAPIError(RecordStoreError):
    """Raised when the Action API returns an application-level error."""


@dataclass(slots=True)
class WikibaseClient:
    """Read and edit world records through ``api.php``.

    Use as an async context manager; writes log in lazily with the bot
    credentials from :class:`WorldConfig` and mark every edit as a bot edit
    with ``maxlag`` set.
    """

    config: WorldConfig = field(default_factory=WorldConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)
    _csrf_token: str | None = field(default=None, init=False, repr=False)
    _logged_in: bool = field(default=False, init=False)

    async def __aenter__(self) -> WikibaseClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def http(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    # Reads

    async def get_record(self, record_id: str) -> Record:
        payload = await self._call(
            "GET",
            {"action": "wbgetentities", "ids": record_id, "props": _RECORD_PROPS},
        )
        try:
            response = EntitiesResponse.model_validate(payload)
        except ValidationError as exc:
            raise WikibaseAPIError(f"Unexpected wbgetentities payload for {record_id}") from exc
        entity = response.entities.get(record_id)
        if entity is None or entity.is_missing:
            raise WikibaseAPIError(f"{record_id} does not exist", code="missing")
        return record_from_entity(entity)

    # Claim writes

    async def create_claim(
        self,
        record_id: str,
        property_id: str,
        value: ClaimValue,
        *,
        qualifiers: Mapping[str, Sequence[ClaimValue]] | None = None,
        references: Mapping[str, Sequence[ClaimValue]] | None = None,
        summary: str,
    ) -> str:
        guid = f"{record_id}${uuid.uuid4()}"
        statement = statement_for(
            guid, property_id, value, qualifiers=qualifiers, references=references
        )
        payload = await self._write(
            {"action": "wbsetclaim", "claim": json.dumps(statement)}, summary=summary
        )
        response = ClaimResponse.model_validate(payload)
        return response.claim.id if response.claim is not None else guid

    async def update_claim(self, claim: Claim, value: ClaimValue, *, summary: str) -> None:
        datavalue = datavalue_for(value)
        await self._write(
            {
                "action": "wbsetclaimvalue",
                "claim": claim.guid,
                "snaktype": "value",
                "value": json.dumps(datavalue["value"]),
            },
            summary=summary,
        )

    async def remove_claims(self, guids: Sequence[str], *, summary: str) -> None:
        if not guids:
            return
        await self._write({"action": "wbremoveclaims", "claim": "|".join(guids)}, summary=summary)

    async def set_reference(
        self,
        guid: str,
        reference: Mapping[str, Sequence[ClaimValue]],
        *,
        summary: str,
    ) -> None:
        await self._write(
            {
                "action": "wbsetreference",
                "statement": guid,
                "snaks": json.dumps(snaks_for(reference)),
            },
            summary=summary,
        )

    # Term writes

    async def set_label(self, record_id: str, language: str, value: str, *, summary: str) -> None:
        await self._write(
            {"action": "wbsetlabel", "id": record_id, "language": language, "value": value},
            summary=summary,
        )

    async def set_description(
        self, record_id: str, language: str, value: str, *, summary: str
    ) -> None:
        await self._write(
            {"action": "wbsetdescription", "id": record_id, "language": language, "value": value},
            summary=summary,
        )

    async def add_alias(self, record_id: str, language: str, alias: str, *, summary: str) -> None:
        await self._write(
            {"action": "wbsetaliases", "id": record_id, "language": language, "add": alias},
            summary=summary,
        )

    async def remove_alias(
        self, record_id: str, language: str, alias: str, *, summary: str
    ) -> None:
        await self._write(
            {"action": "wbsetaliases", "id": record_id, "language": language, "remove": alias},
            summary=summary,
        )

    # Session handling

    async def login(self) -> None:
        if not self.config.has_credentials:
            raise WikibaseAPIError("Cannot edit without WORLD_USERNAME / WORLD_PASSWORD")
        payload = await self._call(
            "GET", {"action": "query", "meta": "tokens", "type": "login"}
        )
        login_token = TokensResponse.model_validate(payload).query.tokens.logintoken
        if not login_token:
            raise WikibaseAPIError("No login token returned")
        payload = await self._call(
            "POST",
            {
                "action": "login",
                "lgname": self.config.username or "",
                "lgpassword": self.config.password or "",
                "lgtoken": login_token,
            },
        )
        result = LoginResponse.model_validate(payload).login
        if result.result != "Success":
            raise WikibaseAPIError(
                f"Login failed: {result.reason or result.result}", code="loginfailed"
            )
        self._logged_in = True
        self._csrf_token = None
        log.info("Logged in to %s as %s", self.config.instance, result.lgusername)

    async def _csrf(self) -> str:
        if not self._logged_in:
            await self.login()
        if self._csrf_token is None:
            payload = await self._call("GET", {"action": "query", "meta": "tokens"})
            token = TokensResponse.model_validate(payload).query.tokens.csrftoken
            if not token or token == "+\\":
                raise WikibaseAPIError("No edit token for this session", code="notoken")
            self._csrf_token = token
        return self._csrf_token

    async def _write(self, params: dict[str, str], *, summary: str) -> dict[str, object]:
        edit = {**params, "summary": summary, "bot": "1", "maxlag": str(self.config.maxlag)}
        try:
            return await self._call("POST", {**edit, "token": await self._csrf()})
        except WikibaseAPIError as exc:
            if exc.code != "badtoken":
                raise
            log.info("Edit token expired, fetching a new one")
            self._csrf_token = None
        return await self._call("POST", {**edit, "token": await self._csrf()})

    async def _call(self, method: str, params: dict[str, str]) -> dict[str, object]:
        query = {**params, "format": "json"}
        url = self.config.action_api
        if method == "GET":
            response = await self.http.get(url, params=query)
        else:
            response = await self.http.post(url, data=query)
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise WikibaseAPIError(f"Unexpected {params.get('action')} response payload")
        if "error" in payload:
            error = ErrorResponse.model_validate(payload).error
            log.debug("Action API error %s: %s", error.code, error.info)
            if error.code in THROTTLE_ERROR_CODES:
                raise TooManyRequestsError(error.info or error.code, code=error.code)
            raise WikibaseAPIError(error.info or error.code, code=error.code)
        return payload


if TYPE_CHECKING:
    _store_check: RecordStore = WikibaseClient()
