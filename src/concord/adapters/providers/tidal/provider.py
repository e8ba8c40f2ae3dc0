"""Tidal metadata provider (OpenAPI v2)."""

from __future__ import annotations

import asyncio
import re
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar, Final, Unpack

from pydantic import ValidationError

from concord.adapters.providers.base import EntityId, MetadataProvider
from concord.config.tidal import TIDAL_API_BASE_URL
from concord.domain.errors import ProviderError, ResponseError
from concord.domain.model import LinkType

from .lookup import TidalReleaseLookup
from .schema import AccessToken, ErrorDocument, TidalApiError

if TYPE_CHECKING:
    import httpx

    from concord.adapters.http_resilience import ResilientClient
    from concord.adapters.providers.base import ProviderOptions
    from concord.config.tidal import TidalConfig

log = getLogger(__name__)

# https://support.tidal.com/hc/en-us/articles/202453191-Availability-by-Country
AVAILABLE_REGIONS: Final[frozenset[str]] = frozenset(
    (
        "AD AE AL AR AT AU BA BE BG BR CA CH CL CO CY CZ DE DK DM EE ES FI FR GB GR HK HR HU "
        "IE IL IS IT JM LI LT LU LV MC ME MK MT MX MY NG NL NO NZ PE PL PR PT RO RS SE SG SI "
        "SK TH UG US ZA"
    ).split()
)
# renew tokens a bit before they actually expire
TOKEN_EXPIRY_MARGIN_SECONDS: Final[int] = 60


class TidalResponseError(ResponseError):
    """The Tidal API reported errors for a request."""

    def __init__(self, errors: list[TidalApiError], url: str) -> None:
        messages = [
            f"{error.domain}: {error.detail}" if error.domain else error.detail for error in errors
        ]
        super().__init__(TidalProvider.name, ", ".join(messages), url)
        self.errors = errors


class TidalProvider(MetadataProvider):
    name: ClassVar[str] = "Tidal"
    supported_urls: ClassVar[re.Pattern[str]] = re.compile(
        r"^https?://(?:(?:www|listen)\.)?tidal\.com"
        r"(?:/browse)?/(?P<type>album|artist|video)/(?P<id>\d+)",
        re.IGNORECASE,
    )
    entity_type_map: ClassVar[dict[str, str | tuple[str, ...]]] = {
        "artist": "artist",
        "release": ("album", "video"),
    }
    available_regions: ClassVar[frozenset[str]] = AVAILABLE_REGIONS
    default_region: ClassVar[str] = "US"
    lookup_class = TidalReleaseLookup
    api_base_url: ClassVar[str] = TIDAL_API_BASE_URL

    def __init__(
        self,
        config: TidalConfig,
        client: ResilientClient,
        **options: Unpack[ProviderOptions],
    ) -> None:
        super().__init__(client, **options)
        self.config = config
        self._token: str | None = None
        self._token_valid_until = 0.0
        self._token_lock: asyncio.Lock | None = None
        self._token_lock_loop: asyncio.AbstractEventLoop | None = None

    def construct_url(self, entity: EntityId) -> str:
        return f"https://tidal.com/{entity.type}/{entity.id}"

    def serialize_provider_id(self, entity: EntityId) -> str:
        if entity.type == "video":
            return f"video/{entity.id}"
        return entity.id

    def parse_provider_id(self, provider_id: str, entity_type: str = "release") -> EntityId:
        if entity_type == "release":
            if provider_id.startswith("video/"):
                return EntityId(type="video", id=provider_id.removeprefix("video/"))
            return EntityId(type="album", id=provider_id)
        return super().parse_provider_id(provider_id, entity_type)

    def link_types_for_entity(self, entity: EntityId) -> list[LinkType]:  # noqa: ARG002
        return [LinkType.PAID_STREAMING]

    async def request_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {await self.access_token()}"}

    async def access_token(self) -> str:
        """Client credentials token, requested again once it has expired."""

        async with self._get_token_lock():
            if self._token is None or self._clock() >= self._token_valid_until:
                token = await self._request_access_token()
                self._token = token.access_token
                self._token_valid_until = (
                    self._clock() + token.expires_in - TOKEN_EXPIRY_MARGIN_SECONDS
                )
            return self._token

    def reset_authorization(self) -> bool:
        # the token may have been revoked before its announced expiry
        log.info("%s: discarding the rejected access token", self.name)
        self._token = None
        self._token_valid_until = 0.0
        return True

    def _get_token_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._token_lock is None or self._token_lock_loop is not loop:
            self._token_lock = asyncio.Lock()
            self._token_lock_loop = loop
        return self._token_lock

    async def _request_access_token(self) -> AccessToken:
        response = await self.client.post(
            self.config.token_url,
            data={"grant_type": "client_credentials", "client_id": self.config.client_id},
            auth=(self.config.client_id, self.config.client_secret),
        )
        if not response.is_success:
            raise ProviderError(
                self.name, f"Failed to obtain an access token (HTTP {response.status_code})"
            )
        try:
            return AccessToken.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProviderError(self.name, "Invalid access token response") from exc

    def raise_for_response(self, response: httpx.Response, url: str) -> None:
        if not response.is_success:
            errors = _parse_errors(response.content)
            if errors:
                raise TidalResponseError(errors, url)
        super().raise_for_response(response, url)

    def validate_payload(self, payload: object, url: str) -> None:
        if isinstance(payload, dict) and payload.get("errors"):
            try:
                document = ErrorDocument.model_validate(payload)
            except ValidationError as exc:
                raise ResponseError(self.name, "Malformed error response", url) from exc
            raise TidalResponseError(document.errors, url)


def _parse_errors(content: bytes) -> list[TidalApiError]:
    try:
        return ErrorDocument.model_validate_json(content).errors
    except ValidationError:
        return []
