"""
Mollie data-source connector.

Maps the create / find / exists / all / count verbs onto the Mollie payments
API (https://api.mollie.nl/v1/payments) and generates legacy pay-links.
Every verb is one HTTP round trip; no state is kept between calls.
"""

import logging
import math
import platform
import re
import ssl
from typing import Any, Dict, List, Mapping, Optional, Type, Union

import certifi
import httpx
from sqlmodel import SQLModel

from .. import coercion
from ..config import ConnectorSettings
from ..contracts import PaymentConnector
from ..errors import ConnectorError, InvalidLinkOptions, LinkError, NotImplementedOperation, RemoteAPIError, normalize_error
from ..models import Payment
from ..utils import as_curl
from .mock import MockEngine

logger = logging.getLogger(__name__)

LINK_URL_RE = re.compile(r"<URL>([^<]+)</URL>", re.IGNORECASE)
LINK_MESSAGE_RE = re.compile(r"<message>([^<]+)</message>", re.IGNORECASE)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class MollieConnector(PaymentConnector):
    name = "mollie"
    version = "1.0.3"

    def __init__(self,
                 settings: Union[ConnectorSettings, Mapping[str, Any]],
                 models: Optional[Dict[str, Type[SQLModel]]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 mock_status=None,
                 mock_redirect_url=None,
                 mock_response=None,
                 ):
        if not isinstance(settings, ConnectorSettings):
            settings = ConnectorSettings.model_validate(dict(settings))
        self.settings = settings
        self.models: Dict[str, Type[SQLModel]] = models if models is not None else {"Payment": Payment}
        self.debug = settings.debug or logger.isEnabledFor(logging.DEBUG)
        self.mock = settings.mock
        self.endpoint: Optional[str] = None

        self.client_info = " ".join([platform.system(), platform.release(), platform.platform(),
                                     platform.machine(), platform.node()])
        self.user_agent = f"Mollie/{self.version} Python/{platform.python_version()}"

        self.mock_engine: Optional[MockEngine] = None
        if self.mock:
            self.mock_engine = MockEngine(
                settings.endpoint,
                settings.version,
                status=mock_status,
                redirect_url=mock_redirect_url or settings.mock_redirect_url,
                on_response=mock_response,
                passthrough=transport or httpx.AsyncHTTPTransport(verify=settings.reject_unauthorized),
            )
            transport = self.mock_engine.transport

        verify: Union[bool, ssl.SSLContext] = settings.reject_unauthorized
        self._client = self._build_client(verify, transport)
        ca = self._load_ca() if settings.reject_unauthorized else None
        self._secure_client = self._build_client(ca, transport) if ca is not None else self._client

        if self.debug:
            logger.debug("config: %s", settings.model_dump(exclude={"apikey"}))

    def _build_client(self, verify, transport) -> httpx.AsyncClient:
        hooks = {"response": [self._log_response]} if self.debug else {}
        return httpx.AsyncClient(verify=verify, transport=transport, event_hooks=hooks)

    def _load_ca(self) -> Optional[ssl.SSLContext]:
        cert = self.settings.cert
        if cert is True:
            return ssl.create_default_context(cafile=certifi.where())
        if isinstance(cert, str) and cert:
            if "-----BEGIN" in cert:
                return ssl.create_default_context(cadata=cert)
            return ssl.create_default_context(cafile=cert)
        return None

    def _client_for(self, method: str) -> httpx.AsyncClient:
        # the custom CA is only attached to writes
        if method.upper() == "GET":
            return self._client
        return self._secure_client

    async def _log_response(self, response: httpx.Response) -> None:
        logger.debug("request: %s", as_curl(response.request))

    def get_endpoint(self) -> str:
        return self.endpoint or self.settings.endpoint

    def set_endpoint(self, endpoint: Optional[str] = None) -> Optional[str]:
        self.endpoint = endpoint or None
        return self.endpoint

    def reset_endpoint(self) -> Optional[str]:
        return self.set_endpoint()

    def request(self, method: str, resource: str, id_or_data: Any = None,
                sub_resource: Optional[str] = None, options: Optional[Mapping[str, Any]] = None) -> httpx.Request:
        """Build (without sending) an authenticated request for `resource`."""
        url = f"{self.get_endpoint()}/{self.settings.version}/{resource}"
        if isinstance(id_or_data, str):
            url += "/" + id_or_data
        if isinstance(sub_resource, str):
            url += "/" + sub_resource

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.settings.apikey}",
            "User-Agent": self.user_agent,
            "X-Mollie-Client-Info": self.client_info,
        }
        body = dict(id_or_data) if isinstance(id_or_data, Mapping) else None

        query: Dict[str, Any] = {}
        if isinstance(options, Mapping):
            if _is_number(options.get("offset")):
                query["offset"] = options["offset"]
            elif _is_number(options.get("skip")):
                query["offset"] = options["skip"]
            if _is_number(options.get("limit")):
                query["count"] = options["limit"]

        method = str(method).upper()
        return self._client_for(method).build_request(method, url, headers=headers, json=body, params=query or None)

    async def send(self, request: httpx.Request) -> httpx.Response:
        client = self._client_for(request.method)
        try:
            response = await client.send(request)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise normalize_error(e) from None
        return response

    @staticmethod
    def _body(response: httpx.Response) -> Dict[str, Any]:
        # replies that are not a JSON object read as an empty body
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.debug("Ignoring non-JSON body from %s", response.request.url)
            return {}
        return body if isinstance(body, dict) else {}

    async def aclose(self) -> None:
        await self._client.aclose()
        if self._secure_client is not self._client:
            await self._secure_client.aclose()
        if self.mock_engine is not None:
            await self.mock_engine.aclose()

    async def __aenter__(self) -> "MollieConnector":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def get_link(self, options: Optional[Mapping[str, Any]] = None) -> str:
        """Legacy pay-link for `options`, see https://www.mollie.com/nl/docs/paylinks."""
        options = dict(options or {})
        amount = options.get("amount")
        if not _is_number(amount) or not math.isfinite(amount) or not options.get("description"):
            raise InvalidLinkOptions("Invalid link options")

        query = {k: v for k, v in options.items() if k not in ("amount", "partnerid", "profile_key")}
        query["partnerid"] = options.get("partnerid") or self.settings.partnerid
        profile_key = options.get("profile_key") or self.settings.profile_key
        if profile_key:
            query["profile_key"] = profile_key
        query["amount"] = int(math.floor(options["amount"] * 100 + 0.5))  # euros to cents, half up
        query["a"] = "create-link"
        query = {k: v for k, v in query.items() if v is not None}

        request = self._client.build_request("GET", self.settings.paylink, params=query,
                                             headers={"User-Agent": self.user_agent})
        response = await self.send(request)
        text = response.text
        matches = LINK_URL_RE.search(text)
        if matches:
            return matches.group(1)
        matches = LINK_MESSAGE_RE.search(text)
        raise LinkError(matches.group(1) if matches else "Failed to get link")

    async def create(self, model: str, data: Mapping[str, Any]) -> Optional[str]:
        request = self.request("post", "payments", self.to_data(model, data))
        body = self._body(await self.send(request))
        return body.get("id")

    async def save(self, model: str, data: Mapping[str, Any]):
        raise NotImplementedOperation("save")

    async def exists(self, model: str, id: str) -> bool:
        try:
            return await self.find(model, id) is not None
        except RemoteAPIError as e:
            if e.status_code == 404:
                return False
            raise

    async def find(self, model: str, id: str) -> Optional[Dict[str, Any]]:
        request = self.request("get", "payments", id)
        body = self._body(await self.send(request))
        if not body:
            return None
        return self.from_data(model, body)

    async def destroy(self, model: str, id: str):
        raise NotImplementedOperation("destroy")

    async def all(self, model: str, filter: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        filter = filter or {}
        where = filter.get("where") or {}
        id_name = self.id_name(model)
        if isinstance(where.get(id_name), str):
            try:
                item = await self.find(model, where[id_name])
            except ConnectorError as e:
                logger.debug("Lookup of %s %s failed: %s", model, where[id_name], e)
                return []
            return [item] if item else []
        if not where:
            request = self.request("get", "payments", None, None, filter)
            body = self._body(await self.send(request))
            return [self.from_data(model, item) for item in body.get("data") or []]
        raise NotImplementedOperation("all")

    async def destroy_all(self, model: str, where: Optional[Mapping[str, Any]] = None):
        raise NotImplementedOperation("destroy_all")

    async def count(self, model: str, where: Optional[Mapping[str, Any]] = None) -> int:
        request = self.request("get", "payments")
        request.url = request.url.copy_merge_params({"count": 1})
        body = self._body(await self.send(request))
        return body.get("totalCount") or 0

    async def update_attributes(self, model: str, id: str, data: Mapping[str, Any]):
        raise NotImplementedOperation("update_attributes")

    def id_name(self, model: str) -> str:
        schema = self.models.get(model)
        if schema is not None:
            for name, field in schema.model_fields.items():
                if getattr(field, "primary_key", False) is True:
                    return field.alias or name
        return "id"

    def to_data(self, model: str, data: Any) -> Dict[str, Any]:
        return coercion.to_data(self.models.get(model), data)

    def from_data(self, model: str, data: Any) -> Dict[str, Any]:
        return coercion.from_data(data)
