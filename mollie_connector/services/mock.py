"""
In-process stand-in for the Mollie payments API.

Plugged into httpx through MockTransport: requests whose URL matches one of
the payment routes are answered from a volatile store, everything else is
passed on to the real network transport.

Payments live only as long as the engine (in-memory, reset on restart).
"""

import json
import logging
import random
import re
import string
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Union

import httpx

logger = logging.getLogger(__name__)

StatusHook = Union[str, Callable[[Dict[str, Any]], str]]
RedirectHook = Union[str, Callable[[Dict[str, Any]], str]]
ResponseHook = Callable[[str, str, Dict[str, Any]], Any]

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 10


class MockRoute(NamedTuple):
    pattern: "re.Pattern[str]"
    handlers: Dict[str, Callable[..., httpx.Response]]


class MockEngine:
    """Answers payment routes from an in-memory store.

    `status` and `redirect_url` are strings or callables of the request params;
    `on_response(id, status, params)` is called for every synthesized payment.
    URLs no route matches go to `passthrough`.
    """

    def __init__(
        self,
        endpoint: str,
        version: str = "v1",
        *,
        status: Optional[StatusHook] = None,
        redirect_url: Optional[RedirectHook] = None,
        on_response: Optional[ResponseHook] = None,
        passthrough: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.status = status or "open"
        self.redirect_url = redirect_url
        self.on_response = on_response
        self._passthrough = passthrough
        self.payments: Dict[str, Dict[str, Any]] = {}

        base = re.escape(f"{endpoint}/{version}/payments")
        self.routes: List[MockRoute] = [
            MockRoute(re.compile(base + r"/([a-zA-Z0-9_]+)$"), {"GET": self._get_payment}),
            MockRoute(re.compile(base + r"$"), {"GET": self._list_payments, "POST": self._create_payment}),
        ]
        logger.info("[MOLLIE MOCK] Routes registered under %s/%s/payments", endpoint, version)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url).split("?", 1)[0]
        for route in self.routes:
            match = route.pattern.match(url)
            if not match:
                continue
            handler = route.handlers.get(request.method)
            if handler is None:
                return httpx.Response(405)
            params = self._params(request)
            logger.debug("[MOLLIE MOCK] %s %s", request.method, url)
            return handler(match, params, request.headers)

        if self._passthrough is None:
            self._passthrough = httpx.AsyncHTTPTransport()
        return await self._passthrough.handle_async_request(request)

    async def aclose(self) -> None:
        if self._passthrough is not None:
            await self._passthrough.aclose()

    def _get_payment(self, match, params, headers) -> httpx.Response:
        payment = self.payments.get(match.group(1))
        if payment:
            return httpx.Response(200, json=payment)
        return httpx.Response(404)

    def _list_payments(self, match, params, headers) -> httpx.Response:
        # offset/count are accepted but the whole store is returned
        data = list(self.payments.values())
        body = {"totalCount": len(data), "offset": 0, "count": len(data), "data": data}
        return httpx.Response(200, json=body)

    def _create_payment(self, match, params, headers) -> httpx.Response:
        payment = self.synthesize(self.new_id(), self._status_for(params), params)
        self.payments[payment["id"]] = payment
        logger.info("[MOLLIE MOCK] Created payment %s (%s)", payment["id"], payment["status"])
        return httpx.Response(201, json=payment)

    def synthesize(self, id: str, status: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params.setdefault("metadata", {})
        params["metadata"] = params["metadata"] or {}
        payment = {
            "id": f"tr_{id}",
            "mode": "test",
            "createdDatetime": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "status": status,
            "expiryPeriod": "PT15M",
            "amount": params.get("amount") or 0,
            "description": params.get("description") or "",
            "metadata": params["metadata"],
            "links": {
                "paymentUrl": f"https://www.mollie.com/payscreen/pay/{id}",
                "redirectUrl": self._redirect_url_for(params),
            },
        }
        if status == "paid":
            del payment["expiryPeriod"]
        if callable(self.on_response):
            self.on_response(id, status, params)
        return payment

    def set_status(self, payment_id: str, status: str) -> Dict[str, Any]:
        """Move a stored payment to `status`; raises KeyError for unknown ids."""
        payment = self.payments[payment_id]
        payment["status"] = status
        if status == "paid":
            payment.pop("expiryPeriod", None)
        return payment

    def reset(self) -> None:
        self.payments.clear()

    @staticmethod
    def new_id() -> str:
        return "".join(random.choices(ID_ALPHABET, k=ID_LENGTH))

    def _status_for(self, params: Dict[str, Any]) -> str:
        if callable(self.status):
            return self.status(params)
        return self.status

    def _redirect_url_for(self, params: Dict[str, Any]) -> str:
        if callable(self.redirect_url):
            return self.redirect_url(params)
        if isinstance(self.redirect_url, str):
            return self.redirect_url
        return f"http://localhost/orders/{params['metadata'].get('id', '')}"

    @staticmethod
    def _params(request: httpx.Request) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(request.url.params)
        if request.content:
            try:
                body = json.loads(request.content)
            except ValueError:
                body = None
            if isinstance(body, dict):
                params.update(body)
        return params
