"""
HTTP transport for the licensing API.

Every call is rewritten to ``/v1/{scope}s/{id}/{endpoint}``, signed when
credentials are present, and normalized into a payload (optionally a
validated pydantic model) or a ``LicenseError``.
"""
import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional, Type, Union

import httpx
from pydantic import BaseModel, ValidationError

from config import Settings, settings
from errors import LicenseError
from hooks import Hooks, default_hooks
from signer import JSON_CONTENT_TYPE, encode_body, get_signed_headers

logger = logging.getLogger(__name__)

ApiResult = Union[Any, LicenseError]

def _error_from(payload: Any) -> Optional[LicenseError]:
    if not isinstance(payload, Mapping):
        return None
    error = payload.get("error")
    if isinstance(error, Mapping) and "code" in error and "message" in error:
        return LicenseError.remote(error["code"], error["message"])
    return None

class ApiClient:
    def __init__(
        self,
        entity_id: Union[str, int],
        scope: str = "plugin",
        public_key: str = "",
        secret_key: str = "",
        config: Settings = settings,
        hooks: Optional[Hooks] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.entity_id = str(entity_id)
        self.scope = scope
        self.public_key = public_key or ""
        self.secret_key = secret_key or ""
        self.base_url = config.LICENSE_API_URL.rstrip("/")
        self.config = config
        self.hooks = hooks or default_hooks
        self.transport = transport

    @property
    def is_authenticated(self) -> bool:
        return bool(self.public_key and self.secret_key)

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, model: Optional[Type[BaseModel]] = None) -> ApiResult:
        return await self.request("GET", endpoint, params, model)

    async def post(self, endpoint: str, data: Optional[Dict[str, Any]] = None, model: Optional[Type[BaseModel]] = None) -> ApiResult:
        return await self.request("POST", endpoint, data, model)

    async def put(self, endpoint: str, data: Optional[Dict[str, Any]] = None, model: Optional[Type[BaseModel]] = None) -> ApiResult:
        return await self.request("PUT", endpoint, data, model)

    async def delete(self, endpoint: str, data: Optional[Dict[str, Any]] = None, model: Optional[Type[BaseModel]] = None) -> ApiResult:
        return await self.request("DELETE", endpoint, data, model)

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        model: Optional[Type[BaseModel]] = None,
    ) -> ApiResult:
        method = method.upper()
        data = data or {}
        endpoint = self.prepare_endpoint(endpoint)
        url = self.prepare_url(method, endpoint, data)

        headers = {}

        # Sign the request for auth.
        if self.is_authenticated:
            headers = get_signed_headers(
                method,
                endpoint,
                data,
                self.entity_id,
                self.public_key,
                self.secret_key,
            )

        response = await self.perform_http_request(method, url, data, headers)
        return self.prepare_response(response, model)

    def prepare_endpoint(self, endpoint: str) -> str:
        return "/".join(["", "v1", f"{self.scope}s", self.entity_id, endpoint.lstrip("/")])

    def prepare_url(self, method: str, endpoint: str, data: Dict[str, Any]) -> str:
        url = self.base_url + endpoint

        # Query args are not part of the signed resource path.
        if method == "GET" and data:
            url = str(httpx.URL(url, params=data))

        return url

    def verify_ssl(self) -> bool:
        return bool(self.hooks.verify_ssl(self.config.LICENSE_API_VERIFY_SSL, self))

    async def perform_http_request(
        self,
        method: str,
        url: str,
        data: Dict[str, Any],
        headers: Dict[str, str],
    ) -> Union[httpx.Response, Mapping[str, Any], LicenseError]:
        content = None
        if method in ("POST", "PUT", "DELETE"):
            headers["Content-type"] = JSON_CONTENT_TYPE
            content = encode_body(data)

        args = {
            "method": method,
            "url": url,
            "headers": headers,
            "content": content,
            "timeout": httpx.Timeout(self.config.LICENSE_API_TIMEOUT, connect=self.config.LICENSE_API_CONNECT_TIMEOUT),
            "follow_redirects": True,
        }
        args = self.hooks.request_args(args, method, url, data, headers)

        short_circuit = self.hooks.pre_request(args)
        if short_circuit is not None:
            return short_circuit

        logger.debug("%s %s", method, url.split("?", 1)[0])

        try:
            async with httpx.AsyncClient(
                verify=self.verify_ssl(),
                max_redirects=self.config.LICENSE_API_MAX_REDIRECTS,
                transport=self.transport,
            ) as client:
                # Bound the whole exchange, not only each read.
                return await asyncio.wait_for(client.request(**args), self.config.LICENSE_API_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Licensing API request timed out: %s %s", method, url.split("?", 1)[0])
            return LicenseError.transport(f"Request timed out after {self.config.LICENSE_API_TIMEOUT} seconds")
        except httpx.HTTPError as e:
            logger.warning("Licensing API request failed: %s %s: %s", method, url.split("?", 1)[0], e)
            return LicenseError.transport(f"HTTP error during request: {str(e)}")

    def prepare_response(
        self,
        response: Union[httpx.Response, Mapping[str, Any], LicenseError],
        model: Optional[Type[BaseModel]] = None,
    ) -> ApiResult:
        """
        Normalize a response into a payload or an error.

        Error shapes are checked both on an already-structured response and
        on the decoded body.
        """
        if isinstance(response, LicenseError):
            return response

        if isinstance(response, Mapping):
            error = _error_from(response)
            if error:
                return error
            payload = response.get("body", response)
            if isinstance(payload, (str, bytes)):
                payload = self._decode(payload)
            status_code = 200
        else:
            payload = self._decode(response.content)
            status_code = response.status_code

        if isinstance(payload, LicenseError):
            return payload

        error = _error_from(payload)
        if error:
            logger.warning("Licensing API returned error %s: %s", error.code, error.message)
            return error

        if status_code >= 400:
            logger.warning("Licensing API returned HTTP %s", status_code)
            return LicenseError.remote(f"http_{status_code}", f"Unexpected HTTP status {status_code}.")

        if model is None:
            return payload

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning("Unexpected %s payload: %s", model.__name__, [err["loc"] for err in e.errors()])
            return LicenseError.unknown()

    def _decode(self, body: Union[str, bytes]) -> Any:
        try:
            return json.loads(body)
        except ValueError:
            logger.warning("Licensing API returned a non-JSON body")
            return LicenseError.unknown("Invalid response from licensing API.")
