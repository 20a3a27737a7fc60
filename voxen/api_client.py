"""
API Client for the Voxen gateway.
Maps the record, storage and auth capabilities onto the BaaS REST endpoints with httpx.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import Settings, get_settings
from .gateway import (
    AuthProvider,
    BlobStore,
    Gateway,
    GatewayError,
    ProgressCallback,
    RecordStore,
    UploadResult,
)
from .models import User

logger = logging.getLogger("voxen.api")


class APIClient:
    """HTTP client for the gateway REST API"""

    def __init__(self, base_url: str, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self.base_url = base_url.rstrip('/')
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.HTTP_TIMEOUT, connect=self.settings.HTTP_CONNECT_TIMEOUT),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0),
            http2=self.settings.HTTP2_ENABLED and transport is None,
            transport=transport,
        )

    def set_tokens(self, access_token: str, refresh_token: Optional[str] = None):
        """Set authentication tokens"""
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear_tokens(self):
        """Clear authentication tokens"""
        self.access_token = None
        self.refresh_token = None

    def _get_headers(self, content_type: str = "application/json") -> Dict[str, str]:
        """Get request headers with auth token"""
        headers = {"Content-Type": content_type}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                return str(error_data.get("detail") or error_data.get("message") or error_data)
            return str(error_data)
        except ValueError:
            return response.text[:200]

    async def request(self, method: str, path: str, *, context: str, params: Optional[Dict[str, Any]] = None,
                      json_body: Any = None, content: Any = None,
                      headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Send one request; every failure becomes a GatewayError"""
        url = f"{self.base_url}{path}"
        request_headers = self._get_headers()
        if headers:
            request_headers.update(headers)
        logger.debug(f"[API] {method} {url} ({context})")
        try:
            response = await self.client.request(
                method, url, params=params, json=json_body, content=content, headers=request_headers
            )
        except httpx.TimeoutException as e:
            logger.warning(f"[API] {context} timeout: {e}")
            raise GatewayError("Request timeout. Please check your internet connection.") from e
        except httpx.ConnectError as e:
            logger.warning(f"[API] {context} connection error: {e}")
            raise GatewayError(f"Cannot connect to server at {self.base_url}. Server might be down.") from e
        except httpx.HTTPError as e:
            logger.warning(f"[API] {context} transport error: {e}")
            raise GatewayError(f"{context} failed: {e}") from e

        if response.status_code >= 400:
            detail = self._error_detail(response)
            logger.debug(f"[API] {context} failed ({response.status_code}): {detail}")
            raise GatewayError(f"{context} failed ({response.status_code}): {detail}", status_code=response.status_code)
        return response

    @staticmethod
    def json_or_none(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GatewayError("Invalid JSON response from server", status_code=response.status_code) from e

    async def close(self):
        await self.client.aclose()


class HttpRecordStore(RecordStore):
    def __init__(self, api: APIClient):
        self.api = api

    async def list(self, collection: str, where: Optional[Dict[str, Any]] = None,
                   order_by: Optional[Dict[str, str]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if where:
            params["where"] = json.dumps(where)
        if order_by:
            params["orderBy"] = json.dumps(order_by)
        if limit is not None:
            params["limit"] = limit
        response = await self.api.request("GET", f"/api/v1/db/{collection}", params=params, context=f"List {collection}")
        data = self.api.json_or_none(response)
        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise GatewayError(f"Unexpected list response for {collection}")
        return data

    async def create(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.api.request("POST", f"/api/v1/db/{collection}", json_body=record,
                                          context=f"Create {collection}")
        return self.api.json_or_none(response) or record

    async def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await self.api.request("PATCH", f"/api/v1/db/{collection}/{quote(record_id, safe='')}",
                                          json_body=patch, context=f"Update {collection}")
        return self.api.json_or_none(response)

    async def delete(self, collection: str, record_id: str) -> None:
        await self.api.request("DELETE", f"/api/v1/db/{collection}/{quote(record_id, safe='')}",
                               context=f"Delete {collection}")

    async def close(self):
        await self.api.close()


class HttpBlobStore(BlobStore):
    def __init__(self, api: APIClient):
        self.api = api

    async def upload(self, file, path: str, *, upsert: bool = True,
                     on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        chunk_size = self.api.settings.UPLOAD_CHUNK_SIZE

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            for chunk in file.open_chunks(chunk_size):
                sent += len(chunk)
                yield chunk
                if on_progress and file.size:
                    on_progress(min(100.0, sent * 100.0 / file.size))

        logger.info(f"[UPLOAD] {file.name} ({file.size} bytes) -> {path}")
        response = await self.api.request(
            "PUT",
            f"/api/v1/storage/{quote(path)}",
            params={"upsert": "true" if upsert else "false"},
            content=body(),
            headers={"Content-Type": file.mime_type, "Content-Length": str(file.size)},
            context="Upload file",
        )
        data = self.api.json_or_none(response) or {}
        public_url = data.get("publicUrl") or data.get("public_url")
        if not public_url:
            raise GatewayError("Upload response missing public URL")
        if on_progress:
            on_progress(100.0)
        return UploadResult(public_url=public_url)


class HttpAuthProvider(AuthProvider):
    def __init__(self, api: APIClient):
        super().__init__()
        self.api = api

    async def me(self) -> Optional[User]:
        try:
            response = await self.api.request("GET", "/api/v1/auth/me", context="Fetch user")
        except GatewayError as e:
            if e.status_code == 401:
                return None
            raise
        data = self.api.json_or_none(response)
        return User.model_validate(data) if data else None

    async def restore(self) -> Optional[User]:
        user = None
        if self.api.access_token:
            try:
                user = await self.me()
            except GatewayError as e:
                logger.warning(f"[SESSION] Could not restore session: {e}")
                self.api.clear_tokens()
        self._emit(user)
        return user

    async def login(self, email: str, password: str) -> User:
        logger.info(f"[API] Attempting login to {self.api.base_url}/api/v1/auth/login")
        response = await self.api.request("POST", "/api/v1/auth/login",
                                          json_body={"email": email, "password": password}, context="Login")
        data = self.api.json_or_none(response) or {}
        access_token = data.get("access_token")
        if not access_token:
            raise GatewayError("Invalid response from server")
        self.api.set_tokens(access_token, data.get("refresh_token"))

        user = User.model_validate(data["user"]) if data.get("user") else await self.me()
        if user is None:
            self.api.clear_tokens()
            raise GatewayError("Login succeeded but no user was returned")
        logger.info("[API] Login successful")
        self._emit(user)
        return user

    async def logout(self) -> None:
        try:
            await self.api.request("POST", "/api/v1/auth/logout", context="Logout")
        except GatewayError as e:
            # Local sign-out still happens
            logger.warning(f"[API] Logout error: {e}")
        finally:
            self.api.clear_tokens()
            self._emit(None)


def build_http_gateway(settings: Optional[Settings] = None,
                       transport: Optional[httpx.AsyncBaseTransport] = None) -> Gateway:
    settings = settings or get_settings()
    api = APIClient(settings.API_BASE_URL, settings=settings, transport=transport)
    return Gateway(auth=HttpAuthProvider(api), records=HttpRecordStore(api), storage=HttpBlobStore(api))
