"""
HTTP gateway for the platform-management API.

``AssetGateway`` names the operations the upload pipeline depends on;
``ConnectClient`` implements them over HTTPS with JSON:API payloads.
"""
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from .deadline import Deadline
from .errors import APIError
from .models import AssetKind, AssetRecord, AssetSet, ChecksumResult, Page

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.appstoreconnect.apple.com"
DEFAULT_TIMEOUT = 30.0


class AssetGateway(Protocol):
    """Remote operations consumed by the upload pipeline."""

    base_url: str

    def list_sets(self, kind: AssetKind, localization_id: str,
                  deadline: Optional[Deadline] = None) -> Page:
        ...

    def create_set(self, kind: AssetKind, localization_id: str, set_type: str,
                   deadline: Optional[Deadline] = None) -> AssetSet:
        ...

    def list_assets(self, kind: AssetKind, set_id: str,
                    deadline: Optional[Deadline] = None) -> Page:
        ...

    def create_asset(self, kind: AssetKind, set_id: str, file_name: str, file_size: int,
                     mime_type: Optional[str] = None,
                     deadline: Optional[Deadline] = None) -> AssetRecord:
        ...

    def get_asset(self, kind: AssetKind, asset_id: str,
                  deadline: Optional[Deadline] = None) -> AssetRecord:
        ...

    def commit_asset(self, kind: AssetKind, asset_id: str, checksum: ChecksumResult,
                     deadline: Optional[Deadline] = None) -> AssetRecord:
        ...

    def delete_asset(self, kind: AssetKind, asset_id: str,
                     deadline: Optional[Deadline] = None) -> None:
        ...

    def fetch_page(self, kind: AssetKind, cursor: str, resource_type: str,
                   deadline: Optional[Deadline] = None) -> Page:
        ...


class ConnectClient:
    """One method per API operation. All return plain dataclasses."""

    def __init__(self, token: str = "", base_url: str = DEFAULT_BASE_URL,
                 timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        """Initialize the client.

        Args:
            token: Bearer token sent with every request
            base_url: API root, also the only host trusted for cursors
            timeout: Default per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ConnectClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        code = title = detail = ""
        try:
            errors = resp.json().get("errors") or []
            if errors:
                code = errors[0].get("code") or ""
                title = errors[0].get("title") or ""
                detail = errors[0].get("detail") or ""
        except ValueError:
            detail = resp.text
        raise APIError(resp.status_code, code=code, title=title, detail=detail)

    def _request(self, method: str, path: str, deadline: Optional[Deadline] = None,
                 json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        deadline = deadline or Deadline()
        deadline.check(f"{method} {path}")

        resp = self._client.request(
            method,
            path,
            json=json,
            timeout=deadline.request_timeout(self.timeout),
        )
        logger.debug(f"{method} {path} -> {resp.status_code}")
        self._raise_for_status(resp)
        if not resp.content:
            return {}
        return resp.json()

    @staticmethod
    def _page(body: Dict[str, Any], parse) -> Page:
        links = body.get("links") or {}
        return Page(
            items=[parse(item) for item in body.get("data") or []],
            next_cursor=links.get("next") or None,
        )

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def list_sets(self, kind: AssetKind, localization_id: str,
                  deadline: Optional[Deadline] = None) -> Page:
        body = self._request(
            "GET",
            f"/v1/appStoreVersionLocalizations/{localization_id}/{kind.set_resource}",
            deadline,
        )
        return self._page(body, lambda r: AssetSet.from_resource(kind, r))

    def create_set(self, kind: AssetKind, localization_id: str, set_type: str,
                   deadline: Optional[Deadline] = None) -> AssetSet:
        payload = {
            "data": {
                "type": kind.set_resource,
                "attributes": {kind.set_type_attribute: set_type},
                "relationships": {
                    "appStoreVersionLocalization": {
                        "data": {"type": "appStoreVersionLocalizations", "id": localization_id}
                    }
                },
            }
        }
        body = self._request("POST", f"/v1/{kind.set_resource}", deadline, json=payload)
        return AssetSet.from_resource(kind, body.get("data") or {})

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def list_assets(self, kind: AssetKind, set_id: str,
                    deadline: Optional[Deadline] = None) -> Page:
        body = self._request("GET", f"/v1/{kind.set_resource}/{set_id}/{kind.resource}", deadline)
        return self._page(body, AssetRecord.from_resource)

    def create_asset(self, kind: AssetKind, set_id: str, file_name: str, file_size: int,
                     mime_type: Optional[str] = None,
                     deadline: Optional[Deadline] = None) -> AssetRecord:
        attributes: Dict[str, Any] = {"fileName": file_name, "fileSize": file_size}
        if mime_type:
            attributes["mimeType"] = mime_type
        payload = {
            "data": {
                "type": kind.resource,
                "attributes": attributes,
                "relationships": {
                    kind.set_relationship: {
                        "data": {"type": kind.set_resource, "id": set_id}
                    }
                },
            }
        }
        body = self._request("POST", f"/v1/{kind.resource}", deadline, json=payload)
        return AssetRecord.from_resource(body.get("data") or {})

    def get_asset(self, kind: AssetKind, asset_id: str,
                  deadline: Optional[Deadline] = None) -> AssetRecord:
        body = self._request("GET", f"/v1/{kind.resource}/{asset_id}", deadline)
        return AssetRecord.from_resource(body.get("data") or {})

    def commit_asset(self, kind: AssetKind, asset_id: str, checksum: ChecksumResult,
                     deadline: Optional[Deadline] = None) -> AssetRecord:
        """Mark an asset as uploaded and attach the source file checksum."""
        payload = {
            "data": {
                "type": kind.resource,
                "id": asset_id,
                "attributes": {"uploaded": True, "sourceFileChecksum": checksum.hash},
            }
        }
        body = self._request("PATCH", f"/v1/{kind.resource}/{asset_id}", deadline, json=payload)
        return AssetRecord.from_resource(body.get("data") or {})

    def delete_asset(self, kind: AssetKind, asset_id: str,
                     deadline: Optional[Deadline] = None) -> None:
        self._request("DELETE", f"/v1/{kind.resource}/{asset_id}", deadline)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def fetch_page(self, kind: AssetKind, cursor: str, resource_type: str,
                   deadline: Optional[Deadline] = None) -> Page:
        """Fetch the page a cursor points to.

        Args:
            kind: Asset kind the listing belongs to
            cursor: Absolute or relative "next" URL
            resource_type: "sets" or "assets", selects how items are parsed
            deadline: Governing deadline

        Returns:
            The fetched Page
        """
        body = self._request("GET", cursor, deadline)
        if resource_type == "sets":
            return self._page(body, lambda r: AssetSet.from_resource(kind, r))
        return self._page(body, AssetRecord.from_resource)
