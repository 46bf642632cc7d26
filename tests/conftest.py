"""
Test fixtures for the asset upload service.
"""
import json
import struct
import zlib
from typing import Dict, List, Optional

import httpx
import pytest

from connect_assets.client import ConnectClient
from connect_assets.models import (
    AssetDeliveryState,
    AssetRecord,
    AssetSet,
    ErrorDetail,
    Page,
    UploadOperation,
)
from connect_assets.uploader import UploadOperationExecutor

BASE_URL = "https://api.example.test"
UPLOAD_HOST = "https://uploads.example.test"


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xffffffff)


# A complete 1x1 RGB PNG.
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    + _png_chunk(b"IHDR", struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0))
    + _png_chunk(b"IDAT", zlib.compress(b"\x00\xff\x00\x00"))
    + _png_chunk(b"IEND", b"")
)
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


class FakeDeadline:
    """Deadline stand-in that records waits instead of sleeping."""

    def __init__(self, fire_after_waits: Optional[int] = None):
        self.waits: List[float] = []
        self.fired = False
        self.fire_after_waits = fire_after_waits

    def cancel(self):
        self.fired = True

    def remaining(self):
        return 0.0 if self.fired else None

    @property
    def expired(self):
        return self.fired

    def wait(self, seconds):
        self.waits.append(seconds)
        if self.fire_after_waits is not None and len(self.waits) >= self.fire_after_waits:
            self.fired = True
        return self.fired

    def check(self, operation):
        pass

    def request_timeout(self, default):
        return default


class FakeGateway:
    """In-memory AssetGateway that records every call."""

    base_url = BASE_URL

    def __init__(self, upload_operations: Optional[List[UploadOperation]] = None,
                 states: Optional[List[str]] = None,
                 sets: Optional[List[AssetSet]] = None):
        self.upload_operations = upload_operations
        self.states = list(states or ["COMPLETE"])
        self.sets = list(sets or [])
        self.calls: List[tuple] = []
        self.committed: Dict[str, str] = {}
        self._next_id = 0

    def list_sets(self, kind, localization_id, deadline=None):
        self.calls.append(("list_sets", localization_id))
        return Page(items=list(self.sets))

    def create_set(self, kind, localization_id, set_type, deadline=None):
        self.calls.append(("create_set", localization_id, set_type))
        created = AssetSet(id=f"SET_{len(self.sets) + 1}", set_type=set_type)
        self.sets.append(created)
        return created

    def list_assets(self, kind, set_id, deadline=None):
        self.calls.append(("list_assets", set_id))
        return Page()

    def create_asset(self, kind, set_id, file_name, file_size, mime_type=None, deadline=None):
        self.calls.append(("create_asset", set_id, file_name, file_size, mime_type))
        self._next_id += 1
        if self.upload_operations is None:
            operations = [UploadOperation(url=f"{UPLOAD_HOST}/{file_name}", offset=0, length=file_size)]
        else:
            operations = list(self.upload_operations)
        return AssetRecord(
            id=f"ASSET_{self._next_id}",
            file_name=file_name,
            file_size=file_size,
            upload_operations=operations,
            delivery_state=AssetDeliveryState(state="AWAITING_UPLOAD"),
        )

    def get_asset(self, kind, asset_id, deadline=None):
        self.calls.append(("get_asset", asset_id))
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        errors = [ErrorDetail(code="E1", message="bad frame")] if state == "FAILED" else []
        return AssetRecord(id=asset_id, delivery_state=AssetDeliveryState(state=state, errors=errors))

    def commit_asset(self, kind, asset_id, checksum, deadline=None):
        self.calls.append(("commit_asset", asset_id, checksum.hash))
        self.committed[asset_id] = checksum.hash
        return AssetRecord(id=asset_id)

    def delete_asset(self, kind, asset_id, deadline=None):
        self.calls.append(("delete_asset", asset_id))

    def fetch_page(self, kind, cursor, resource_type, deadline=None):
        self.calls.append(("fetch_page", cursor))
        return Page()

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingTransport:
    """Collects requests sent through an httpx.MockTransport."""

    def __init__(self, handler=None):
        self.requests: List[httpx.Request] = []
        self.bodies: List[bytes] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.read())
        if self._handler:
            return self._handler(request)
        return httpx.Response(200)

    def json_bodies(self) -> List[dict]:
        return [json.loads(body) if body else {} for body in self.bodies]


@pytest.fixture
def tmp_upload_dir(tmp_path):
    """Create a temporary directory for asset files."""
    upload_dir = tmp_path / "assets"
    upload_dir.mkdir()
    return upload_dir


@pytest.fixture
def png_file(tmp_upload_dir):
    """Create a small PNG screenshot."""
    path = tmp_upload_dir / "home.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def mov_file(tmp_upload_dir):
    """Create a small preview video."""
    path = tmp_upload_dir / "preview.mov"
    path.write_bytes(b"\x00\x00\x00\x14ftypqt  " + b"\x00" * 40)
    return path


@pytest.fixture
def fake_deadline():
    return FakeDeadline()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def upload_transport():
    """Transport that accepts every upload operation."""
    return RecordingTransport()


@pytest.fixture
def upload_executor(upload_transport):
    """Executor whose HTTP client never leaves the process."""
    executor = UploadOperationExecutor(http_client=httpx.Client(transport=httpx.MockTransport(upload_transport)))
    yield executor
    executor.close()


@pytest.fixture
def make_api_client():
    """Build a ConnectClient backed by a request handler."""
    clients = []

    def factory(handler):
        transport = RecordingTransport(handler)
        client = ConnectClient(
            token="test-token",
            base_url=BASE_URL,
            transport=httpx.MockTransport(transport),
        )
        clients.append(client)
        return client, transport

    yield factory
    for client in clients:
        client.close()
