"""
Module containing data models for the asset upload service.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict, Any

AWAITING_UPLOAD = "AWAITING_UPLOAD"
COMPLETE = "COMPLETE"
FAILED = "FAILED"

SCREENSHOT_DISPLAY_TYPES = [
    "APP_IPHONE_67",
    "APP_IPHONE_65",
    "APP_IPHONE_61",
    "APP_IPHONE_58",
    "APP_IPHONE_55",
    "APP_IPHONE_47",
    "APP_IPHONE_40",
    "APP_IPHONE_35",
    "APP_IPAD_PRO_3GEN_129",
    "APP_IPAD_PRO_3GEN_11",
    "APP_IPAD_PRO_129",
    "APP_IPAD_105",
    "APP_IPAD_97",
    "APP_DESKTOP",
    "APP_WATCH_ULTRA",
    "APP_WATCH_SERIES_10",
    "APP_WATCH_SERIES_7",
    "APP_WATCH_SERIES_4",
    "APP_WATCH_SERIES_3",
    "APP_APPLE_TV",
    "APP_APPLE_VISION_PRO",
    "IMESSAGE_APP_IPHONE_67",
    "IMESSAGE_APP_IPHONE_61",
    "IMESSAGE_APP_IPHONE_65",
    "IMESSAGE_APP_IPHONE_58",
    "IMESSAGE_APP_IPHONE_55",
    "IMESSAGE_APP_IPHONE_47",
    "IMESSAGE_APP_IPHONE_40",
    "IMESSAGE_APP_IPAD_PRO_3GEN_129",
    "IMESSAGE_APP_IPAD_PRO_3GEN_11",
    "IMESSAGE_APP_IPAD_PRO_129",
    "IMESSAGE_APP_IPAD_105",
    "IMESSAGE_APP_IPAD_97",
]

PREVIEW_TYPES = [
    "IPHONE_67",
    "IPHONE_65",
    "IPHONE_61",
    "IPHONE_58",
    "IPHONE_55",
    "IPHONE_47",
    "IPHONE_40",
    "IPHONE_35",
    "IPAD_PRO_3GEN_129",
    "IPAD_PRO_3GEN_11",
    "IPAD_PRO_129",
    "IPAD_105",
    "IPAD_97",
    "DESKTOP",
    "APPLE_TV",
    "APPLE_VISION_PRO",
]


class AssetKind(Enum):
    """The two kinds of media asset the service can upload."""
    SCREENSHOT = "screenshot"
    PREVIEW = "preview"

    @property
    def resource(self) -> str:
        return "appScreenshots" if self is AssetKind.SCREENSHOT else "appPreviews"

    @property
    def set_resource(self) -> str:
        return "appScreenshotSets" if self is AssetKind.SCREENSHOT else "appPreviewSets"

    @property
    def set_type_attribute(self) -> str:
        return "screenshotDisplayType" if self is AssetKind.SCREENSHOT else "previewType"

    @property
    def set_relationship(self) -> str:
        return "appScreenshotSet" if self is AssetKind.SCREENSHOT else "appPreviewSet"

    def normalize_set_type(self, value: str) -> str:
        """Normalize a --device-type value into a set type for this kind.

        Args:
            value: Raw device type from the command line

        Returns:
            The canonical display type or preview type

        Raises:
            ValueError: If the value is empty or not a supported type
        """
        normalized = (value or "").strip().upper()
        if not normalized:
            raise ValueError("device type is required")

        if self is AssetKind.SCREENSHOT:
            if not normalized.startswith("APP_"):
                normalized = "APP_" + normalized
            if normalized not in SCREENSHOT_DISPLAY_TYPES:
                raise ValueError(f'unsupported screenshot display type "{normalized}"')
            return normalized

        if normalized.startswith("APP_"):
            normalized = normalized[len("APP_"):]
        if normalized not in PREVIEW_TYPES:
            raise ValueError(f'unsupported preview type "{normalized}"')
        return normalized


@dataclass(frozen=True)
class AssetFile:
    """A validated local file ready for upload."""
    path: Path
    media_type: str
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class HTTPHeader:
    name: str
    value: str


@dataclass(frozen=True)
class UploadOperation:
    """One remote-issued instruction for transferring a byte range."""
    url: str
    method: str = "PUT"
    offset: int = 0
    length: int = 0
    request_headers: List[HTTPHeader] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadOperation":
        headers = [
            HTTPHeader(name=h.get("name", ""), value=h.get("value", ""))
            for h in data.get("requestHeaders") or []
        ]
        return cls(
            url=data.get("url") or "",
            method=data.get("method") or "PUT",
            offset=int(data.get("offset") or 0),
            length=int(data.get("length") or 0),
            request_headers=headers,
        )


@dataclass(frozen=True)
class ChecksumResult:
    """A digest of a file's content."""
    algorithm: str
    hash: str


@dataclass(frozen=True)
class ErrorDetail:
    code: str = ""
    message: str = ""


@dataclass(frozen=True)
class AssetDeliveryState:
    """Processing status reported by the remote pipeline."""
    state: str
    errors: List[ErrorDetail] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["AssetDeliveryState"]:
        if not data:
            return None
        return cls(
            state=data.get("state") or "",
            errors=[
                ErrorDetail(code=e.get("code") or "", message=e.get("message") or "")
                for e in data.get("errors") or []
            ],
        )

    def describe_errors(self) -> str:
        """Join the structured errors into one message.

        Each entry renders as "code: message", falling back to whichever
        half is present. Entries with neither are skipped.
        """
        parts = []
        for item in self.errors:
            if item.code and item.message:
                parts.append(f"{item.code}: {item.message}")
            elif item.message:
                parts.append(item.message)
            elif item.code:
                parts.append(item.code)
        if not parts:
            return "unknown error"
        return "; ".join(parts)


@dataclass(frozen=True)
class AssetRecord:
    """Snapshot of a remote screenshot or preview resource."""
    id: str
    file_name: str = ""
    file_size: int = 0
    upload_operations: List[UploadOperation] = field(default_factory=list)
    delivery_state: Optional[AssetDeliveryState] = None

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> "AssetRecord":
        attributes = resource.get("attributes") or {}
        return cls(
            id=resource.get("id") or "",
            file_name=attributes.get("fileName") or "",
            file_size=int(attributes.get("fileSize") or 0),
            upload_operations=[
                UploadOperation.from_dict(op)
                for op in attributes.get("uploadOperations") or []
            ],
            delivery_state=AssetDeliveryState.from_dict(attributes.get("assetDeliveryState")),
        )

    @property
    def state(self) -> str:
        return self.delivery_state.state if self.delivery_state else AWAITING_UPLOAD


@dataclass(frozen=True)
class AssetSet:
    """A screenshot or preview set under a version localization."""
    id: str
    set_type: str

    @classmethod
    def from_resource(cls, kind: AssetKind, resource: Dict[str, Any]) -> "AssetSet":
        attributes = resource.get("attributes") or {}
        return cls(id=resource.get("id") or "", set_type=attributes.get(kind.set_type_attribute) or "")


@dataclass
class Page:
    """One fetched batch of a listing."""
    items: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass
class AssetUploadResult:
    """Outcome of uploading a single file."""
    file_name: str
    file_path: str
    asset_id: str
    state: str


@dataclass
class UploadSummary:
    """Outcome of an upload command across all files."""
    version_localization_id: str
    set_id: str
    set_type: str
    kind: AssetKind
    results: List[AssetUploadResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        type_key = "displayType" if self.kind is AssetKind.SCREENSHOT else "previewType"
        return {
            "versionLocalizationId": self.version_localization_id,
            "setId": self.set_id,
            type_key: self.set_type,
            "results": [
                {
                    "fileName": r.file_name,
                    "filePath": r.file_path,
                    "assetId": r.asset_id,
                    "state": r.state,
                }
                for r in self.results
            ],
        }
