"""
Tests for data models and device type normalization.
"""
import pytest

from connect_assets.models import AssetKind, AssetRecord, UploadOperation


@pytest.mark.parametrize("raw, expected", [
    ("IPHONE_65", "APP_IPHONE_65"),
    (" app_iphone_65 ", "APP_IPHONE_65"),
    ("IMESSAGE_APP_IPHONE_65", "IMESSAGE_APP_IPHONE_65"),
])
def test_screenshot_display_type_normalization(raw, expected):
    assert AssetKind.SCREENSHOT.normalize_set_type(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("IPHONE_65", "IPHONE_65"),
    ("APP_IPHONE_65", "IPHONE_65"),
    ("desktop", "DESKTOP"),
])
def test_preview_type_normalization(raw, expected):
    assert AssetKind.PREVIEW.normalize_set_type(raw) == expected


def test_invalid_device_types():
    with pytest.raises(ValueError, match="device type is required"):
        AssetKind.SCREENSHOT.normalize_set_type("  ")
    with pytest.raises(ValueError, match="unsupported preview type"):
        AssetKind.PREVIEW.normalize_set_type("WATCH_SERIES_7")


def test_upload_operation_defaults():
    op = UploadOperation.from_dict({"url": "https://uploads.example.test/1", "length": 5})

    assert op.method == "PUT"
    assert op.offset == 0
    assert op.request_headers == []


def test_asset_record_without_delivery_state():
    record = AssetRecord.from_resource({"id": "S1", "attributes": {"fileName": "a.png"}})

    assert record.state == "AWAITING_UPLOAD"
    assert record.upload_operations == []
