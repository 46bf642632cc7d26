from .client import AssetGateway, ConnectClient
from .coordinator import AssetUploadCoordinator
from .deadline import Deadline
from .models import AssetFile, AssetKind, AssetUploadResult, Page, UploadSummary
from .pagination import paginate_all
from .poller import DeliveryPoller
from .scanner import FileScanner
from .uploader import UploadOperationExecutor

__version__ = "0.1.0"

__all__ = [
    "AssetGateway",
    "ConnectClient",
    "AssetUploadCoordinator",
    "Deadline",
    "AssetFile",
    "AssetKind",
    "AssetUploadResult",
    "Page",
    "UploadSummary",
    "paginate_all",
    "DeliveryPoller",
    "FileScanner",
    "UploadOperationExecutor",
]
