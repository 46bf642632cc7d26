"""
Module for coordinating asset uploads from discovery through delivery.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .checksum import compute_checksum
from .client import AssetGateway
from .deadline import Deadline
from .errors import DeliveryTimeoutError, NoUploadOperationsError
from .models import AssetFile, AssetKind, AssetSet, AssetUploadResult, UploadSummary
from .pagination import paginate_all
from .poller import DeliveryPoller
from .scanner import FileScanner, open_asset_file
from .uploader import UploadOperationExecutor

logger = logging.getLogger(__name__)


class UploadStage(Enum):
    """Lifecycle of a single file upload."""
    DISCOVERED = "DISCOVERED"
    PLACEHOLDER_CREATED = "PLACEHOLDER_CREATED"
    TRANSFERRED = "TRANSFERRED"
    COMMITTED = "COMMITTED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


class AssetUploadCoordinator:
    """Uploads screenshot or preview files one at a time and waits for delivery."""

    def __init__(self, gateway: AssetGateway, kind: AssetKind,
                 executor: Optional[UploadOperationExecutor] = None,
                 poller: Optional[DeliveryPoller] = None,
                 scanner: Optional[FileScanner] = None):
        """Initialize the upload coordinator.

        Args:
            gateway: Remote API operations
            kind: Whether screenshots or previews are being uploaded
            executor: Transfers file bytes for the upload operations
            poller: Waits for the asset to finish processing
            scanner: Discovers and validates local files
        """
        self.gateway = gateway
        self.kind = kind
        self.executor = executor or UploadOperationExecutor()
        self.poller = poller or DeliveryPoller()
        self.scanner = scanner or FileScanner(kind)

    def ensure_set(self, localization_id: str, set_type: str,
                   deadline: Optional[Deadline] = None) -> AssetSet:
        """Find the set of the given type under a localization, creating it if missing.

        Args:
            localization_id: Version localization that owns the sets
            set_type: Normalized display type or preview type
            deadline: Governing deadline

        Returns:
            The existing or newly created set
        """
        first_page = self.gateway.list_sets(self.kind, localization_id, deadline)
        sets = paginate_all(
            first_page,
            lambda cursor: self.gateway.fetch_page(self.kind, cursor, "sets", deadline),
            self.gateway.base_url,
        )
        for asset_set in sets.items:
            if asset_set.set_type.upper() == set_type.upper():
                logger.info(f"Using existing {self.kind.set_resource} {asset_set.id} ({set_type})")
                return asset_set

        created = self.gateway.create_set(self.kind, localization_id, set_type, deadline)
        logger.info(f"Created {self.kind.set_resource} {created.id} ({set_type})")
        return created

    def upload_file(self, set_id: str, file: Union[AssetFile, str, Path],
                    deadline: Deadline) -> AssetUploadResult:
        """Upload one file and wait for the service to finish processing it.

        Steps: validate, open without following symlinks, checksum, create
        the placeholder, transfer, commit with the checksum, poll.

        Args:
            set_id: Set the asset is attached to
            file: A validated AssetFile, or a path to validate first
            deadline: Governing deadline for every remote call and the poll

        Returns:
            AssetUploadResult with the terminal delivery state

        Raises:
            AssetServiceError: On the first failure at any step
            OSError: If the local file cannot be read
        """
        if not isinstance(file, AssetFile):
            file = self.scanner.validate_file(file)
        stage = UploadStage.DISCOVERED
        asset_id = ""

        try:
            with open_asset_file(file.path) as f:
                size = f.seek(0, 2)
                checksum = compute_checksum(f)

                mime_type = file.media_type if self.kind is AssetKind.PREVIEW else None
                placeholder = self.gateway.create_asset(
                    self.kind, set_id, file.name, size, mime_type, deadline
                )
                asset_id = placeholder.id
                stage = UploadStage.PLACEHOLDER_CREATED
                logger.info(f"Created {self.kind.value} {asset_id} for {file.name} ({size} bytes)")

                if not placeholder.upload_operations:
                    raise NoUploadOperationsError(file.name, asset_id)

                self.executor.execute(
                    f, size, placeholder.upload_operations, deadline, asset_name=file.name
                )
                stage = UploadStage.TRANSFERRED
                logger.info(
                    f"Transferred {file.name} in {len(placeholder.upload_operations)} operation(s)"
                )

            self.gateway.commit_asset(self.kind, asset_id, checksum, deadline)
            stage = UploadStage.COMMITTED
            logger.info(f"Committed {self.kind.value} {asset_id} ({checksum.algorithm} {checksum.hash})")

            state = self.poller.wait_for_delivery(
                asset_id,
                lambda: self.gateway.get_asset(self.kind, asset_id, deadline).delivery_state,
                deadline,
            )
        except Exception as e:
            outcome = UploadStage.TIMED_OUT if isinstance(e, DeliveryTimeoutError) else UploadStage.FAILED
            logger.error(
                f"Upload of {file.path} {outcome.value} after {stage.value} "
                f"(asset {asset_id or 'none'}): {e}"
            )
            raise

        stage = UploadStage.DELIVERED
        logger.info(f"{self.kind.value.capitalize()} {asset_id} {stage.value}: {state}")
        return AssetUploadResult(
            file_name=file.name,
            file_path=str(file.path),
            asset_id=asset_id,
            state=state,
        )

    def upload(self, localization_id: str, path: Union[str, Path], set_type: str,
               deadline: Deadline) -> UploadSummary:
        """Upload every file found at a path into the matching set.

        Files are processed in sorted order and the batch stops at the first
        failure; results for earlier files are not rolled back.

        Args:
            localization_id: Version localization to upload into
            path: File or directory of assets
            set_type: Normalized display type or preview type
            deadline: Governing deadline for the whole batch

        Returns:
            UploadSummary with one result per file
        """
        files = self.scanner.collect(path)
        asset_set = self.ensure_set(localization_id, set_type, deadline)

        results: List[AssetUploadResult] = []
        for file in files:
            results.append(self.upload_file(asset_set.id, file, deadline))

        return UploadSummary(
            version_localization_id=localization_id,
            set_id=asset_set.id,
            set_type=asset_set.set_type or set_type,
            kind=self.kind,
            results=results,
        )
