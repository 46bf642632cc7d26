"""
Command-line interface for managing screenshots and app previews.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .client import ConnectClient
from .config import ClientConfig, load_config
from .coordinator import AssetUploadCoordinator
from .deadline import Deadline
from .errors import APIError, AssetServiceError, is_not_found
from .models import AssetKind, AssetRecord, AssetSet
from .pagination import paginate_all, validate_next_url
from .poller import DeliveryPoller
from .uploader import UploadOperationExecutor

logger = logging.getLogger(__name__)

KIND_COMMANDS = {
    "screenshots": AssetKind.SCREENSHOT,
    "previews": AssetKind.PREVIEW,
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Whether to enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_client(config: ClientConfig) -> ConnectClient:
    """Create the API client from configuration."""
    return ConnectClient(token=config.token, base_url=config.base_url, timeout=config.timeout)


def create_executor(config: ClientConfig) -> UploadOperationExecutor:
    """Create the executor that transfers bytes to upload URLs."""
    return UploadOperationExecutor(timeout=config.upload_timeout)


def print_output(data: Dict[str, Any], pretty: bool = False) -> None:
    print(json.dumps(data, indent=2 if pretty else None))


def _set_to_dict(kind: AssetKind, asset_set: AssetSet) -> Dict[str, Any]:
    return {"id": asset_set.id, kind.set_type_attribute: asset_set.set_type}


def _asset_to_dict(asset: AssetRecord) -> Dict[str, Any]:
    return {
        "id": asset.id,
        "fileName": asset.file_name,
        "fileSize": asset.file_size,
        "state": asset.state,
    }


def handle_upload(args: argparse.Namespace, kind: AssetKind, config: ClientConfig) -> None:
    """Handle the upload command.

    Args:
        args: Command line arguments
        kind: Asset kind being uploaded
        config: Client configuration
    """
    set_type = kind.normalize_set_type(args.device_type)

    with create_client(config) as client:
        executor = create_executor(config)
        try:
            coordinator = AssetUploadCoordinator(
                client,
                kind,
                executor=executor,
                poller=DeliveryPoller(interval=config.poll_interval),
            )
            deadline = Deadline(config.upload_timeout)
            summary = coordinator.upload(args.version_localization, Path(args.path), set_type, deadline)
        finally:
            executor.close()

    print_output(summary.to_dict(), args.pretty)


def handle_list(args: argparse.Namespace, kind: AssetKind, config: ClientConfig) -> None:
    """Handle the list command.

    Args:
        args: Command line arguments
        kind: Asset kind being listed
        config: Client configuration
    """
    with create_client(config) as client:
        deadline = Deadline(config.timeout)

        def fetch_sets(cursor: str):
            return client.fetch_page(kind, cursor, "sets", deadline)

        if args.next:
            page = fetch_sets(args.next)
        else:
            page = client.list_sets(kind, args.version_localization, deadline)
        if args.paginate:
            page = paginate_all(page, fetch_sets, client.base_url)

        sets: List[Dict[str, Any]] = []
        for asset_set in page.items:
            assets = client.list_assets(kind, asset_set.id, deadline)
            if args.paginate:
                assets = paginate_all(
                    assets,
                    lambda cursor: client.fetch_page(kind, cursor, "assets", deadline),
                    client.base_url,
                )
            sets.append({
                "set": _set_to_dict(kind, asset_set),
                kind.resource: [_asset_to_dict(a) for a in assets.items],
            })

    result: Dict[str, Any] = {"versionLocalizationId": args.version_localization, "sets": sets}
    if page.next_cursor:
        result["next"] = page.next_cursor
    print_output(result, args.pretty)


def handle_delete(args: argparse.Namespace, kind: AssetKind, config: ClientConfig) -> None:
    """Handle the delete command.

    Args:
        args: Command line arguments
        kind: Asset kind being deleted
        config: Client configuration
    """
    with create_client(config) as client:
        try:
            client.delete_asset(kind, args.id, Deadline(config.timeout))
        except APIError as e:
            if is_not_found(e):
                raise AssetServiceError(f"{kind.value} {args.id} not found") from e
            raise
    logger.info(f"Deleted {kind.value} {args.id}")
    print_output({"id": args.id, "deleted": True}, args.pretty)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(description="Manage App Store screenshots and app previews")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose logging")
    parser.add_argument('-c', '--config', type=Path,
                        help="Path to config file")
    parser.add_argument('--pretty', action='store_true',
                        help="Pretty-print JSON output")

    kind_parsers = parser.add_subparsers(dest='kind', required=True)
    for name, kind in KIND_COMMANDS.items():
        kind_parser = kind_parsers.add_parser(name, help=f"Manage {name}")
        commands = kind_parser.add_subparsers(dest='command', required=True)

        upload_parser = commands.add_parser('upload', help=f"Upload {name} for a localization")
        upload_parser.add_argument('--version-localization', required=True,
                                   help="App Store version localization ID")
        upload_parser.add_argument('--path', required=True,
                                   help=f"Path to a {kind.value} file or directory")
        upload_parser.add_argument('--device-type', required=True,
                                   help="Device type (e.g. IPHONE_65)")

        list_parser = commands.add_parser('list', help=f"List {name} for a localization")
        list_parser.add_argument('--version-localization', default="",
                                 help="App Store version localization ID")
        list_parser.add_argument('--paginate', action='store_true',
                                 help="Fetch all pages")
        list_parser.add_argument('--next', default="",
                                 help="Fetch the set page at this URL")

        delete_parser = commands.add_parser('delete', help=f"Delete a {kind.value} by ID")
        delete_parser.add_argument('--id', required=True,
                                   help=f"{kind.value.capitalize()} ID")
        delete_parser.add_argument('--confirm', action='store_true',
                                   help="Confirm deletion")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    for name in ('version_localization', 'path', 'device_type', 'id', 'next'):
        if isinstance(getattr(args, name, None), str):
            setattr(args, name, getattr(args, name).strip())

    if args.command == 'upload':
        for flag in ('version_localization', 'path', 'device_type'):
            if not getattr(args, flag):
                parser.error(f"--{flag.replace('_', '-')} is required")
    if args.command == 'list':
        if not args.version_localization and not args.next:
            parser.error("--version-localization is required")
    if args.command == 'delete' and not args.confirm:
        parser.error("--confirm is required to delete")

    kind = KIND_COMMANDS[args.kind]

    try:
        config = load_config(args.config)
        if args.command == 'list' and args.next:
            validate_next_url(args.next, config.base_url)

        if args.command == 'upload':
            handle_upload(args, kind, config)
        elif args.command == 'list':
            handle_list(args, kind, config)
        elif args.command == 'delete':
            handle_delete(args, kind, config)

    except Exception as e:
        logger.error(f"Error: {e}")
        print(f"Error: {args.kind} {args.command}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
