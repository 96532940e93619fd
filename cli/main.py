"""CLI entry point and argument parsing"""

import argparse
import json
import sys
import uuid
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from cli.auth_handlers import authorize, load_auth_data, save_auth_data
from cli.debug_setup import setup_logging
from cli.status_display import show_report
from errors import TransferError, TransferJobError
from transfer.blob_store import LocalBlobStore
from transfer.extension import EXTENSIONS, ExtensionContext, ExtensionState, ImportJob, get_extension

DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="transfer-cli", description="Import user data into storage services")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging (appends to transfer_debug.log)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    auth_parser = subparsers.add_parser("authorize", help="Obtain tokens for a destination")
    auth_parser.add_argument("service", choices=sorted(EXTENSIONS), help="Destination service")
    auth_parser.add_argument("--data-type", "-t", required=True, help="Data type, e.g. PHOTOS")
    auth_parser.add_argument("--redirect-uri", default=DEFAULT_REDIRECT_URI, help="Registered redirect URI")
    auth_parser.add_argument("--job-id", default=None, help="Job id carried in the state parameter")
    auth_parser.add_argument("--no-browser", action="store_true", help="Print the URL instead of opening a browser")
    auth_parser.add_argument("--output", "-o", type=Path, default=Path("auth.json"), help="Where to save the tokens")

    import_parser = subparsers.add_parser("import", help="Import a container file into a destination")
    import_parser.add_argument("service", choices=sorted(EXTENSIONS), help="Destination service")
    import_parser.add_argument("container", type=Path, help="JSON file with the container to import")
    import_parser.add_argument("--data-type", "-t", required=True, help="Data type, e.g. PHOTOS")
    import_parser.add_argument("--auth-file", "-a", type=Path, default=Path("auth.json"), help="Tokens from authorize")
    import_parser.add_argument("--job-id", default=None, help="Job id (default: random)")
    import_parser.add_argument("--blob-dir", default=None, help="Job blob store directory")
    return parser


def run_authorize(args, extension) -> int:
    job_id = args.job_id or str(uuid.uuid4())
    auth_data = authorize(
        extension,
        args.data_type.upper(),
        args.redirect_uri,
        job_id,
        console,
        open_browser=not args.no_browser,
    )
    if auth_data is None:
        return 1
    save_auth_data(auth_data, args.output)
    console.print(f"Tokens saved to {args.output}")
    return 0


def run_import(args, extension) -> int:
    auth_data = load_auth_data(args.auth_file, extension.oauth_config.token_url)
    payload = json.loads(args.container.read_text(encoding="utf-8"))

    job = ImportJob(extension, args.data_type.upper(), auth_data, job_id=args.job_id)
    console.print(f"[bold]Job {job.job_id}[/bold]: importing {job.data_type} into {extension.service_id}")
    report = job.run(payload)
    show_report(report, console)
    return 1 if report.failures else 0


def main():
    """Entry point for the CLI"""
    args = build_parser().parse_args()
    setup_logging(args.debug, console)

    try:
        extension = get_extension(args.service)
        context = ExtensionContext()
        if args.command == "import" and args.blob_dir:
            context.blob_store = LocalBlobStore(args.blob_dir)
        if extension.initialize(context) != ExtensionState.READY:
            console.print(f"[red]ERROR:[/red] {extension.service_id} is not configured, see the log above")
            sys.exit(1)

        try:
            if args.command == "authorize":
                sys.exit(run_authorize(args, extension))
            sys.exit(run_import(args, extension))
        finally:
            extension.close()

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except TransferJobError as e:
        console.print(f"\n[red]Job failed:[/red] {e}")
        sys.exit(2)
    except (TransferError, ValidationError, ValueError, OSError) as e:
        console.print(f"\n[red]Error:[/red] {e}")
        if args.debug:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
