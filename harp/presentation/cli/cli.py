"""
CLI Module

Architectural Intent:
- `harp` command: deploy, rollback, restart, kill, diff and info against
  the server sets of harp.json
- Use cases come from the composition root; this module only selects
  targets, prints [*]/[+]/[-] lines and maps failures to exit code 1
- --verbose/--debug raise the log level and print tracebacks on failure
"""

import argparse
import sys
import asyncio
import logging
import traceback
from typing import Optional, Sequence

from harp.application.dtos.deployment_dtos import (
    DeployFleetRequest,
    FleetCommandRequest,
    RollbackRequest,
)
from harp.composition_root import HarpContainer, create_container
from harp.domain.errors import HarpError, one_line
from harp.domain.events.deploy_events import (
    HostDeployCompletedEvent,
    HostDeployFailedEvent,
    HostDeployStartedEvent,
    ReleaseTrimFailedEvent,
)
from harp.infrastructure.config import load_config
from harp.infrastructure.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harp",
        description="Harp: deploy an application and its files to a fleet over SSH",
    )
    parser.add_argument(
        "--config", "-c", default="harp.json", help="Path to JSON config"
    )
    parser.add_argument(
        "--set", "-s", dest="sets", action="append", default=[],
        help="Server set to target (repeatable)",
    )
    parser.add_argument(
        "--server", dest="servers", action="append", default=[],
        help="Server address user@host[:port] to target (repeatable)",
    )
    parser.add_argument(
        "--serial", action="store_true", help="Process hosts one at a time"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON logs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    deploy_parser = subparsers.add_parser(
        "deploy", help="Build, upload and restart the application"
    )
    deploy_parser.add_argument(
        "--no-build", action="store_true", help="Do not build or upload the artifact"
    )
    deploy_parser.add_argument(
        "--no-files", action="store_true", help="Do not upload managed files"
    )
    deploy_parser.add_argument(
        "--progress", "-P", action="store_true", help="Show transfer progress"
    )
    deploy_parser.add_argument("--info", help="Build marker text (default: provenance)")

    rollback_parser = subparsers.add_parser(
        "rollback", help="Restore a previous release; no version lists releases"
    )
    rollback_parser.add_argument("version", nargs="?", help="Release id to restore")

    subparsers.add_parser("restart", help="Restart the application")
    subparsers.add_parser("kill", help="Stop the application")
    subparsers.add_parser("diff", help="Compare local managed files with each host")
    subparsers.add_parser("info", help="Print each host's build marker")
    return parser


def _subscribe_progress(container: HarpContainer) -> None:
    async def on_started(event):
        print(f"[*] {event.aggregate_id}: deploying release {event.release}...")

    async def on_completed(event):
        print(f"[+] {event.aggregate_id}: deployed.")

    async def on_failed(event):
        print(f"[-] {event.aggregate_id}: {one_line(event.error_message)}")

    async def on_trim_failed(event):
        print(f"[*] {event.aggregate_id}: old releases not trimmed")

    bus = container.event_bus
    bus.subscribe(HostDeployStartedEvent, on_started)
    bus.subscribe(HostDeployCompletedEvent, on_completed)
    bus.subscribe(HostDeployFailedEvent, on_failed)
    bus.subscribe(ReleaseTrimFailedEvent, on_trim_failed)


def _print_outputs(outputs: dict[str, str]) -> None:
    for host, output in outputs.items():
        print(f"[*] {host}")
        if output:
            print(output.rstrip("\n"))


async def _dispatch(args: argparse.Namespace, container: HarpContainer) -> bool:
    targets = container.config.targets(args.sets, args.servers)
    if not targets:
        print("[-] No servers selected.")
        return False

    if args.command == "deploy":
        _subscribe_progress(container)
        print(f"[*] Deploying {container.app.name} to {len(targets)} host(s)...")
        response = await container.deploy_fleet.execute(
            DeployFleetRequest(
                targets=targets,
                build=not args.no_build,
                files=not args.no_files,
                progress=args.progress,
                info=args.info,
            )
        )
        if not response.success:
            if response.hosts_deployed:
                print(f"[*] Already deployed: {', '.join(response.hosts_deployed)}")
            print(f"[-] Deployment Failed: {one_line(response.message)}")
            return False
        print(f"[+] Deployment Successful: release {response.release}.")
        return True

    if args.command == "rollback":
        response = await container.rollback.execute(
            RollbackRequest(targets=targets, version=args.version)
        )
        if response.listings:
            print("[*] please specify version in the following list to rollback:")
            for host, releases in response.listings.items():
                print(f"[*] {host}")
                for release in releases:
                    print(f"    {release}")
        if not response.success:
            if not response.listings:
                print(f"[-] Rollback Failed: {one_line(response.message)}")
            return False
        print(f"[+] Rollback Successful: {response.message}.")
        return True

    request = FleetCommandRequest(targets=targets)
    if args.command == "restart":
        response = await container.processes.restart(request)
    elif args.command == "kill":
        response = await container.processes.kill(request)
    elif args.command == "diff":
        response = await container.diff_files.execute(request)
    else:
        response = await container.inspect.build_info(request)

    _print_outputs(response.outputs)
    if not response.success:
        print(f"[-] {args.command.capitalize()} Failed: {one_line(response.message)}")
        return False
    if response.message:
        print(f"[+] {response.message}.")
    return True


async def async_main(argv: Optional[Sequence[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    verbose = args.verbose or args.debug
    try:
        config = load_config(args.config)
        # Configure logging based on flags
        if args.debug:
            configure_logging(level=logging.DEBUG, json_format=args.json_logs)
        elif args.verbose:
            configure_logging(level=logging.INFO, json_format=args.json_logs)
        else:
            configure_logging(level=config.log_level, json_format=args.json_logs)

        container = create_container(config, parallel=False if args.serial else None)
        ok = await _dispatch(args, container)
    except (HarpError, ValueError) as e:
        print(f"[-] {one_line(str(e))}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[*] Interrupted.")
        sys.exit(130)
    except Exception as e:
        print(f"[-] {args.command.capitalize()} Failed: {one_line(str(e))}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)

    if not ok:
        sys.exit(1)


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
