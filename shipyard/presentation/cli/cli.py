"""
CLI Module

Architectural Intent:
- Command-line interface for Shipyard
- Entry point for all user interactions
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
import traceback
from pathlib import Path

from shipyard.composition_root import create_container
from shipyard.domain.errors import ShipyardError
from shipyard.domain.events.pipeline_events import StageFinishedEvent
from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.value_objects.kube_context import KubeContext
from shipyard.infrastructure.config import load_config
from shipyard.infrastructure.logging import configure_logging, level_from_name
from shipyard.infrastructure.telemetry.otel_exporter import create_exporter

_STATUS_MARK = {"passed": "[+]", "failed": "[-]", "skipped": "[ ]"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Shipyard: build, push, deploy and verify a containerized application"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON lines"
    )
    parser.add_argument(
        "--config", default=None, help="Path to JSON config (default: shipyard.json)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the build/deploy/verify pipeline")
    run_parser.add_argument("--build-id", "-b", type=int, help="Build number (default: next in history)")
    run_parser.add_argument("--image", "-i", help="Image name, e.g. registry.example.com/team/app")
    run_parser.add_argument("--app", "-a", help="Application (deployment) name")
    run_parser.add_argument("--cluster", help="Cluster name")
    run_parser.add_argument("--kubeconfig", "-k", help="Path to kubeconfig")
    run_parser.add_argument("--workspace", "-w", help="Workspace directory")
    run_parser.add_argument("--timeout", type=int, help="Deploy stage budget in seconds")

    history_parser = subparsers.add_parser("history", help="Show recorded pipeline runs")
    history_parser.add_argument("--limit", "-n", type=int, default=20, help="Number of runs")
    history_parser.add_argument("--build-id", "-b", type=int, help="Show one run in detail")

    ingress_parser = subparsers.add_parser("ingress", help="Ingress routing table")
    ingress_sub = ingress_parser.add_subparsers(dest="ingress_command")
    ingress_apply = ingress_sub.add_parser("apply", help="Submit an Ingress manifest")
    ingress_apply.add_argument("manifest", help="Path to Ingress manifest")
    ingress_apply.add_argument("--kubeconfig", "-k", required=True, help="Path to kubeconfig")
    ingress_apply.add_argument("--context", help="kubeconfig context")
    ingress_route = ingress_sub.add_parser("route", help="Show which backend serves a request")
    ingress_route.add_argument("manifest", help="Path to Ingress manifest")
    ingress_route.add_argument("host", help="Request host")
    ingress_route.add_argument("path", nargs="?", default="/", help="Request path")

    cluster_parser = subparsers.add_parser("cluster", help="Local cluster lifecycle")
    cluster_sub = cluster_parser.add_subparsers(dest="cluster_command")
    cluster_create = cluster_sub.add_parser("create", help="Create a cluster from a topology file")
    cluster_create.add_argument("topology", help="Path to kind cluster config")
    cluster_create.add_argument("--kubeconfig", "-k", default="kubeconfig.yaml", help="Where to write credentials")
    cluster_create.add_argument("--no-ingress", action="store_true", help="Skip ingress controller install")
    cluster_delete = cluster_sub.add_parser("delete", help="Delete a cluster")
    cluster_delete.add_argument("name", help="Cluster name")

    return parser


def _apply_run_overrides(config, args):
    app = config.app
    registry = config.registry
    cluster = config.cluster
    deploy = config.deploy
    if args.app:
        app = dataclasses.replace(app, name=args.app)
    if args.workspace:
        app = dataclasses.replace(app, workspace=args.workspace)
    if args.image:
        registry = dataclasses.replace(registry, image=args.image)
    if args.cluster:
        cluster = dataclasses.replace(cluster, name=args.cluster)
    if args.kubeconfig:
        cluster = dataclasses.replace(cluster, kubeconfig=args.kubeconfig)
    if args.timeout:
        deploy = dataclasses.replace(deploy, timeout_seconds=args.timeout)
    return dataclasses.replace(config, app=app, registry=registry, cluster=cluster, deploy=deploy)


async def _run_command(container, args, verbose: bool) -> int:
    try:
        environment = container.config.to_environment(build_id=args.build_id)
    except ValueError as e:
        print(f"[-] Invalid configuration: {e}")
        return 1

    async def print_stage(event: StageFinishedEvent) -> None:
        mark = _STATUS_MARK.get(event.status, "[?]")
        print(f"{mark} {event.stage}: {event.status} ({event.elapsed_seconds:.1f}s)")

    container.event_bus.subscribe(StageFinishedEvent, print_stage)

    exporter = None
    telemetry = container.config.telemetry
    if telemetry.endpoint:
        exporter = await create_exporter(telemetry.endpoint, insecure=telemetry.insecure)
        exporter.subscribe(container.event_bus)

    print(f"[*] Shipping {environment.app_name} to {environment.cluster_name}...")
    try:
        run = await container.run_pipeline.execute(environment)
    finally:
        if exporter is not None:
            await exporter.export()

    if verbose:
        for result in run.results:
            if result.output:
                print(f"--- {result.stage} ---\n{result.output}")

    if run.succeeded:
        report = run.phase_for("on_success")
        print(f"[+] Build #{run.build_id} deployed successfully.")
        if report and report.output:
            print(report.output)
        return 0

    failed = run.failed_stage
    print(f"[-] Build #{run.build_id} failed at {failed.stage}: {failed.error}")
    diagnostics = run.phase_for("on_failure")
    if diagnostics and diagnostics.output:
        print("[*] Diagnostics:")
        print(diagnostics.output)
    return 1


def _history_command(container, args) -> int:
    history = container.run_history
    if args.build_id is not None:
        run = history.get(BuildId(args.build_id))
        if run is None:
            print(f"[-] No run #{args.build_id}")
            return 1
        print(json.dumps(run, indent=2))
        return 0

    runs = history.list_runs(limit=args.limit)
    if not runs:
        print("[*] No runs recorded.")
    for run in runs:
        print(f"#{run['build_id']:<6} {run['outcome']:<8} {run['started_at']}")
    return 0


async def _ingress_command(container, args, parser) -> int:
    use_case = container.apply_ingress
    if args.ingress_command == "route":
        backend = use_case.route(args.manifest, args.host, args.path)
        if backend is None:
            print(f"[-] No route for {args.host}{args.path}")
            return 1
        print(f"[+] {args.host}{args.path} -> {backend}")
        return 0
    if args.ingress_command == "apply":
        kube = KubeContext(Path(args.kubeconfig), args.context)
        table = await use_case.execute(args.manifest, kube)
        print(f"[+] Ingress '{table.name}' applied ({len(table.rules)} rules).")
        return 0
    parser.print_help()
    return 1


async def _cluster_command(container, args, parser) -> int:
    use_case = container.provision_cluster
    if args.cluster_command == "create":
        print(f"[*] Provisioning cluster from {args.topology}...")
        topology = await use_case.execute(
            args.topology, args.kubeconfig, install_ingress=not args.no_ingress
        )
        print(f"[+] Cluster '{topology.name}' ready ({len(topology.nodes)} nodes).")
        print(f"[*] kubeconfig: {args.kubeconfig}")
        return 0
    if args.cluster_command == "delete":
        if await use_case.teardown(args.name):
            print(f"[+] Cluster '{args.name}' deleted.")
        else:
            print(f"[*] Cluster '{args.name}' does not exist.")
        return 0
    parser.print_help()
    return 1


async def async_main():
    parser = build_parser()
    args = parser.parse_args()

    config = load_config(args.config)

    # Configure logging based on flags
    if args.debug:
        configure_logging(level=logging.DEBUG, json_format=args.json_logs)
    elif args.verbose:
        configure_logging(level=logging.INFO, json_format=args.json_logs)
    else:
        configure_logging(level=level_from_name(config.log_level), json_format=args.json_logs)

    verbose = args.verbose or args.debug

    if args.command is None:
        parser.print_help()
        return

    if args.command == "run":
        config = _apply_run_overrides(config, args)

    container = create_container(config)
    try:
        if args.command == "run":
            code = await _run_command(container, args, verbose)
        elif args.command == "history":
            code = _history_command(container, args)
        elif args.command == "ingress":
            code = await _ingress_command(container, args, parser)
        else:
            code = await _cluster_command(container, args, parser)
    except ShipyardError as e:
        print(f"[-] {e}")
        if verbose:
            traceback.print_exc()
        code = 1
    except Exception as e:
        print(f"[-] Unexpected error: {e}")
        if verbose:
            traceback.print_exc()
        code = 1
    finally:
        container.run_history.close()

    if code:
        sys.exit(code)


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
