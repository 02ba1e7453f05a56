"""omap load generator CLI - Command line interface."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

import yaml

from common.messaging.redis_client import RedisClient
from common.models.results import OperationStatus, RunSummary
from common.models.workload import WorkloadConfig, WorkloadKind
from common.utils import (
    deep_merge,
    format_duration,
    format_size,
    generate_run_id,
    load_yaml,
    parse_size,
)
from loadgen.config import Settings, get_settings
from loadgen.core.driver import WorkloadDriver
from loadgen.core.reporter import ProgressReporter
from loadgen.store import BACKENDS, StoreConnectionError, create_store_client

logger = logging.getLogger(__name__)

# Selector flag -> workload
SELECTORS = {
    "get": WorkloadKind.GET,
    "set": WorkloadKind.SET,
    "clear": WorkloadKind.CLEAR,
    "churn": WorkloadKind.CHURN,
    "multi_churn": WorkloadKind.MULTI_CHURN,
}


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog=settings.app_name,
        description="Generate omap load against RADOS objects to exercise compaction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.app_version}")

    # Workload selectors
    selectors = parser.add_mutually_exclusive_group()
    selectors.add_argument("--get", action="store_true", help="Read back all keys with a paginated scan")
    selectors.add_argument("--set", action="store_true", help="Insert keys (one partition per thread)")
    selectors.add_argument("--clear", action="store_true", help="Remove the target object")
    selectors.add_argument(
        "--churn", action="store_true",
        help="Create, fill and remove one new object per cycle until stopped",
    )
    selectors.add_argument(
        "--multi-churn", dest="multi_churn", action="store_true",
        help="Fill --objects objects, then remove them all, every cycle until stopped",
    )

    # Workload shape
    parser.add_argument("-n", "--keys", dest="key_count", type=int, help="Keys per insertion pass (default: 100000)")
    parser.add_argument("--objects", dest="object_count", type=int, help="Objects per multi-churn cycle (default: 10)")
    parser.add_argument("-t", "--threads", dest="concurrency", type=int, help="Insert partitions/threads (default: 1)")
    parser.add_argument("--value-size", dest="value_size", type=parse_size, help="Value size, e.g. 35 or 4k (default: 35)")
    parser.add_argument("--page-size", dest="page_size", type=int, help="Keys per scan page (default: 1024)")
    parser.add_argument("--counter-width", dest="counter_width", type=int, help="Zero-pad key counters to this width")
    parser.add_argument("--cycles", dest="max_cycles", type=int, help="Stop churn after this many cycles")
    parser.add_argument("--object", dest="object_name", help="Target object (base name for churn objects)")
    parser.add_argument(
        "--workload-file",
        help="YAML file with workload settings (command-line values take precedence)",
    )

    # Connection
    parser.add_argument("-c", "--ceph-conf", dest="conf_path", help=f"Path to ceph.conf (default: {settings.ceph_conf})")
    parser.add_argument("-p", "--pool", dest="pool", help=f"Pool name (default: {settings.pool})")
    parser.add_argument("-u", "--user", dest="user", help="Ceph user id, e.g. admin")
    parser.add_argument("--keyring", dest="keyring_path", help="Path to keyring file")
    parser.add_argument(
        "--backend", choices=BACKENDS, default="rados",
        help="Store backend; 'memory' runs against an in-process store (default: rados)",
    )

    # Reporting
    parser.add_argument("--redis-url", default=settings.redis_url, help="Publish progress events to this Redis")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every key written or read")
    parser.add_argument("--log-level", default=settings.log_level, help=f"Log level (default: {settings.log_level})")

    return parser


def selected_workload(args: argparse.Namespace) -> Optional[WorkloadKind]:
    """Return the workload picked on the command line, if any."""
    for flag, kind in SELECTORS.items():
        if getattr(args, flag, False):
            return kind
    return None


def build_config(args: argparse.Namespace, settings: Settings) -> WorkloadConfig:
    """Resolve settings, workload file and flags into one config."""
    data: dict = {"connection": settings.connection().model_dump()}

    if args.workload_file:
        workload = load_yaml(args.workload_file)
        if not isinstance(workload, dict):
            raise ValueError(f"{args.workload_file}: top level must be a mapping of workload settings")
        data = deep_merge(data, workload)

    connection = {
        name: getattr(args, name)
        for name in ("conf_path", "pool", "user", "keyring_path")
        if getattr(args, name) is not None
    }
    overrides = {
        name: getattr(args, name)
        for name in (
            "object_name", "key_count", "object_count", "concurrency",
            "value_size", "page_size", "counter_width", "max_cycles",
        )
        if getattr(args, name) is not None
    }
    if connection:
        overrides["connection"] = connection
    if args.verbose:
        overrides["verbose"] = True

    return WorkloadConfig(**deep_merge(data, overrides))


def print_summary(summary: RunSummary, config: WorkloadConfig) -> None:
    """Print a human-readable summary of a run."""
    kind = summary.kind

    if kind == WorkloadKind.SET:
        for report in summary.inserts:
            print(
                f"partition {report.producer_tag}: {report.written}/{report.requested} keys inserted, "
                f"{report.failed} failed"
            )
        print(
            f"inserted {summary.keys_written} keys "
            f"({format_size(summary.keys_written * config.value_size)} of values) into {config.object_name}"
        )

    elif kind == WorkloadKind.GET and summary.scan is not None:
        scan = summary.scan
        print(f"read {scan.keys_read} keys")
        if scan.status != OperationStatus.OK:
            print(f"scan {scan.status.value}: {scan.error or scan.object_name}")

    elif kind == WorkloadKind.CLEAR and summary.erase is not None:
        erase = summary.erase
        if erase.ok:
            print(f"removed {erase.object_name}")
        else:
            print(f"remove {erase.object_name} {erase.status.value}: {erase.error}")

    elif kind.is_churn and summary.churn is not None:
        churn = summary.churn
        print(f"{'Cycles':<10} {'Created':<10} {'Erased':<10} {'Keys':<12} {'Failures':<10}")
        print("-" * 56)
        print(
            f"{churn.cycles_completed:<10} {churn.objects_created:<10} {churn.objects_erased:<10} "
            f"{churn.keys_written:<12} {churn.write_failures + churn.erase_failures:<10}"
        )

    status = "stopped" if summary.cancelled else "done"
    print(f"{status} in {format_duration(summary.duration_seconds)}, {summary.failures} failures")


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, driver: WorkloadDriver) -> None:
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, driver.stop)
        except NotImplementedError:
            logger.debug(f"Signal handlers not supported here, {sig.name} will not stop the run cleanly")


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.remove_signal_handler(sig)
        except NotImplementedError:
            pass


async def run_workload(
    config: WorkloadConfig,
    kind: WorkloadKind,
    backend: str = "rados",
    redis_url: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> RunSummary:
    """Connect, run one workload and tear everything down."""
    settings = settings or get_settings()
    loop = asyncio.get_running_loop()
    run_id = generate_run_id()

    redis_client: Optional[RedisClient] = None
    reporter: Optional[ProgressReporter] = None
    if redis_url:
        redis_client = RedisClient(url=redis_url)
        try:
            await redis_client.connect()
            reporter = ProgressReporter(settings.source_id, run_id, redis_client)
        except Exception as e:
            logger.warning(f"Progress reporting disabled, cannot reach Redis: {e}")
            redis_client = None

    store = create_store_client(backend, config.connection)
    try:
        await loop.run_in_executor(None, store.connect)

        async with WorkloadDriver(config, store, reporter=reporter, run_id=run_id) as driver:
            _install_signal_handlers(loop, driver)
            try:
                return await driver.run(kind)
            finally:
                _remove_signal_handlers(loop)
    finally:
        store.shutdown()
        if redis_client is not None:
            await redis_client.disconnect()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    settings = get_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    kind = selected_workload(args)
    if kind is None:
        parser.print_help()
        return 0

    log_level = args.log_level.upper()
    if not isinstance(logging.getLevelName(log_level), int):
        print(f"Error: unknown log level: {args.log_level}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=log_level,
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        config = build_config(args, settings)
    except (ValueError, OSError, yaml.YAMLError) as e:  # ValidationError is a ValueError
        print(f"Error: invalid workload configuration: {e}", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(
            run_workload(config, kind, backend=args.backend, redis_url=args.redis_url, settings=settings)
        )
    except StoreConnectionError as e:
        logger.error(f"Cannot connect to store: {e}")
        return 1

    print_summary(summary, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
