"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Heartbeat worker, the long-lived detached half of the heartbeat daemon.

The worker emits one heartbeat immediately on startup and then one every
interval (default 5 minutes) until it receives SIGTERM or SIGINT. A failed
emission is logged and dropped; it never stops the loop.

Run as a standalone process:

    python -m vigil.heartbeat.worker /path/to/workspace --interval 300
"""

import signal
import sys
import time
from pathlib import Path
from typing import Callable

import click
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from vigil.heartbeat.records import HeartbeatRecord, generate_nonce
from vigil.heartbeat.workspace import HeartbeatWorkspace
from vigil.logging_config import get_logger, log_heartbeat_emission, setup_logging

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 5 * 60


class HeartbeatWorker:
    """
    Periodic heartbeat emitter bound to one workspace.

    Each emission captures the current time, draws a 128-bit nonce, commits
    to both with Poseidon and appends the record to ``heartbeats.jsonl``.
    The worker never reads the PID file and only exits on a signal.
    """

    JOB_ID = "heartbeat_emission"

    def __init__(
        self,
        workspace: HeartbeatWorkspace,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
        nonce_source: Callable[[], int] = generate_nonce,
    ):
        """
        Initialize HeartbeatWorker.

        Args:
            workspace: Workspace whose heartbeat log receives the records
            interval_seconds: Period between emissions (default: 300)
            clock: Source of the current time in seconds
            nonce_source: Source of fresh nonces
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.workspace = workspace
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.nonce_source = nonce_source

        self.emitted = 0
        self.failed_emissions = 0

        # One executor thread keeps the worker the log's only sequential writer
        self.scheduler = BlockingScheduler(executors={"default": ThreadPoolExecutor(max_workers=1)})
        self._running = False
        self._stop_requested = False

    def emit_heartbeat(self) -> HeartbeatRecord:
        """
        Produce and append one heartbeat record.

        Returns:
            The appended record

        Raises:
            Exception: Whatever the clock, hasher or file append raised
        """
        timestamp = int(self.clock())
        nonce = self.nonce_source()
        record = HeartbeatRecord.create(timestamp=timestamp, nonce=nonce)

        self.workspace.append_record(record)
        return record

    def _emit_job(self) -> None:
        """
        Scheduled emission.

        Errors are logged and discarded so one failed emission never ends
        the worker.
        """
        try:
            record = self.emit_heartbeat()
        except Exception as e:
            self.failed_emissions += 1
            log_heartbeat_emission(
                logger,
                timestamp=int(time.time()),
                heartbeat_hash="",
                success=False,
                error=f"{type(e).__name__}: {e}",
                failed_emissions=self.failed_emissions,
            )
            return

        self.emitted += 1
        log_heartbeat_emission(
            logger,
            timestamp=record.timestamp,
            heartbeat_hash=str(record.hash),
        )

    def start(self) -> None:
        """
        Emit the first heartbeat and schedule the periodic job.

        Does not block; ``run`` blocks.
        """
        if self._running:
            logger.warning("Heartbeat worker is already running")
            return

        self._stop_requested = False
        self._emit_job()

        if self._stop_requested:
            logger.info("Heartbeat worker stopped during its first emission; not scheduling")
            return

        self.scheduler.add_job(
            self._emit_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Emit heartbeat",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        self._running = True

        logger.info(
            f"Heartbeat worker started for {self.workspace.root} "
            f"(interval: {self.interval_seconds}s)"
        )

    def stop(self) -> None:
        """
        Shut the scheduler down without waiting for an in-flight emission.

        A stop requested while ``start`` is still emitting the first
        heartbeat is remembered, and ``start`` then schedules nothing.
        """
        self._stop_requested = True
        if not self._running:
            return

        self._running = False
        if self.scheduler.running:
            try:
                self.scheduler.shutdown(wait=False)
            except Exception as e:
                logger.error(f"Error stopping heartbeat scheduler: {e}", exc_info=True)

        logger.info(
            f"Heartbeat worker stopped (emitted: {self.emitted}, failed: {self.failed_emissions})"
        )

    def is_running(self) -> bool:
        return self._running

    def run(self) -> None:
        """
        Run until a termination signal arrives.

        Installs SIGTERM and SIGINT handlers that stop the scheduler, then
        blocks in the scheduler loop.
        """
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down...")
            self.stop()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        self.start()
        if self._running and not self._stop_requested:
            self.scheduler.start()


def run_heartbeat_worker(
    workspace_path: Path,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    log_level: str = "INFO",
) -> int:
    """
    Run the heartbeat worker as a standalone service.

    Logs go to ``heartbeat.log`` in the workspace since the detached
    process has no terminal.

    Returns:
        Process exit code
    """
    workspace = HeartbeatWorkspace(workspace_path)
    workspace.ensure_dirs()

    setup_logging(level=log_level, log_file=workspace.log_path, json_format=True)

    worker = HeartbeatWorker(workspace, interval_seconds=interval_seconds)
    worker.run()
    return 0


@click.command(name="heartbeat-worker")
@click.argument("workspace", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds between heartbeats",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Worker log level",
)
def main(workspace: Path, interval: float, log_level: str):
    """Emit hash-committed heartbeats into WORKSPACE until terminated."""
    sys.exit(run_heartbeat_worker(workspace, interval_seconds=interval, log_level=log_level.upper()))


if __name__ == "__main__":
    main()
