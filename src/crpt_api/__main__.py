# ABOUTME: CLI entry point for crpt-api.
# ABOUTME: Provides the 'submit' command for sending document files to the CRPT API.

import argparse
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from logging.handlers import RotatingFileHandler
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path

from .config import load_config, Config
from .crpt import CrptApi
from .documents import load_document
from .errors import ApiRequestFailed, CrptApiError, InvalidConfiguration
from .report import create_report, save_report

DEFAULT_CONFIG_PATH = Path("config.yaml")


def setup_logging(log_path: Path | None = None, verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        log_path: Optional path for log file. If provided, enables rotating file logging.
        verbose: Log at DEBUG instead of INFO.
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))
    root_logger.addHandler(console_handler)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        root_logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


class ProgressTracker:
    """Thread-safe progress tracker with periodic logging."""

    def __init__(self, total: int, label: str, logger: logging.Logger, interval: int = 10):
        self.total = total
        self.label = label
        self.logger = logger
        self.interval = interval
        self.count = 0
        self.lock = threading.Lock()
        self.last_logged = 0

    def increment(self) -> None:
        with self.lock:
            self.count += 1
            if self.count == self.total or (self.count - self.last_logged) >= self.interval:
                self.logger.info(f"{self.label}... {self.count}/{self.total}")
                self.last_logged = self.count


def submit_documents(
    client: CrptApi,
    paths: list[Path],
    signature: str,
    workers: int,
) -> tuple[int, list[dict]]:
    """Submit document files concurrently through one shared client.

    Args:
        client: Rate-limited client shared by all workers.
        paths: Document JSON files.
        signature: Signature header value.
        workers: Number of submitting threads.

    Returns:
        Number of accepted documents and one error dict per failed document.
    """
    logger = logging.getLogger(__name__)

    submitted = 0
    errors: list[dict] = []
    results_lock = threading.Lock()
    cancel = threading.Event()
    progress = ProgressTracker(len(paths), "Submitting documents", logger)

    def submit_one(path: Path) -> None:
        nonlocal submitted
        try:
            document = load_document(path)
            client.create_document(document, signature, cancel=cancel)
            logger.debug(f"Submitted {path}")
            with results_lock:
                submitted += 1
        except (CrptApiError, OSError) as e:
            logger.warning(f"Failed to submit {path}: {e}")
            error = {"document": str(path), "type": type(e).__name__, "error": str(e)}
            if isinstance(e, ApiRequestFailed):
                error["status_code"] = e.status_code
            with results_lock:
                errors.append(error)
        finally:
            progress.increment()

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = [executor.submit(submit_one, p) for p in paths]
        try:
            for future in as_completed(futures):
                future.result()  # Propagate unexpected exceptions
        except KeyboardInterrupt:
            logger.warning("Interrupted, cancelling pending submissions...")
            cancel.set()
            executor.shutdown(wait=False, cancel_futures=True)
            raise

    return submitted, errors


def build_client(config: Config) -> CrptApi:
    return CrptApi.from_config(config)


def cmd_submit(args: argparse.Namespace) -> None:
    """Submit the given document files."""
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config)
        signature = config.get_signature()
    except InvalidConfiguration as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    rate = config.rate_limit
    logger.info(
        f"Submitting {len(args.documents)} document(s) to {config.endpoint} "
        f"(limit {rate.max_requests} per {rate.window_seconds:g}s)"
    )

    start_time = datetime.now(timezone.utc)
    workers = args.workers or config.request_limit
    with build_client(config) as client:
        submitted, errors = submit_documents(client, args.documents, signature, workers)

    report = create_report(start_time, submitted, errors)
    if args.report:
        save_report(report, args.report)
        logger.info(f"Report saved to: {args.report}")

    logger.info(
        f"Submission complete: {report.documents_submitted} submitted, "
        f"{report.documents_failed} failed [{report.status}] ({report.duration_seconds:.1f}s)"
    )

    if errors:
        sys.exit(2)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="crpt-api",
        description="Rate-limited document submission to the CRPT API",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write logs to this file (rotated at 10 MB)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    submit_parser = subparsers.add_parser(
        "submit",
        help="Submit document JSON files",
    )
    submit_parser.add_argument(
        "documents",
        type=Path,
        nargs="+",
        help="Document JSON files to submit",
    )
    submit_parser.add_argument(
        "--report", "-r",
        type=Path,
        help="Write a JSON run report to this path",
    )
    submit_parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Submitting threads (default: the configured request limit)",
    )

    args = parser.parse_args(argv)

    setup_logging(args.log_file, args.verbose)

    if args.command == "submit":
        cmd_submit(args)


if __name__ == "__main__":
    main()
