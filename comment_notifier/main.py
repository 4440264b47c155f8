"""Main entry point for the comment notifier."""

import argparse
import asyncio
import logging
import signal
import sys

from .config import Config, load_config
from .lbry_client import LbryClient
from .notifier import EmailNotifier
from .reconciler import Reconciler
from .scheduler import Scheduler
from .services import CommentService, open_database


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def log_config(config: Config, logger: logging.Logger) -> None:
    """Log the effective configuration, one line per section."""
    for section, values in config.model_dump().items():
        for key, value in values.items():
            logger.info("%s.%s = %s", section, key, value)


def install_signal_handlers(scheduler: Scheduler, logger: logging.Logger) -> None:
    """Let SIGTERM/SIGINT stop the scheduler after the current run."""
    loop = asyncio.get_running_loop()

    def _shutdown(signame: str) -> None:
        logger.info("Received %s, finishing current run and exiting...", signame)
        scheduler.stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _shutdown, sig.name)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform; Ctrl-C still raises KeyboardInterrupt
            pass


async def async_main(args, logger) -> int:
    """Load configuration, open collaborators and run until stopped."""
    try:
        logger.info("Loading configuration from %s", args.config)
        config = load_config(args.config)
        log_config(config, logger)

        logger.info("Initializing database at %s", config.storage.database_path)
        db = await open_database(config.storage.database_path)
        logger.info("Database initialized successfully")
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception("Fatal error during startup: %s", e)
        return 1

    try:
        async with LbryClient(config.api) as client:
            reconciler = Reconciler(
                source=client,
                store=CommentService(db),
                notifier=EmailNotifier(config.smtp),
                page_size=config.api.page_size,
                account_concurrency=config.watcher.account_concurrency,
            )
            scheduler = Scheduler(
                reconciler.run,
                interval=config.watcher.interval,
                run_on_start=config.watcher.run_on_start,
            )

            if args.once:
                logger.info("Running single reconciliation...")
                report = await scheduler.run_once()
                if report is None:
                    return 1
                for failure in report.failures:
                    logger.warning("Failure: %s %s: %s", failure.kind.value, failure.key, failure.message)
                return 0

            logger.info("Starting application")
            install_signal_handlers(scheduler, logger)
            await scheduler.run_forever()
            return 0
    finally:
        await db.close()
        logger.info("Database connection closed")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch LBRY claims for new comments and send an e-mail for each",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                     # Run with default config.yaml
  %(prog)s -c myconfig.yaml    # Run with custom config
  %(prog)s -v                  # Run with verbose logging
  %(prog)s --once              # Reconcile once and exit
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run once and exit (don't keep watching)",
    )

    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        return asyncio.run(async_main(args, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
