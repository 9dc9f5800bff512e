"""Entry point for the rug-radar analysis API."""

import asyncio
import signal

from loguru import logger

from config.settings import settings
from rugradar.api.server import run_api_server
from rugradar.engine.metrics import metrics
from rugradar.utils.logger import setup_logger


async def main() -> None:
    setup_logger(
        json_logs=settings.json_logs,
        level=settings.log_level,
        quiet_tags=settings.log_quiet_tags,
    )
    logger.info("Starting rug-radar...")

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    server_task = asyncio.create_task(run_api_server())

    done, pending = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    logger.info(f"Shutdown complete ({metrics.format_stats_line()})")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
