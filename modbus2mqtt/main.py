"""
modbus2mqtt - Main Entry Point.

Starts the bridge that:
1. Connects to the MQTT broker and the Modbus bus
2. Polls every configured device at a fixed interval
3. Publishes one JSON document per device and cycle
"""
import asyncio
import logging
import signal
import sys

from .bridge import Bridge
from .config import get_settings

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def setup_signal_handlers(stop_event: asyncio.Event, loop: asyncio.AbstractEventLoop):
    """Setup signal handlers for graceful shutdown."""
    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(signal_handler))


async def main():
    """Main entry point."""
    settings = get_settings()
    setup_logging(settings.log_level)

    bridge = Bridge(settings)
    stop_event = asyncio.Event()
    setup_signal_handlers(stop_event, asyncio.get_running_loop())

    try:
        await bridge.start()
        await stop_event.wait()
    except ConnectionError as e:
        logger.error(f"Failed to start bridge: {e}")
    except FileNotFoundError as e:
        logger.error(f"{e} (set DEVICES_FILE to the devices list)")
    finally:
        await bridge.stop()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
