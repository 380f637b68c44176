"""
Per-device polling loop.

Repeatedly assembles a device's document and publishes it through
the connection supervisor until the poller is removed.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from ..devices.device import Device
from ..exceptions import SessionAddressingError
from ..mqtt.supervisor import ConnectionSupervisor
from .assembler import ResultAssembler

logger = logging.getLogger(__name__)


class DevicePoller:
    """
    Drives one device's poll and publish cycle.

    Features:
    - One asyncio task per device, cycles never overlap
    - Cycle failures are logged and the loop carries on
    - ``remove()`` stops the loop at the next cycle boundary
    """

    def __init__(
        self,
        device: Device,
        assembler: ResultAssembler,
        supervisor: ConnectionSupervisor,
        interval: float = 10.0,
    ):
        """
        Initialize the poller.

        Args:
            device: Device to poll.
            assembler: Builds the document for each cycle.
            supervisor: Gate for publishing to MQTT.
            interval: Delay between cycles in seconds.
        """
        self.device = device
        self.assembler = assembler
        self.supervisor = supervisor
        self.interval = interval

        self._task: Optional[asyncio.Task] = None
        self._stopped = False

        self.total_cycles = 0
        self.failed_cycles = 0
        self.published = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def removed(self) -> bool:
        return self._stopped

    def start(self) -> asyncio.Task:
        """
        Start the polling loop.

        Returns:
            The loop task. Calling start() again returns the running task.
        """
        if self.is_running:
            return self._task

        self._task = asyncio.create_task(
            self._poll_loop(),
            name=f"poll_{self.device.id}",
        )
        logger.info(
            f"Started polling {self.device.id} "
            f"(model={self.device.model}, unit={self.device.unit_id}, interval={self.interval}s)"
        )
        return self._task

    def remove(self) -> None:
        """
        Ask the loop to stop.

        An in-flight cycle still completes; no new cycle starts after it.
        """
        self._stopped = True
        logger.info(f"Polling of {self.device.id} will stop after the current cycle")

    async def stop(self) -> None:
        """Stop the loop and cancel any in-flight cycle."""
        self.remove()
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def poll(self) -> None:
        """Run one cycle: assemble, serialize and publish."""
        self.total_cycles += 1

        try:
            payload = await self.assembler.poll(self.device)
        except SessionAddressingError:
            # Already logged by the assembler; skip publishing this cycle
            self.failed_cycles += 1
            return

        if await self.supervisor.publish(self.device.id, payload):
            self.published += 1

    async def _poll_loop(self) -> None:
        logger.debug(f"Starting poll loop for {self.device.id}")

        while not self._stopped:
            try:
                await self.poll()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed_cycles += 1
                logger.error(f"Error while polling {self.device.id}: {e}")

            if self._stopped:
                break

            await asyncio.sleep(self.interval)

        logger.debug(f"Poll loop ended for {self.device.id}")

    def get_stats(self) -> Dict[str, Any]:
        """Get polling statistics for this device."""
        return {
            "device_id": self.device.id,
            "model": self.device.model,
            "running": self.is_running,
            "removed": self._stopped,
            "total_cycles": self.total_cycles,
            "failed_cycles": self.failed_cycles,
            "published": self.published,
        }
