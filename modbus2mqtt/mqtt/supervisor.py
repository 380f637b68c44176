"""
MQTT connection supervisor.

Periodically checks broker reachability and gates every outbound
publish. Messages are dropped, never queued, while the broker is
unreachable.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .client import MqttClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of broker reachability taken by the periodic check."""
    reachable: bool = False
    reconnecting: bool = False
    checked_at: Optional[datetime] = None


class ConnectionSupervisor:
    """
    Owns broker reachability state and the publish policy.

    The state is only replaced by ``check()``, which the supervisor's own
    timer task calls every ``check_interval`` seconds. Pollers read it
    through the ``state`` property.
    """

    DEFAULT_OPTIONS: Dict[str, Any] = {"qos": 0, "retain": False}

    def __init__(
        self,
        client: Optional[MqttClient],
        base_topic: str,
        check_interval: float = 10.0,
    ):
        """
        Initialize the supervisor.

        Args:
            client: MQTT client, may be None before the bridge connects.
            base_topic: Prefix prepended to every published topic.
            check_interval: Seconds between reachability checks.
        """
        self.client = client
        self.base_topic = base_topic
        self.check_interval = check_interval

        self._state = ConnectionState()
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic reachability check."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._check_loop(), name="mqtt_supervisor")
        logger.debug(f"Connection supervisor started (interval={self.check_interval}s)")

    async def stop(self) -> None:
        """Stop the periodic check."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _check_loop(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            self.check()

    def check(self) -> ConnectionState:
        """Sample the client's connection indicators into the state."""
        client = self.client
        reconnecting = client is not None and client.reconnecting
        self._state = ConnectionState(
            reachable=client is not None and client.connected,
            reconnecting=reconnecting,
            checked_at=datetime.now(timezone.utc),
        )
        if reconnecting:
            logger.error("Not connected to MQTT server!")
        return self._state

    async def publish(
        self,
        topic: str,
        payload: Union[str, bytes],
        options: Optional[Dict[str, Any]] = None,
        base: Optional[str] = None,
    ) -> bool:
        """
        Publish ``payload`` to ``<base>/<topic>``.

        Args:
            topic: Topic below the base topic.
            payload: Message payload.
            options: Overrides for the ``qos``/``retain`` defaults.
            base: Base topic override.

        Returns:
            True once the client acknowledged the send, False if the
            message was dropped.
        """
        full_topic = f"{base or self.base_topic}/{topic}"
        options = {**self.DEFAULT_OPTIONS, **(options or {})}

        client = self.client
        if client is None or client.reconnecting:
            logger.error("Not connected to MQTT server!")
            logger.error(f"Cannot send message: topic: '{full_topic}', payload: '{payload}'")
            return False

        logger.info(f"MQTT publish: topic '{full_topic}', payload '{payload}'")

        try:
            await client.publish(full_topic, payload, **options)
        except ConnectionError as e:
            logger.error(f"Cannot send message: topic: '{full_topic}': {e}")
            return False

        return True
