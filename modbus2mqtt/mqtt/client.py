"""
MQTT client for the bridge.

Thin asyncio facade over paho-mqtt. paho runs its network loop in a
background thread; results are handed back to the event loop with
``call_soon_threadsafe``.
"""
import asyncio
import logging
import ssl
import threading
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ..config import MqttSettings

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, str], Union[None, Awaitable[None]]]

PROTOCOL_VERSIONS = {
    3: mqtt.MQTTv31,
    4: mqtt.MQTTv311,
    5: mqtt.MQTTv5,
}


class ConnectionStatus(str, Enum):
    """Broker connection status as observed from paho callbacks."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class MqttClient:
    """
    Asyncio wrapper around ``paho.mqtt.client.Client``.

    paho reconnects on its own after a connection loss; while it does,
    ``reconnecting`` is True. ``publish`` resolves once paho reports the
    message as sent.
    """

    def __init__(self, settings: MqttSettings):
        """
        Initialize the client.

        Args:
            settings: MQTT connection settings.
        """
        self.settings = settings
        self.state_topic = f"{settings.base_topic}/bridge/state"

        self._client: Optional[mqtt.Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._status = ConnectionStatus.DISCONNECTED
        self._connection_error: Optional[str] = None
        self._connection_future: Optional[asyncio.Future] = None

        # mid -> future; mids acknowledged before their future was registered
        self._pending: Dict[int, asyncio.Future] = {}
        self._acked: Set[int] = set()
        self._publish_lock = threading.RLock()

        self._subscriptions: Set[str] = set()
        self._handlers: List[MessageHandler] = []
        self._handler_tasks: Set[asyncio.Task] = set()

    # ==================== Status ====================

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    @property
    def reconnecting(self) -> bool:
        return self._status == ConnectionStatus.RECONNECTING

    def _set_status(self, status: ConnectionStatus) -> None:
        if self._status != status:
            logger.debug(f"MQTT status: {self._status.value} -> {status.value}")
            self._status = status

    # ==================== Connection Management ====================

    def _build_client(self) -> mqtt.Client:
        """Create and configure the paho client from settings."""
        settings = self.settings

        kwargs: Dict[str, Any] = {
            "callback_api_version": mqtt.CallbackAPIVersion.VERSION2,
            "client_id": settings.client_id or "",
        }
        if settings.version:
            logger.debug(f"Using MQTT protocol version: {settings.version}")
            kwargs["protocol"] = PROTOCOL_VERSIONS[settings.version]

        client = mqtt.Client(**kwargs)

        if settings.client_id:
            logger.debug(f"Using MQTT client ID: '{settings.client_id}'")

        if settings.user and settings.password:
            client.username_pw_set(settings.user, settings.password)

        uri = urlparse(settings.server)
        use_tls = uri.scheme in ("mqtts", "ssl", "tls") or settings.ca is not None
        if use_tls:
            if settings.ca:
                logger.debug(f"MQTT SSL/TLS: Path to CA certificate = {settings.ca}")
            if settings.key and settings.cert:
                logger.debug(f"MQTT SSL/TLS: Path to client key = {settings.key}")
                logger.debug(f"MQTT SSL/TLS: Path to client certificate = {settings.cert}")

            client.tls_set(
                ca_certs=str(settings.ca) if settings.ca else None,
                certfile=str(settings.cert) if settings.key and settings.cert else None,
                keyfile=str(settings.key) if settings.key and settings.cert else None,
                cert_reqs=ssl.CERT_REQUIRED if settings.reject_unauthorized else ssl.CERT_NONE,
            )
            if not settings.reject_unauthorized:
                logger.debug("MQTT reject_unauthorized set false, ignoring certificate warnings.")
                client.tls_insecure_set(True)

        client.will_set(self.state_topic, payload="offline", qos=0, retain=True)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_publish = self._on_publish
        client.on_message = self._on_message
        return client

    def _broker_address(self) -> tuple:
        uri = urlparse(self.settings.server)
        secure = uri.scheme in ("mqtts", "ssl", "tls")
        return uri.hostname or "localhost", uri.port or (8883 if secure else 1883)

    async def connect(self) -> None:
        """
        Connect to the broker and wait for the first CONNACK.

        Raises:
            ConnectionError: If the broker refuses or does not answer in time.
        """
        if self.connected:
            return

        self._loop = asyncio.get_running_loop()
        self._client = self._build_client()
        self._connection_future = self._loop.create_future()
        self._connection_error = None

        host, port = self._broker_address()
        logger.info(f"Connecting to MQTT server at {self.settings.server}")
        if self.settings.keepalive:
            logger.debug(f"Using MQTT keepalive: {self.settings.keepalive}")

        self._set_status(ConnectionStatus.CONNECTING)
        self._client.connect_async(host, port, keepalive=self.settings.keepalive)
        self._client.loop_start()

        try:
            await asyncio.wait_for(
                self._connection_future,
                timeout=self.settings.connect_timeout,
            )
        except asyncio.TimeoutError:
            await self.disconnect()
            raise ConnectionError(f"MQTT connection timeout to {self.settings.server}")
        except Exception:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Stop the network loop and disconnect."""
        if self._client is None:
            return

        logger.info("Disconnecting from MQTT server")
        client, self._client = self._client, None
        self._set_status(ConnectionStatus.DISCONNECTED)
        try:
            client.disconnect()
            client.loop_stop()
        except Exception as e:
            logger.warning(f"Error during MQTT disconnect: {e}")
        finally:
            self._fail_pending(ConnectionError("MQTT client disconnected"))

    # ==================== Publish / Subscribe ====================

    def publish(
        self,
        topic: str,
        payload: Union[str, bytes],
        qos: int = 0,
        retain: bool = False,
    ) -> "asyncio.Future[None]":
        """
        Publish a message.

        Returns:
            Future resolved when paho reports the message as sent.

        Raises:
            ConnectionError: If the client is not connected or paho rejects the message.
        """
        if self._client is None or self._loop is None:
            raise ConnectionError("MQTT client is not connected")

        future = self._loop.create_future()
        with self._publish_lock:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise ConnectionError(f"MQTT publish failed: {mqtt.error_string(info.rc)}")
            if info.mid in self._acked:
                self._acked.discard(info.mid)
                future.set_result(None)
            else:
                self._pending[info.mid] = future
        return future

    def subscribe(self, topic: str, qos: int = 0) -> None:
        """Subscribe to ``topic``; subscriptions are renewed after reconnects."""
        self._subscriptions.add(topic)
        if self._client is not None and self.connected:
            self._client.subscribe(topic, qos=qos)
        logger.debug(f"Subscribed to {topic}")

    def add_message_handler(self, handler: MessageHandler) -> None:
        """Register a callback receiving ``(topic, payload)`` for incoming messages."""
        self._handlers.append(handler)

    # ==================== paho Callbacks (network thread) ====================

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        rc = reason_code.value if hasattr(reason_code, "value") else reason_code

        if rc == 0:
            self._set_status(ConnectionStatus.CONNECTED)
            logger.info("Connected to MQTT server")
            for topic in self._subscriptions:
                client.subscribe(topic)
            self._resolve_connection(None)
        else:
            self._connection_error = f"Connection refused with code {reason_code}"
            self._set_status(ConnectionStatus.RECONNECTING)
            logger.error(f"MQTT connection failed: {self._connection_error}")
            self._resolve_connection(ConnectionError(self._connection_error))

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if self._status == ConnectionStatus.DISCONNECTED:
            return
        self._set_status(ConnectionStatus.RECONNECTING)
        logger.warning(f"Disconnected from MQTT server (reason: {reason_code}), reconnecting")
        self._fail_pending(ConnectionError("MQTT connection lost"))

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None) -> None:
        with self._publish_lock:
            future = self._pending.pop(mid, None)
            if future is None:
                self._acked.add(mid)
                return
        self._call_in_loop(self._set_future_result, future)

    def _on_message(self, client, userdata, msg) -> None:
        try:
            payload = msg.payload.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"Ignoring non UTF-8 message on {msg.topic}")
            return
        self._call_in_loop(self._dispatch_message, msg.topic, payload)

    # ==================== Event Loop Helpers ====================

    def _call_in_loop(self, callback: Callable, *args: Any) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)

    def _resolve_connection(self, error: Optional[Exception]) -> None:
        future = self._connection_future
        if future is None:
            return
        if error is None:
            self._call_in_loop(self._set_future_result, future)
        else:
            self._call_in_loop(self._set_future_exception, future, error)

    def _fail_pending(self, error: Exception) -> None:
        with self._publish_lock:
            pending = list(self._pending.values())
            self._pending.clear()
            self._acked.clear()
        for future in pending:
            self._call_in_loop(self._set_future_exception, future, error)

    @staticmethod
    def _set_future_result(future: asyncio.Future) -> None:
        if not future.done():
            future.set_result(None)

    @staticmethod
    def _set_future_exception(future: asyncio.Future, error: Exception) -> None:
        if not future.done():
            future.set_exception(error)

    def _dispatch_message(self, topic: str, payload: str) -> None:
        logger.debug(f"MQTT message received on {topic}: {payload[:200]}")
        for handler in self._handlers:
            try:
                result = handler(topic, payload)
            except Exception as e:
                logger.error(f"Error in MQTT message handler: {e}")
                continue
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._handler_tasks.add(task)
                task.add_done_callback(self._handler_done)

    def _handler_done(self, task: asyncio.Task) -> None:
        self._handler_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Error in MQTT message handler: {task.exception()}")
