"""
Bridge orchestration.

Wires the Modbus session, the MQTT client and one poller per
configured device, and handles bridge requests received over MQTT.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Set

from .config import Modbus2MqttSettings, get_settings
from .descriptors.registry import DescriptorRegistry, default_registry
from .devices.device import Device, DeviceConfig
from .devices.loader import DeviceConfigLoader
from .exceptions import Modbus2MqttError
from .mqtt.client import MqttClient
from .mqtt.supervisor import ConnectionSupervisor
from .polling.assembler import ResultAssembler
from .polling.poller import DevicePoller
from .polling.register_reader import RegisterReader
from .transport.session import ModbusSession, PymodbusSession

logger = logging.getLogger(__name__)


class Bridge:
    """
    Main bridge orchestrator.

    Topics below the base topic:
        <device_id>                    - Published device documents
        bridge/state                   - online/offline (retained, LWT)
        bridge/request/device/add      - JSON device entry to start polling
        bridge/request/device/remove   - Device id to stop polling
    """

    REQUEST_PREFIX = "bridge/request/"

    def __init__(
        self,
        settings: Optional[Modbus2MqttSettings] = None,
        registry: Optional[DescriptorRegistry] = None,
        mqtt_client: Optional[MqttClient] = None,
        session: Optional[ModbusSession] = None,
    ):
        """
        Initialize the bridge.

        Args:
            settings: Bridge settings.
            registry: Descriptor registry, defaults to the built-in models.
            mqtt_client: MQTT client, created from settings if omitted.
            session: Modbus session, created from settings if omitted.
        """
        self.settings = settings or get_settings()
        self.registry = registry or default_registry()
        self.mqtt = mqtt_client or MqttClient(self.settings.mqtt)
        self.session = session or PymodbusSession(self.settings.modbus)

        self.supervisor = ConnectionSupervisor(
            self.mqtt,
            base_topic=self.settings.mqtt.base_topic,
            check_interval=self.settings.mqtt.check_interval,
        )
        self.assembler = ResultAssembler(
            self.session,
            RegisterReader(self.session, read_timeout=self.settings.polling.read_timeout),
        )

        self.pollers: Dict[str, DevicePoller] = {}
        # Removed pollers whose last cycle may still be running
        self._retired: Set[DevicePoller] = set()
        self._running = False

    @property
    def base_topic(self) -> str:
        return self.settings.mqtt.base_topic

    async def start(self, devices: Optional[List[DeviceConfig]] = None) -> None:
        """
        Start the bridge.

        Args:
            devices: Devices to poll; read from the devices file if omitted.
        """
        logger.info("Starting modbus2mqtt bridge...")

        await self.mqtt.connect()
        self.supervisor.start()

        await self.session.connect()

        await self.supervisor.publish("bridge/state", "online", {"retain": True})

        self.mqtt.add_message_handler(self.on_message)
        self.mqtt.subscribe(f"{self.base_topic}/{self.REQUEST_PREFIX}#")

        if devices is None:
            devices = DeviceConfigLoader(self.settings.devices_file).load()

        for config in devices:
            self.add_device(config)

        self._running = True
        logger.info(f"Bridge started, polling {len(self.pollers)} devices")

    async def stop(self) -> None:
        """Stop polling and disconnect."""
        logger.info("Stopping modbus2mqtt bridge...")
        was_running, self._running = self._running, False

        for poller in [*self.pollers.values(), *self._retired]:
            await poller.stop()
        self.pollers.clear()
        self._retired.clear()

        await self.supervisor.stop()
        if was_running:
            await self.supervisor.publish("bridge/state", "offline", {"retain": True})
        await self.mqtt.disconnect()
        await self.session.close()

        logger.info("Bridge stopped")

    def add_device(self, config: DeviceConfig) -> Optional[DevicePoller]:
        """
        Create and start a poller for a device.

        Returns:
            The poller, or None if the device could not be added.
        """
        if config.id in self.pollers:
            logger.error(f"Device {config.id} is already polled")
            return None

        try:
            device = Device.create(config, self.registry)
        except Modbus2MqttError as e:
            logger.error(e.message)
            return None

        poller = DevicePoller(
            device,
            self.assembler,
            self.supervisor,
            interval=self.settings.polling.interval,
        )
        self.pollers[device.id] = poller
        poller.start()
        return poller

    def remove_device(self, device_id: str) -> bool:
        """
        Stop polling a device and drop the poller.

        Returns:
            True if the device was known.
        """
        poller = self.pollers.pop(device_id, None)
        if poller is None:
            logger.warning(f"Cannot remove unknown device {device_id}")
            return False

        poller.remove()
        self._retired = {p for p in self._retired if p.is_running}
        self._retired.add(poller)
        logger.info(f"Removed device {device_id}")
        return True

    def on_message(self, topic: str, payload: str) -> None:
        """Handle bridge requests received over MQTT."""
        prefix = f"{self.base_topic}/{self.REQUEST_PREFIX}"
        if not topic.startswith(prefix):
            logger.debug(f"Ignoring message on {topic}")
            return

        request = topic[len(prefix):]
        if request == "device/remove":
            self.remove_device(payload.strip())
        elif request == "device/add":
            try:
                entry = json.loads(payload)
                if not isinstance(entry, dict):
                    raise ValueError("expected a JSON object")
                config = DeviceConfig.from_dict(entry)
            except (ValueError, Modbus2MqttError) as e:
                logger.error(f"Invalid device add request '{payload}': {e}")
                return
            self.add_device(config)
        else:
            logger.debug(f"Unknown bridge request: {request}")

    def get_stats(self) -> Dict[str, Any]:
        """Get bridge statistics."""
        state = self.supervisor.state
        return {
            "running": self._running,
            "mqtt": {
                "status": self.mqtt.status.value,
                "reachable": state.reachable,
                "reconnecting": state.reconnecting,
            },
            "devices": [poller.get_stats() for poller in self.pollers.values()],
        }
