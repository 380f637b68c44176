"""
Devices configuration loader.

Loads the list of devices to poll from a YAML file.
"""
import logging
from pathlib import Path
from typing import List

import yaml

from .device import DeviceConfig

logger = logging.getLogger(__name__)


class DeviceConfigLoader:
    """
    Loads device entries from YAML.

    Expected layout::

        devices:
          - id: kitchen_meter
            model: SDM120
            modbus_id: 1

    Invalid entries are logged and skipped so one typo does not keep
    the other devices from being polled.
    """

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    def load(self) -> List[DeviceConfig]:
        """
        Load all device entries.

        Returns:
            List of parsed DeviceConfig objects.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            yaml.YAMLError: If the file contains invalid YAML.
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Devices file not found: {self.file_path}")

        logger.info(f"Loading devices from {self.file_path}")

        with open(self.file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not data or not data.get("devices"):
            logger.warning(f"No devices defined in {self.file_path}")
            return []

        devices = []
        seen = set()
        for entry in data["devices"]:
            try:
                device = DeviceConfig.from_dict(entry)
            except Exception as e:
                logger.error(f"Failed to parse device {entry}: {e}")
                continue

            if device.id in seen:
                logger.error(f"Duplicate device id '{device.id}', skipping")
                continue

            seen.add(device.id)
            devices.append(device)

        logger.info(f"Loaded {len(devices)} devices from {self.file_path}")
        return devices
