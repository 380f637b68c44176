"""
Result assembler.

Runs the register reader over every field of a device's descriptor
and builds the document published for one poll cycle.
"""
import json
import logging
import math
from typing import Any, Dict

from ..devices.device import Device
from ..exceptions import SessionAddressingError
from ..transport.session import ModbusSession
from ..utils.paths import set_path
from .register_reader import MISSING, RegisterReader

logger = logging.getLogger(__name__)


class ResultAssembler:
    """
    Builds poll cycle documents.

    The session lock is held for the whole cycle: the unit id is set
    once and every field is read strictly in descriptor order.
    """

    def __init__(self, session: ModbusSession, reader: RegisterReader):
        self.session = session
        self.reader = reader

    async def assemble(self, device: Device) -> Dict[str, Any]:
        """
        Read every field of ``device``.

        Args:
            device: Device to poll.

        Returns:
            Nested document; failed fields are left out.

        Raises:
            SessionAddressingError: If the session cannot be addressed to
                the device. Nothing should be published for the cycle.
        """
        result: Dict[str, Any] = {}

        async with self.session.lock:
            try:
                await self.session.set_unit(device.unit_id)
            except Exception as e:
                logger.error(
                    f"While addressing modbus unit {device.unit_id} for {device.id}: {e}"
                )
                raise SessionAddressingError(device.id, device.unit_id, str(e)) from e

            for key, spec in device.descriptor:
                value = await self.reader.read(spec, key=key, device_id=device.id)
                if value is MISSING:
                    continue
                set_path(result, key, value)

        return result

    @staticmethod
    def serialize(result: Dict[str, Any]) -> str:
        """
        Serialize a cycle result to JSON.

        NaN and infinite floats are written as null so the payload stays
        strict JSON.
        """
        return json.dumps(_finite(result), default=str, allow_nan=False)

    async def poll(self, device: Device) -> str:
        """Assemble and serialize one cycle for ``device``."""
        return self.serialize(await self.assemble(device))


def _finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(item) for item in value]
    return value
