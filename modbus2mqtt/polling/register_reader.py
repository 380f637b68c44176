"""
Register reader.

Resolves one field spec to a decoded value using an already
addressed Modbus session.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from ..descriptors.definitions import FieldSpec, FunctionCode
from ..transport.session import ModbusSession, ReadResult

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a field that produced no value."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

READ_METHODS: Dict[FunctionCode, str] = {
    FunctionCode.READ_COILS: "read_coils",
    FunctionCode.READ_DISCRETE_INPUTS: "read_discrete_inputs",
    FunctionCode.READ_HOLDING_REGISTERS: "read_holding_registers",
    FunctionCode.READ_INPUT_REGISTERS: "read_input_registers",
}


class RegisterReader:
    """
    Reads and decodes single fields.

    Failures never propagate: an unknown function code, a transport
    error, a timeout or a failing decoder are logged and turn into
    ``MISSING`` so sibling fields are still read.
    """

    def __init__(
        self,
        session: ModbusSession,
        read_timeout: Optional[float] = None,
    ):
        """
        Initialize the reader.

        Args:
            session: Modbus session, addressed by the caller.
            read_timeout: Seconds to wait for one read. None waits forever.
        """
        self.session = session
        self.read_timeout = read_timeout

    async def read(self, spec: FieldSpec, key: str = "", device_id: str = "") -> Any:
        """
        Read one field.

        Args:
            spec: Field read specification.
            key: Field key, used in log messages.
            device_id: Device id, used in log messages.

        Returns:
            The decoded value, the first data word when the spec has no
            decoder, or MISSING on failure.
        """
        method = READ_METHODS.get(spec.function_code)
        if method is None:
            logger.error(
                f"Unknown function code {spec.function_code} for {device_id}.{key}"
            )
            return MISSING

        logger.debug(
            f"Polling modbus device {device_id}: fc={int(spec.function_code)}, "
            f"address={spec.address}, readlen={spec.length}"
        )

        try:
            result: ReadResult = await asyncio.wait_for(
                getattr(self.session, method)(spec.address, spec.length),
                timeout=self.read_timeout,
            )
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.error(
                f"While reading modbus {device_id}.{key}: timeout after {self.read_timeout}s"
            )
            return MISSING
        except Exception as e:
            logger.error(f"While reading modbus {device_id}.{key}: {e}")
            return MISSING

        interpreted = result.data[0] if result.data else None
        if spec.decode is None:
            return interpreted

        try:
            return spec.decode(interpreted, result.buffer)
        except Exception as e:
            logger.error(f"While decoding {device_id}.{key}: {e}")
            return MISSING
