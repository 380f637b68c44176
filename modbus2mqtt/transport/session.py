"""
Modbus transport session.

Wraps pymodbus async clients behind the small interface the poller needs:
address a unit, then issue one of the four read requests.
"""
import asyncio
import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union

from pymodbus import FramerType
from pymodbus.client import AsyncModbusSerialClient, AsyncModbusTcpClient
from pymodbus.exceptions import ModbusException

from ..config import ModbusSettings
from ..exceptions import ConfigError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class ReadResult:
    """Result of a register read: decoded words plus the raw payload."""
    data: List[Union[int, bool]] = field(default_factory=list)
    buffer: bytes = b""


class ModbusSession(Protocol):
    """Interface consumed by the register reader and result assembler."""

    lock: asyncio.Lock

    async def connect(self) -> bool: ...

    async def close(self) -> None: ...

    async def set_unit(self, unit_id: int) -> None: ...

    async def read_coils(self, address: int, length: int) -> ReadResult: ...

    async def read_discrete_inputs(self, address: int, length: int) -> ReadResult: ...

    async def read_holding_registers(self, address: int, length: int) -> ReadResult: ...

    async def read_input_registers(self, address: int, length: int) -> ReadResult: ...


def pack_registers(registers: Sequence[int]) -> bytes:
    """Registers as big-endian bytes, as they travel on the wire."""
    return struct.pack(f">{len(registers)}H", *registers)


def pack_bits(bits: Sequence[bool]) -> bytes:
    """Bits packed LSB first, eight per byte."""
    packed = bytearray((len(bits) + 7) // 8)
    for index, bit in enumerate(bits):
        if bit:
            packed[index // 8] |= 1 << (index % 8)
    return bytes(packed)


class PymodbusSession:
    """
    Modbus session backed by pymodbus.

    A single session is shared by every device on the same bus. The
    ``lock`` serializes whole poll cycles so the addressed unit id cannot
    change between reads.
    """

    def __init__(self, settings: ModbusSettings):
        """
        Initialize the session.

        Args:
            settings: Modbus transport settings.
        """
        self.settings = settings
        self.lock = asyncio.Lock()
        self._unit_id: Optional[int] = None
        self._client: Union[AsyncModbusTcpClient, AsyncModbusSerialClient, None] = None

    @property
    def unit_id(self) -> Optional[int]:
        return self._unit_id

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.connected

    def _create_client(self) -> Union[AsyncModbusTcpClient, AsyncModbusSerialClient]:
        transport = self.settings.transport.lower()
        if transport == "tcp":
            return AsyncModbusTcpClient(
                host=self.settings.host,
                port=self.settings.port,
                timeout=self.settings.timeout,
            )
        if transport == "rtu":
            return AsyncModbusSerialClient(
                port=self.settings.serial_port,
                framer=FramerType.RTU,
                baudrate=self.settings.baudrate,
                parity=self.settings.parity,
                stopbits=self.settings.stopbits,
                bytesize=self.settings.bytesize,
                timeout=self.settings.timeout,
            )
        raise ConfigError(f"Unknown Modbus transport: {self.settings.transport}", source="MODBUS_TRANSPORT")

    async def connect(self) -> bool:
        """Open the underlying client. Returns True when connected."""
        if self.is_connected:
            return True

        # One client per session, reused across reconnect attempts
        if self._client is None:
            self._client = self._create_client()
        target = (
            f"{self.settings.host}:{self.settings.port}"
            if self.settings.transport.lower() == "tcp"
            else self.settings.serial_port
        )

        logger.info(f"Connecting to Modbus {self.settings.transport} at {target}")
        await self._client.connect()

        if self._client.connected:
            logger.info(f"Connected to Modbus at {target}")
        else:
            logger.warning(f"Failed to connect to Modbus at {target}")
        return self._client.connected

    async def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
            logger.info("Modbus session closed")

    async def set_unit(self, unit_id: int) -> None:
        """
        Address subsequent reads to ``unit_id``.

        Raises:
            TransportError: If the session is not connected or the id is invalid.
        """
        if not 0 <= unit_id <= 247:
            raise TransportError(f"Invalid unit id: {unit_id}", unit_id=unit_id)
        if not self.is_connected and not await self.connect():
            raise TransportError("Modbus session is not connected", unit_id=unit_id)
        self._unit_id = unit_id

    async def read_coils(self, address: int, length: int) -> ReadResult:
        response = await self._request("read_coils", address, length)
        bits = list(response.bits[:length])
        return ReadResult(data=bits, buffer=pack_bits(bits))

    async def read_discrete_inputs(self, address: int, length: int) -> ReadResult:
        response = await self._request("read_discrete_inputs", address, length)
        bits = list(response.bits[:length])
        return ReadResult(data=bits, buffer=pack_bits(bits))

    async def read_holding_registers(self, address: int, length: int) -> ReadResult:
        response = await self._request("read_holding_registers", address, length)
        registers = list(response.registers)
        return ReadResult(data=registers, buffer=pack_registers(registers))

    async def read_input_registers(self, address: int, length: int) -> ReadResult:
        response = await self._request("read_input_registers", address, length)
        registers = list(response.registers)
        return ReadResult(data=registers, buffer=pack_registers(registers))

    async def _request(self, method: str, address: int, length: int):
        """Issue a pymodbus read and turn error responses into TransportError."""
        if self._client is None or self._unit_id is None:
            raise TransportError("Session is not addressed", address=address)

        try:
            response = await getattr(self._client, method)(
                address=address,
                count=length,
                device_id=self._unit_id,
            )
        except ModbusException as e:
            raise TransportError(
                f"Modbus exception: {e}", unit_id=self._unit_id, address=address
            ) from e

        if response.isError():
            raise TransportError(
                f"Modbus error response: {response}",
                unit_id=self._unit_id,
                address=address,
            )
        return response
