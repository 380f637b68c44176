"""
Modbus transport sessions.
"""
from .session import ModbusSession, PymodbusSession, ReadResult, pack_bits, pack_registers

__all__ = [
    "ModbusSession",
    "PymodbusSession",
    "ReadResult",
    "pack_bits",
    "pack_registers",
]
