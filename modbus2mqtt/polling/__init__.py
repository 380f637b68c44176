"""
Device polling.

Reads registers, assembles documents and schedules poll cycles.
"""
from .register_reader import MISSING, RegisterReader
from .assembler import ResultAssembler
from .poller import DevicePoller

__all__ = [
    "MISSING",
    "RegisterReader",
    "ResultAssembler",
    "DevicePoller",
]
