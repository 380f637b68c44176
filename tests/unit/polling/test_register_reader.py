"""
Unit tests for RegisterReader.

Covers function code dispatch, defaults, decoding and per-field
failure handling.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from modbus2mqtt.descriptors.definitions import FieldSpec, FunctionCode
from modbus2mqtt.exceptions import TransportError
from modbus2mqtt.polling.register_reader import MISSING, RegisterReader
from modbus2mqtt.transport.session import ReadResult
from tests.factories import FieldSpecFactory


@pytest.fixture
def mock_session():
    session = MagicMock()
    result = ReadResult(data=[235], buffer=b"\x00\xeb")
    session.read_coils = AsyncMock(return_value=ReadResult(data=[True], buffer=b"\x01"))
    session.read_discrete_inputs = AsyncMock(return_value=ReadResult(data=[False], buffer=b"\x00"))
    session.read_holding_registers = AsyncMock(return_value=result)
    session.read_input_registers = AsyncMock(return_value=result)
    return session


class TestDispatch:
    """Test function code dispatch."""

    @pytest.mark.asyncio
    async def test_defaults_read_one_input_register(self, mock_session):
        reader = RegisterReader(mock_session)

        await reader.read(FieldSpec(address=10))

        mock_session.read_input_registers.assert_awaited_once_with(10, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "function_code, method",
        [
            (FunctionCode.READ_COILS, "read_coils"),
            (FunctionCode.READ_DISCRETE_INPUTS, "read_discrete_inputs"),
            (FunctionCode.READ_HOLDING_REGISTERS, "read_holding_registers"),
            (FunctionCode.READ_INPUT_REGISTERS, "read_input_registers"),
        ],
    )
    async def test_dispatch_by_function_code(self, mock_session, function_code, method):
        reader = RegisterReader(mock_session)

        await reader.read(FieldSpecFactory(address=20, function_code=function_code, length=2))

        getattr(mock_session, method).assert_awaited_once_with(20, 2)

    @pytest.mark.asyncio
    async def test_unknown_function_code_yields_missing(self, mock_session, caplog):
        reader = RegisterReader(mock_session)

        value = await reader.read(FieldSpec(address=1, function_code=6), key="x", device_id="dev")

        assert value is MISSING
        assert "Unknown function code" in caplog.text
        mock_session.read_input_registers.assert_not_awaited()
        mock_session.read_holding_registers.assert_not_awaited()


class TestDecoding:
    """Test value extraction and decoding."""

    @pytest.mark.asyncio
    async def test_decode_receives_first_word_and_buffer(self, mock_session):
        decode = MagicMock(return_value=23.5)
        reader = RegisterReader(mock_session)

        value = await reader.read(FieldSpec(address=5, decode=decode))

        assert value == 23.5
        decode.assert_called_once_with(235, b"\x00\xeb")

    @pytest.mark.asyncio
    async def test_without_decode_publishes_first_word(self, mock_session):
        reader = RegisterReader(mock_session)

        assert await reader.read(FieldSpec(address=5)) == 235

    @pytest.mark.asyncio
    async def test_empty_data_passes_none(self, mock_session):
        mock_session.read_input_registers.return_value = ReadResult(data=[], buffer=b"")
        reader = RegisterReader(mock_session)

        assert await reader.read(FieldSpec(address=5)) is None

    @pytest.mark.asyncio
    async def test_failing_decode_yields_missing(self, mock_session, caplog):
        def explode(x, raw):
            raise ZeroDivisionError("boom")

        reader = RegisterReader(mock_session)

        assert await reader.read(FieldSpec(address=5, decode=explode), key="temp") is MISSING
        assert "While decoding" in caplog.text

    @pytest.mark.asyncio
    async def test_decoding_is_repeatable(self, mock_session):
        reader = RegisterReader(mock_session)
        spec = FieldSpec(address=5, decode=lambda x, raw: x / 10)

        values = [await reader.read(spec) for _ in range(3)]

        assert values == [23.5, 23.5, 23.5]


class TestFailures:
    """Test per-field failure handling."""

    @pytest.mark.asyncio
    async def test_transport_error_yields_missing(self, mock_session, caplog):
        mock_session.read_input_registers.side_effect = TransportError("Timed out")
        reader = RegisterReader(mock_session)

        value = await reader.read(FieldSpec(address=5), key="temp", device_id="dev")

        assert value is MISSING
        assert "While reading modbus dev.temp" in caplog.text

    @pytest.mark.asyncio
    async def test_any_exception_yields_missing(self, mock_session):
        mock_session.read_holding_registers.side_effect = OSError("port closed")
        reader = RegisterReader(mock_session)

        spec = FieldSpec(address=5, function_code=FunctionCode.READ_HOLDING_REGISTERS)
        assert await reader.read(spec) is MISSING

    @pytest.mark.asyncio
    async def test_hung_read_times_out(self, fake_session, caplog):
        fake_session.unit_id = 1
        fake_session.hang("input", 5)
        reader = RegisterReader(fake_session, read_timeout=0.05)

        value = await reader.read(FieldSpec(address=5), key="temp", device_id="dev")

        assert value is MISSING
        assert "timeout" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, fake_session):
        fake_session.hang("input", 5)
        reader = RegisterReader(fake_session)

        task = asyncio.create_task(reader.read(FieldSpec(address=5)))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


def test_missing_is_falsy():
    assert not MISSING
    assert repr(MISSING) == "MISSING"
