import time

import pytest

from robotiq2f import protocol
from robotiq2f.codec import bytes_to_hex, crc16_modbus, hex_to_bytes
from robotiq2f.RobotiqSimulator import RobotiqSimulator
from robotiq2f.status import DetailedStatus, FaultStatus, FingerStatus, ObjectStatus
from robotiq2f.TransportBase import TransportError


class TestRobotiqSimulator:
    """Test class for RobotiqSimulator functionality."""

    @pytest.fixture
    def simulator(self):
        """Create an open simulator with bare (unterminated) responses."""
        sim = RobotiqSimulator(terminator=None, activation_ticks=2, stroke_ticks=5)
        sim.open("/dev/ttySIM0", 115200)
        return sim

    def exchange(self, sim, request):
        """Send an ASCII-hex request and collect the pending response."""
        sim.write(hex_to_bytes(request))
        response = bytearray()
        while True:
            byte, ok = sim.read_byte_with_deadline(time.monotonic())
            if not ok:
                return bytes_to_hex(response)
            response.append(byte)

    def status(self, sim):
        response = self.exchange(sim, protocol.READ_FEEDBACK)
        assert len(response) == protocol.FEEDBACK_RESPONSE_LENGTH
        assert crc16_modbus(response[:-4]) == response[-4:]
        data = hex_to_bytes(response)
        return DetailedStatus.from_bytes(data[3], data[5]), data

    def test_initial_state(self, simulator):
        status, data = self.status(simulator)
        assert not simulator.activated
        assert status == DetailedStatus()
        assert data[7] == 0

    def test_connection_operations(self):
        sim = RobotiqSimulator()
        assert not sim.is_open
        with pytest.raises(TransportError):
            sim.write(b"\x00")
        assert sim.open("/dev/ttySIM0", 9600) is True
        assert sim.is_open
        sim.close()
        assert not sim.is_open

    def test_presets_are_acknowledged(self, simulator):
        assert self.exchange(simulator, protocol.PRESET_RESET) == protocol.PRESET_RESPONSE
        assert self.exchange(simulator, protocol.PRESET_ACTIVATE) == protocol.PRESET_RESPONSE
        assert self.exchange(simulator, protocol.build_position_request(10)) == protocol.PRESET_RESPONSE

    def test_bad_crc_is_ignored(self, simulator):
        assert self.exchange(simulator, protocol.PRESET_RESET[:-4] + "0000") == ""
        assert simulator.requests == [protocol.PRESET_RESET[:-4] + "0000"]

    def test_unknown_request_is_ignored(self, simulator):
        body = "0906000000FF"
        assert self.exchange(simulator, body + crc16_modbus(body)) == ""

    def test_activation_sequence(self, simulator):
        self.exchange(simulator, protocol.PRESET_ACTIVATE)
        status, _ = self.status(simulator)
        assert simulator.activated
        assert status.gsta == FingerStatus.ACTIVATION_IN_PROGRESS

        status, _ = self.status(simulator)
        assert status.gsta == FingerStatus.ACTIVATION_COMPLETE
        assert status.gobj == ObjectStatus.AT_REQUESTED_POSITION

    def test_movement(self, simulator):
        self.exchange(simulator, protocol.PRESET_ACTIVATE)
        self.status(simulator)
        self.status(simulator)

        self.exchange(simulator, protocol.build_position_request(200))
        positions = []
        for _ in range(4):
            status, data = self.status(simulator)
            positions.append(data[7])
        assert positions == [51, 102, 153, 200]
        assert status.gobj == ObjectStatus.AT_REQUESTED_POSITION
        assert data[6] == 200

    def test_command_during_activation_is_delayed(self, simulator):
        self.exchange(simulator, protocol.PRESET_ACTIVATE)
        self.exchange(simulator, protocol.build_position_request(51))
        status, _ = self.status(simulator)
        assert status.gflt == FaultStatus.ACTION_DELAYED

        status, _ = self.status(simulator)
        assert status.gflt == FaultStatus.NONE
        assert status.gobj == ObjectStatus.IN_MOTION

        status, data = self.status(simulator)
        assert data[7] == 51
        assert status.gobj == ObjectStatus.AT_REQUESTED_POSITION

    def test_command_without_activation_faults(self, simulator):
        self.exchange(simulator, protocol.build_position_request(255))
        status, data = self.status(simulator)
        assert status.gflt == FaultStatus.ACTIVATION_NEEDED
        assert data[7] == 0

    def test_reset_keeps_position(self, simulator):
        self.exchange(simulator, protocol.PRESET_ACTIVATE)
        self.status(simulator)
        self.status(simulator)
        self.exchange(simulator, protocol.build_position_request(102))
        self.status(simulator)
        self.status(simulator)

        self.exchange(simulator, protocol.PRESET_RESET)
        status, data = self.status(simulator)
        assert not simulator.activated
        assert data[7] == 102

    def test_inject_fault(self, simulator):
        simulator.inject_fault(FaultStatus.UNDER_VOLTAGE)
        status, _ = self.status(simulator)
        assert status.gflt == FaultStatus.UNDER_VOLTAGE

    def test_terminator_is_appended(self):
        sim = RobotiqSimulator()
        sim.open("/dev/ttySIM0", 115200)
        sim.write(hex_to_bytes(protocol.PRESET_RESET))
        received = bytearray()
        while True:
            byte, ok = sim.read_byte_with_deadline(time.monotonic())
            if not ok:
                break
            received.append(byte)
        assert bytes(received) == hex_to_bytes(protocol.PRESET_RESPONSE) + b"\n"

    def test_cancel_read_discards_pending_bytes(self, simulator):
        simulator.write(hex_to_bytes(protocol.PRESET_RESET))
        simulator.cancel_read()
        assert simulator.read_byte_with_deadline(time.monotonic()) == (None, False)

    def test_read_waits_until_deadline(self, simulator):
        start = time.monotonic()
        assert simulator.read_byte_with_deadline(start + 0.05) == (None, False)
        assert time.monotonic() - start >= 0.04

    def test_noise_stays_in_byte_range(self):
        sim = RobotiqSimulator(enable_noise=True)
        for value in (0, 128, 255):
            assert 0 <= sim._add_noise(value) <= 255
