"""
Shared test fixtures and configuration for the SMPP client tests.
"""

import asyncio

import pytest

from smppcli.transport import BindResult, ConnStatus


class FakeTransmitter:
    """Transmitter stand-in whose bind future settles with a preset result."""

    def __init__(self, result: BindResult, addr: str = 'localhost:6200'):
        self.addr = addr
        self.result = result
        self.bind_calls = 0
        self.closed = False

    def bind(self):
        self.bind_calls += 1
        future = asyncio.get_running_loop().create_future()
        future.set_result(self.result)
        return future

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


@pytest.fixture
def connected_transmitter():
    """Fake transmitter whose bind succeeds."""
    return FakeTransmitter(BindResult(ConnStatus.CONNECTED))


@pytest.fixture
def rejected_transmitter():
    """Fake transmitter whose bind is rejected by the SMSC."""
    return FakeTransmitter(
        BindResult(ConnStatus.BIND_FAILED, Exception('authentication failed'))
    )


@pytest.fixture
def clean_env():
    """Environment without SMPP credentials."""
    return {}
