"""
Session keep-alive loop.

Keeps the process resident after a successful bind. The loop only sleeps and
emits heartbeats; protocol-level keep-alive (enquire_link) is done by the
transport, and a session dropped by the SMSC is not detected here.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 0.1  # seconds


async def keep_alive(interval: float = HEARTBEAT_INTERVAL) -> None:
    """Sleep and log a heartbeat every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        logger.info('Session idle, heartbeat')
