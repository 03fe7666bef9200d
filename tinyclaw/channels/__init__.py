"""Channels: capability-described delivery targets and the delivery gateway."""

from .base import Channel, ChannelCapabilities, idempotent_stop
from .console import ConsoleChannel
from .coordinator import ChannelCoordinator
from .manager import ChannelManager, DeliveryReport

__all__ = [
    "Channel",
    "ChannelCapabilities",
    "ChannelCoordinator",
    "ChannelManager",
    "ConsoleChannel",
    "DeliveryReport",
    "idempotent_stop",
]
