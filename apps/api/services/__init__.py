"""
Services package for Health Bridge API
Contains the broadcast hub and the dashboard aggregation queries
"""

from .broadcast import BroadcastHub, BroadcastEvent, EventType, ClientMessage

__all__ = [
    'BroadcastHub',
    'BroadcastEvent',
    'EventType',
    'ClientMessage',
]
