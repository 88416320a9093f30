"""Business logic services for mapchat-server.

This package contains the service that runs chat turns with tool calling.
"""

from mapchat_server.services.chat_turn import ChatTurnService, TurnEvent

__all__ = [
    "ChatTurnService",
    "TurnEvent",
]
