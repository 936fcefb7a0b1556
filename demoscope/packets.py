"""Splitting of demo packets into individual net-messages and their ordering."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from demoscope.parsing import UnexpectedEndOfDemoError

NET_TICK = 4
NET_SPAWN_GROUP_LOAD = 8
SVC_SERVER_INFO = 40
SVC_CREATE_STRING_TABLE = 44
SVC_UPDATE_STRING_TABLE = 45
SVC_PACKET_ENTITIES = 55
UM_ACHIEVEMENT_EVENT = 101
GE_VDEBUG_GAME_SESSION_ID_EVENT = 200
CS_UM_VGUI_MENU = 301
TE_EFFECT_DISPATCH_ID = 400
GE_PLAYER_ANIM_EVENT_ID = 450

# Messages that give context to the rest of the tick are handled first.
_CONTEXT_MESSAGES = frozenset(
    {NET_TICK, SVC_CREATE_STRING_TABLE, SVC_UPDATE_STRING_TABLE, NET_SPAWN_GROUP_LOAD}
)
# Messages that profit from context but may also provide it via delta updates.
_LATE_MESSAGES = frozenset({SVC_PACKET_ENTITIES})


class MessageCategory(enum.Enum):
    """Family of message identifiers a message type belongs to."""

    NET = "net"
    SVC = "svc"
    USER_OR_ENTITY = "user_or_entity"
    GAME_EVENT = "game_event"
    CS_USER = "cs_user"
    TEMP_ENTITY = "temp_entity"
    CSGO_GAME_EVENT = "csgo_game_event"


_CATEGORY_BOUNDS = (
    (SVC_SERVER_INFO, MessageCategory.NET),
    (UM_ACHIEVEMENT_EVENT, MessageCategory.SVC),
    (GE_VDEBUG_GAME_SESSION_ID_EVENT, MessageCategory.USER_OR_ENTITY),
    (CS_UM_VGUI_MENU, MessageCategory.GAME_EVENT),
    (TE_EFFECT_DISPATCH_ID, MessageCategory.CS_USER),
    (GE_PLAYER_ANIM_EVENT_ID, MessageCategory.TEMP_ENTITY),
)


def categorize_message(msg_type: int) -> MessageCategory:
    """Return the family of message identifiers ``msg_type`` falls into."""
    for upper_bound, category in _CATEGORY_BOUNDS:
        if msg_type < upper_bound:
            return category
    return MessageCategory.CSGO_GAME_EVENT


@dataclass(frozen=True)
class PendingMessage:
    """A raw, still encoded message taken from a demo packet."""

    msg_type: int
    data: bytes

    def priority(self) -> int:
        """Handling priority of the message; lower is handled earlier."""
        if self.msg_type in _CONTEXT_MESSAGES:
            return -10
        if self.msg_type in _LATE_MESSAGES:
            return 5
        return 0

    @property
    def category(self) -> MessageCategory:
        """Family of message identifiers this message belongs to."""
        return categorize_message(self.msg_type)


class _BitCursor:
    """Least-significant-bit-first reader over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._value = int.from_bytes(data, "little")
        self.size = len(data) * 8
        self.position = 0

    @property
    def remaining(self) -> int:
        return self.size - self.position

    def read_bits(self, count: int) -> int:
        if count > self.remaining:
            raise UnexpectedEndOfDemoError()
        result = (self._value >> self.position) & ((1 << count) - 1)
        self.position += count
        return result

    def read_ubit_int(self) -> int:
        value = self.read_bits(6)
        selector = value & 0x30
        if selector == 0x10:
            value = (value & 0x0F) | (self.read_bits(4) << 4)
        elif selector == 0x20:
            value = (value & 0x0F) | (self.read_bits(8) << 4)
        elif selector == 0x30:
            value = (value & 0x0F) | (self.read_bits(28) << 4)
        return value

    def read_varint32(self) -> int:
        result = 0
        for shift in range(0, 35, 7):
            byte = self.read_bits(8)
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
        return result & 0xFFFFFFFF

    def read_bytes(self, count: int) -> bytes:
        if count == 0:
            return b""
        return self.read_bits(count * 8).to_bytes(count, "little")


def split_demo_packet(data: bytes) -> list[PendingMessage]:
    """Split the payload of a demo packet into its messages, in stream order.

    Raises UnexpectedEndOfDemoError if a message runs past the end of ``data``.
    """
    cursor = _BitCursor(bytes(data))
    messages = []
    while cursor.remaining > 7:
        msg_type = cursor.read_ubit_int()
        size = cursor.read_varint32()
        messages.append(PendingMessage(msg_type, cursor.read_bytes(size)))
    return messages


def ordered_messages(data: bytes) -> list[PendingMessage]:
    """Messages of a demo packet in handling order (stable by priority)."""
    if not data:
        return []
    return sorted(split_demo_packet(data), key=PendingMessage.priority)