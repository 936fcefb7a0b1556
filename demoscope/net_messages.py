"""Decoding helpers for net-messages: encrypted payloads, con-vars and chat."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
from typing import Union

from demoscope.parsing import BitReader

_PADDING_LENGTH_BYTES = 1
_WRITTEN_LENGTH_BYTES = 4

CHAT_MESSAGE = "chat"
IGNORED = "ignored"
UNKNOWN = "unknown"

_CHAT_MESSAGE_NAMES = frozenset({"Cstrike_Chat_All", "Cstrike_Chat_AllDead"})
_IGNORED_MESSAGE_NAMES = frozenset(
    {
        "#CSGO_Coach_Join_T",
        "#CSGO_Coach_Join_CT",
        "#Cstrike_Name_Change",
        "Cstrike_Chat_T_Loc",
        "Cstrike_Chat_CT_Loc",
        "Cstrike_Chat_T_Dead",
        "Cstrike_Chat_CT_Dead",
    }
)


class EncryptedPayloadError(ValueError):
    """A decrypted net-message payload has an inconsistent layout."""


def unpack_encrypted_payload(plaintext: bytes) -> tuple[int, bytes]:
    """Extract the net-message command and body from a decrypted payload.

    The layout is one byte of padding length, the padding, a big-endian
    32-bit count of the bytes that follow, then a varint command, a varint
    size and the message body. Returns ``(command, body)``.

    Raises EncryptedPayloadError if the padding or length fields do not fit
    the data, and UnexpectedEndOfDemoError if the body runs past the end.
    """
    data = bytes(plaintext)
    reader = BitReader(data)

    padding = reader.read_byte()
    if padding >= len(data) - _PADDING_LENGTH_BYTES - _WRITTEN_LENGTH_BYTES:
        raise EncryptedPayloadError(
            "encrypted net-message has invalid number of padding bytes"
        )

    reader.skip_bytes(padding)
    written = int.from_bytes(reader.read_bytes(_WRITTEN_LENGTH_BYTES), "big")

    if len(data) != _PADDING_LENGTH_BYTES + _WRITTEN_LENGTH_BYTES + padding + written:
        raise EncryptedPayloadError("encrypted net-message has invalid length")

    command = reader.read_varint32()
    size = reader.read_varint32()
    return command, reader.read_bytes(size)


def apply_con_vars(
    con_vars: MutableMapping[str, str],
    updates: Union[Mapping[str, str], Iterable[tuple[str, str]]],
) -> dict[str, str]:
    """Store ``updates`` in ``con_vars`` and return the values that were set.

    Later entries for the same name win, both in ``con_vars`` and in the result.
    """
    pairs = updates.items() if isinstance(updates, Mapping) else updates
    updated: dict[str, str] = {}
    for name, value in pairs:
        updated[name] = value
        con_vars[name] = value
    return updated


def chat_message_kind(message_name: str) -> str:
    """Classify a SayText2 message name.

    Returns CHAT_MESSAGE for all-chat messages, IGNORED for known messages
    that carry no chat, and UNKNOWN for anything else.
    """
    if message_name in _CHAT_MESSAGE_NAMES:
        return CHAT_MESSAGE
    if message_name in _IGNORED_MESSAGE_NAMES:
        return IGNORED
    return UNKNOWN