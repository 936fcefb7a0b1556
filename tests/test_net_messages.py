import pytest

from demoscope.net_messages import (
    CHAT_MESSAGE,
    IGNORED,
    UNKNOWN,
    EncryptedPayloadError,
    apply_con_vars,
    chat_message_kind,
    unpack_encrypted_payload,
)
from demoscope.parsing import UnexpectedEndOfDemoError


def _build(padding: int, command: int, body: bytes) -> bytes:
    inner = bytes([command, len(body)]) + body
    return bytes([padding]) + b"\xaa" * padding + len(inner).to_bytes(4, "big") + inner


@pytest.mark.parametrize("padding", [0, 1, 3, 7])
def test_unpack_round_trip(padding):
    body = b"hello world"
    command, payload = unpack_encrypted_payload(_build(padding, 5, body))
    assert command == 5
    assert payload == body


def test_unpack_empty_body():
    command, payload = unpack_encrypted_payload(_build(2, 9, b""))
    assert (command, payload) == (9, b"")


def test_unpack_multibyte_varint_command():
    inner = b"\x96\x01" + b"\x02" + b"ab"
    data = b"\x00" + len(inner).to_bytes(4, "big") + inner
    command, payload = unpack_encrypted_payload(data)
    assert command == 150
    assert payload == b"ab"


def test_unpack_padding_too_large():
    data = _build(0, 1, b"xyz")
    bad = bytes([200]) + data[1:]
    with pytest.raises(EncryptedPayloadError, match="padding"):
        unpack_encrypted_payload(bad)


def test_unpack_no_written_bytes_is_invalid_padding():
    data = b"\x02" + b"\x00\x00" + (0).to_bytes(4, "big")
    with pytest.raises(EncryptedPayloadError, match="padding"):
        unpack_encrypted_payload(data)


def test_unpack_length_mismatch():
    data = _build(1, 1, b"abc") + b"\x00"
    with pytest.raises(EncryptedPayloadError, match="length"):
        unpack_encrypted_payload(data)


def test_unpack_size_past_end():
    inner = bytes([1, 50]) + b"abc"
    data = b"\x00" + len(inner).to_bytes(4, "big") + inner
    with pytest.raises(UnexpectedEndOfDemoError):
        unpack_encrypted_payload(data)


def test_unpack_empty_input():
    with pytest.raises(UnexpectedEndOfDemoError):
        unpack_encrypted_payload(b"")


def test_apply_con_vars_mapping():
    con_vars = {"mp_c4timer": "40", "sv_cheats": "0"}
    updated = apply_con_vars(con_vars, {"mp_freezetime": "5", "mp_c4timer": "35"})
    assert updated == {"mp_freezetime": "5", "mp_c4timer": "35"}
    assert con_vars == {"mp_c4timer": "35", "sv_cheats": "0", "mp_freezetime": "5"}


def test_apply_con_vars_pairs_later_wins():
    con_vars = {}
    updated = apply_con_vars(con_vars, [("mp_freezetime", "5"), ("mp_freezetime", "10")])
    assert updated == {"mp_freezetime": "10"}
    assert con_vars == updated


def test_apply_con_vars_empty_updates():
    con_vars = {"mp_c4timer": "40"}
    assert apply_con_vars(con_vars, []) == {}
    assert con_vars == {"mp_c4timer": "40"}


@pytest.mark.parametrize("name", ["Cstrike_Chat_All", "Cstrike_Chat_AllDead"])
def test_chat_message_kind_chat(name):
    assert chat_message_kind(name) == CHAT_MESSAGE


@pytest.mark.parametrize(
    "name",
    [
        "#CSGO_Coach_Join_T",
        "#CSGO_Coach_Join_CT",
        "#Cstrike_Name_Change",
        "Cstrike_Chat_T_Loc",
        "Cstrike_Chat_CT_Loc",
        "Cstrike_Chat_T_Dead",
        "Cstrike_Chat_CT_Dead",
    ],
)
def test_chat_message_kind_ignored(name):
    assert chat_message_kind(name) == IGNORED


@pytest.mark.parametrize("name", ["", "Cstrike_Chat_all", "SomethingElse"])
def test_chat_message_kind_unknown(name):
    assert chat_message_kind(name) == UNKNOWN