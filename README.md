# demoscope

Pure-Python building blocks for reading Counter-Strike demo files (`.dem`).
The package has no third-party dependencies.

It provides:

- the demo header,
- a sequential byte reader,
- a snappy block decoder,
- the splitting of demo packets into net-messages,
- helpers for encrypted payloads, con-vars and chat message names.

Both header stamps are recognised: `HL2DEMO` and `PBDEMS2`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## `demoscope.parsing`

### Reading bytes

`BitReader` reads in sequence, little-endian, from a byte string or a binary
stream. It can be used as a context manager, which closes the stream on exit.
Its `position` attribute counts the bytes consumed so far.

It has these read methods:

- `read_byte()`
- `read_bytes(count)`
- `read_int32()`
- `read_float()`
- `read_cstring(length)`: reads `length` bytes and returns the text before the
  first NUL byte.
- `read_varint32()`
- `skip_bytes(count)`

Reading past the end raises `UnexpectedEndOfDemoError`.

### Reading the header

`read_header(reader)` parses a `DemoHeader`:

- For `HL2DEMO` files it fills in every field: protocol, names, map, playback
  time, ticks, frames and signon length.
- For `PBDEMS2` files it sets only `filestamp`. It then skips the 8 bytes that
  follow the stamp.
- Any other stamp raises `InvalidFileTypeError`.

```python
from demoscope.parsing import BitReader, read_header

with open("match.dem", "rb") as stream, BitReader(stream) as reader:
    header = read_header(reader)
    print(header.filestamp, header.map_name, header.playback_ticks)
```

### Other helpers

- `legacy_tick_rate(header)` returns the tick rate from the header's playback
  ticks and playback time. It returns 0 when the playback time is zero.
- `legacy_tick_time(header)` returns the duration of one tick as a
  `timedelta`. It returns a zero `timedelta` when the header has no ticks.
- `msg_queue_size(ticks)` clamps a tick count to the range 50 000 to 500 000.
- `snappy_decompress(data)` decodes a raw snappy block. It raises `ValueError`
  when the input is corrupt.

### Errors

The errors share the base class `DemoParseError`:

- `InvalidFileTypeError`, which is also a `ValueError`.
- `UnexpectedEndOfDemoError`, which is also an `EOFError`.
- `ParsingCancelledError`.

## `demoscope.packets`

`split_demo_packet(data)` splits the payload of a demo packet into
`PendingMessage` objects, in stream order. Each one holds a `msg_type` and its
still-encoded `data`. It raises `UnexpectedEndOfDemoError` when a message runs
past the end of the payload.

`ordered_messages(data)` returns the same messages in handling order. The sort
is stable and goes by `PendingMessage.priority()`:

| Messages | Priority |
| --- | --- |
| tick, string-table create and update, spawn-group load | -10 |
| packet entities | 5 |
| everything else | 0 |

Empty input gives an empty list.

`categorize_message(msg_type)`, also available as `PendingMessage.category`,
returns the `MessageCategory` family that an identifier falls into:

- `NET`
- `SVC`
- `USER_OR_ENTITY`
- `GAME_EVENT`
- `CS_USER`
- `TEMP_ENTITY`
- `CSGO_GAME_EVENT`

## `demoscope.net_messages`

### Encrypted payloads

`unpack_encrypted_payload(plaintext)` takes an already decrypted payload and
returns `(command, body)`. The payload layout is:

1. a padding-length byte,
2. the padding,
3. a big-endian 32-bit byte count,
4. a varint command,
5. a varint size,
6. the body.

It raises `EncryptedPayloadError` when the padding or length fields do not fit
the data.

### Con-vars

`apply_con_vars(con_vars, updates)` writes name/value pairs into a mutable
mapping and returns a dict of the values that were set. `updates` may be a
mapping or an iterable of pairs.

### Chat message names

`chat_message_kind(message_name)` sorts a chat message name into one of these
kinds:

- `CHAT_MESSAGE` for all-chat messages,
- `IGNORED` for known names that carry no chat,
- `UNKNOWN` for anything else.

## What this package does not do

- It does not parse a demo frame by frame.
- It has no event or net-message handlers.
- It does not track game state: teams, players, entities or game rules.
- It does not decode the protobuf net-messages it splits out.
- It does not decrypt encrypted net-messages. `unpack_encrypted_payload`
  expects plaintext that has already been decrypted.

These modules give you the pieces to build such a reader yourself.