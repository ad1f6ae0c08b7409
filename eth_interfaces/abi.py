from __future__ import annotations

"""
Minimal Solidity ABI codec.

Covers what token standards need: `uintN`, `intN`, `address`, `bool`,
`bytesN`, `bytes`, `string`, and fixed/dynamic arrays of those. Tuples are not
supported as parameter types; multiple return values are decoded as a
top-level list of types, which is how the standards use them.

Also provides:
- canonical signature parsing (`transfer(address to, uint amount)` ->
  `transfer(address,uint256)`)
- zero-valued arguments for trial calls
- revert payload decoding (`Error(string)`, `Panic(uint256)`, custom errors)
"""

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .errors import AbiError
from .utils.address import ZERO_ADDRESS, normalize_address
from .utils.bytes import ensure_bytes
from .utils.hash import selector as _selector

WORD = 32

# Well-known revert selectors
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)
PANIC_SELECTOR = bytes.fromhex("4e487b71")  # Panic(uint256)

_SIG_RE = re.compile(r"^\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)\s*$")
_ARRAY_RE = re.compile(r"^(.+)\[(\d*)\]$")
_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}


# --- Type-string parsing -----------------------------------------------------


def _array(t: str) -> Optional[Tuple[str, Optional[int]]]:
    """Split the outermost array suffix: 'uint256[2][]' -> ('uint256[2]', None)."""
    m = _ARRAY_RE.match(t)
    if not m:
        return None
    size = m.group(2)
    return m.group(1), (int(size) if size else None)


def _check_elementary(t: str) -> None:
    if t in ("address", "bool", "string", "bytes"):
        return
    m = re.fullmatch(r"(u?int)(\d+)", t)
    if m:
        bits = int(m.group(2))
        if bits % 8 or not 8 <= bits <= 256:
            raise AbiError(f"invalid integer width in {t!r}", type_str=t)
        return
    m = re.fullmatch(r"bytes(\d+)", t)
    if m:
        if not 1 <= int(m.group(1)) <= 32:
            raise AbiError(f"invalid fixed bytes size in {t!r}", type_str=t)
        return
    raise AbiError(f"unsupported ABI type: {t!r}", type_str=t)


def canonical_type(type_str: str) -> str:
    """Normalize an ABI type string: strip spaces, expand aliases, validate."""
    t = re.sub(r"\s+", "", type_str)
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        if size == 0:
            raise AbiError("fixed array dimension must be positive", type_str=type_str)
        return f"{canonical_type(inner)}[{'' if size is None else size}]"
    t = _ALIASES.get(t, t)
    _check_elementary(t)
    return t


def parse_signature(signature: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Parse a function signature into (name, canonical parameter types).

    Parameter names are accepted and dropped: 'approve(address spender, uint v)'
    parses the same as 'approve(address,uint256)'.
    """
    m = _SIG_RE.match(signature)
    if not m:
        raise AbiError(f"malformed function signature: {signature!r}")
    name, inner = m.group(1), m.group(2).strip()
    if not inner:
        return name, ()
    if "(" in inner:
        raise AbiError(f"tuple parameters are not supported: {signature!r}")
    types = []
    for part in inner.split(","):
        tokens = part.split()
        if not tokens:
            raise AbiError(f"empty parameter in {signature!r}")
        types.append(canonical_type(tokens[0]))
    return name, tuple(types)


def canonical_signature(signature: str) -> str:
    name, types = parse_signature(signature)
    return f"{name}({','.join(types)})"


# --- Encoding ------------------------------------------------------------------


def is_dynamic(t: str) -> bool:
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        return size is None or is_dynamic(inner)
    return t in ("bytes", "string")


def _head_size(t: str) -> int:
    if is_dynamic(t):
        return WORD
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        return int(size) * _head_size(inner)
    return WORD


def _uint_word(n: int) -> bytes:
    return int(n).to_bytes(WORD, "big")


def _pad_right(b: bytes) -> bytes:
    rem = len(b) % WORD
    return b + b"\x00" * ((WORD - rem) % WORD)


def _encode_value(t: str, v: Any) -> bytes:
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        items = list(v)
        if size is None:
            return _uint_word(len(items)) + encode([inner] * len(items), items)
        if len(items) != size:
            raise AbiError(f"{t} expects {size} items, got {len(items)}", type_str=t)
        return encode([inner] * size, items)

    if t == "address":
        try:
            addr = normalize_address(v)
        except (TypeError, ValueError) as e:
            raise AbiError(f"invalid address argument: {v!r}", type_str=t) from e
        return b"\x00" * 12 + bytes.fromhex(addr[2:])
    if t == "bool":
        if not isinstance(v, bool) and v not in (0, 1):
            raise AbiError(f"bool expects True/False, got {v!r}", type_str=t)
        return _uint_word(1 if v else 0)
    if t.startswith("uint"):
        bits = int(t[4:])
        if not isinstance(v, int) or isinstance(v, bool) or not 0 <= v < 2 ** bits:
            raise AbiError(f"{t} out of range: {v!r}", type_str=t)
        return _uint_word(v)
    if t.startswith("int"):
        bits = int(t[3:])
        if not isinstance(v, int) or isinstance(v, bool) or not -(2 ** (bits - 1)) <= v < 2 ** (bits - 1):
            raise AbiError(f"{t} out of range: {v!r}", type_str=t)
        return (v % 2 ** 256).to_bytes(WORD, "big")
    if t in ("bytes", "string"):
        if t == "string":
            if not isinstance(v, str):
                raise AbiError(f"string expects str, got {type(v).__name__}", type_str=t)
            raw = v.encode("utf-8")
        else:
            raw = ensure_bytes(v)
        return _uint_word(len(raw)) + _pad_right(raw)
    # bytesN
    n = int(t[5:])
    raw = ensure_bytes(v)
    if len(raw) != n:
        raise AbiError(f"{t} expects exactly {n} bytes, got {len(raw)}", type_str=t)
    return _pad_right(raw)


def encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Head/tail encode `values` as the parameter list `types`."""
    if len(types) != len(values):
        raise AbiError(f"expected {len(types)} arguments, got {len(values)}")
    head_len = sum(_head_size(t) for t in types)
    heads: List[bytes] = []
    tails: List[bytes] = []
    tail_len = 0
    for t, v in zip(types, values):
        if is_dynamic(t):
            heads.append(_uint_word(head_len + tail_len))
            enc = _encode_value(t, v)
            tails.append(enc)
            tail_len += len(enc)
        else:
            heads.append(_encode_value(t, v))
    return b"".join(heads) + b"".join(tails)


def encode_call(selector: bytes, types: Sequence[str], args: Sequence[Any]) -> bytes:
    """Calldata: 4-byte selector followed by the encoded arguments."""
    return bytes(selector) + encode(types, args)


# --- Decoding ------------------------------------------------------------------


def _word(data: bytes, pos: int) -> bytes:
    if pos < 0 or pos + WORD > len(data):
        raise AbiError(f"data too short: need {pos + WORD} bytes, have {len(data)}")
    return data[pos:pos + WORD]


def _read_uint(data: bytes, pos: int) -> int:
    return int.from_bytes(_word(data, pos), "big")


def _decode_value(t: str, data: bytes, pos: int) -> Any:
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        if size is None:
            n = _read_uint(data, pos)
            body = data[pos + WORD:]
            if n * WORD > len(body):
                raise AbiError(f"array length {n} exceeds payload", type_str=t)
            return list(decode([inner] * n, body))
        return list(decode([inner] * size, data[pos:]))

    if t in ("bytes", "string"):
        n = _read_uint(data, pos)
        start = pos + WORD
        raw = data[start:start + n]
        if len(raw) != n:
            raise AbiError(f"{t} length {n} exceeds payload", type_str=t)
        if t == "bytes":
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise AbiError("string is not valid utf-8", type_str=t) from e

    word = _word(data, pos)
    if t == "address":
        if any(word[:12]):
            raise AbiError("address word has dirty high bytes", type_str=t)
        return "0x" + word[12:].hex()
    if t == "bool":
        n = int.from_bytes(word, "big")
        if n not in (0, 1):
            raise AbiError(f"invalid bool word: {n}", type_str=t)
        return bool(n)
    if t.startswith("uint"):
        n = int.from_bytes(word, "big")
        if n >= 2 ** int(t[4:]):
            raise AbiError(f"{t} out of range", type_str=t)
        return n
    if t.startswith("int"):
        n = int.from_bytes(word, "big", signed=True)
        bits = int(t[3:])
        if not -(2 ** (bits - 1)) <= n < 2 ** (bits - 1):
            raise AbiError(f"{t} out of range", type_str=t)
        return n
    return word[:int(t[5:])]


def decode(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """Decode a head/tail-encoded parameter list."""
    data = bytes(data)
    out: List[Any] = []
    offset = 0
    for t in types:
        if is_dynamic(t):
            out.append(_decode_value(t, data, _read_uint(data, offset)))
            offset += WORD
        else:
            out.append(_decode_value(t, data, offset))
            offset += _head_size(t)
    return tuple(out)


def decode_return(types: Sequence[str], data: bytes) -> Any:
    """Return None for no outputs, the bare value for one, a tuple otherwise."""
    if not types:
        return None
    values = decode(types, data)
    return values[0] if len(values) == 1 else values


# --- Trial arguments -----------------------------------------------------------


def zero_value(t: str) -> Any:
    """Innocuous zero value for a parameter type."""
    arr = _array(t)
    if arr is not None:
        inner, size = arr
        return [] if size is None else [zero_value(inner) for _ in range(size)]
    if t == "address":
        return ZERO_ADDRESS
    if t == "bool":
        return False
    if t == "string":
        return ""
    if t == "bytes":
        return b""
    if t.startswith("bytes"):
        return b"\x00" * int(t[5:])
    return 0


def zero_args(types: Sequence[str]) -> List[Any]:
    return [zero_value(t) for t in types]


# --- Revert payloads -------------------------------------------------------------


def _fmt_arg(v: Any) -> str:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, list):
        return "[" + ", ".join(_fmt_arg(x) for x in v) + "]"
    return str(v)


def error_selector(signature: str) -> bytes:
    return _selector(canonical_signature(signature))


def encode_error(signature: str, *args: Any) -> bytes:
    """Build a revert payload for a custom error, e.g. for test doubles."""
    _, types = parse_signature(signature)
    return error_selector(signature) + encode(types, list(args))


def decode_revert(
    data: bytes,
    known_errors: Mapping[bytes, str] | None = None,
) -> Optional[str]:
    """
    Render a revert payload as text.

    `known_errors` maps 4-byte selectors to canonical error signatures. Returns
    None for an empty payload.
    """
    data = bytes(data)
    if not data:
        return None
    sel, body = data[:4], data[4:]
    try:
        if sel == ERROR_STRING_SELECTOR:
            return str(decode(["string"], body)[0])
        if sel == PANIC_SELECTOR:
            return f"Panic(0x{decode(['uint256'], body)[0]:02x})"
        if known_errors and sel in known_errors:
            sig = known_errors[sel]
            name, types = parse_signature(sig)
            args = decode(types, body)
            return f"{name}({', '.join(_fmt_arg(a) for a in args)})"
    except AbiError:
        pass
    if known_errors and sel in known_errors:
        return f"{parse_signature(known_errors[sel])[0]}(0x{body.hex()})"
    return f"unknown error 0x{data.hex()}"


__all__ = [
    "WORD",
    "ERROR_STRING_SELECTOR",
    "PANIC_SELECTOR",
    "canonical_type",
    "parse_signature",
    "canonical_signature",
    "is_dynamic",
    "encode",
    "encode_call",
    "decode",
    "decode_return",
    "zero_value",
    "zero_args",
    "error_selector",
    "encode_error",
    "decode_revert",
]
