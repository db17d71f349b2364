"""Safe reader and writer for the Lua literal files stored next to documents.

Settings files look like::

    -- we can read Lua syntax here!
    return {
        ["doc_path"] = "/books/foo.epub",
        ["percent_finished"] = 0.25,
    }

Only literal values are understood: tables, strings, numbers, booleans and
``nil``. Nothing is ever evaluated, since sidecar files may come from
removable or shared storage.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any, Dict, List, TextIO, Tuple

BANNER = "-- we can read Lua syntax here!"
INDENT = "    "

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(
    r"0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?"
    r"|(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
)
_LONG_BRACKET = re.compile(r"\[(=*)\[")
_ASSIGNMENT = re.compile(r"[ \t\r\n\f\v]*=(?!=)")
_SIMPLE_ESCAPES = {
    "a": 7,
    "b": 8,
    "f": 12,
    "n": 10,
    "r": 13,
    "t": 9,
    "v": 11,
    "\\": 92,
    '"': 34,
    "'": 39,
    "\n": 10,
}


class LuaLiteralError(ValueError):
    """Raised when a literal cannot be parsed or serialized."""


# -- serialization ---------------------------------------------------------


def _dump_string(value: str) -> str:
    out = ['"']
    for char in value:
        code = ord(char)
        if char == "\\":
            out.append("\\\\")
        elif char == '"':
            out.append('\\"')
        elif char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        elif code < 32 or code == 127:
            out.append(f"\\{code:03d}")
        else:
            out.append(char)
    out.append('"')
    return "".join(out)


def _dump_number(value: float | int) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "0/0"
    if math.isinf(value):
        return "math.huge" if value > 0 else "-math.huge"
    return repr(value)


def _key_order(key: Any) -> Tuple[int, Any]:
    if isinstance(key, bool):
        return (2, key)
    if isinstance(key, (int, float)):
        return (0, key)
    return (1, str(key))


def _dump(value: Any, indent: str, out: List[str]) -> None:
    if value is None:
        out.append("nil")
    elif isinstance(value, bool):
        out.append("true" if value else "false")
    elif isinstance(value, (int, float)):
        out.append(_dump_number(value))
    elif isinstance(value, str):
        out.append(_dump_string(value))
    elif isinstance(value, (list, tuple, dict)):
        if isinstance(value, dict):
            items = sorted(value.items(), key=lambda item: _key_order(item[0]))
        else:
            items = list(enumerate(value, start=1))
        new_indent = indent + INDENT
        out.append("{")
        for key, item in items:
            if not isinstance(key, (str, int, float)) or (
                isinstance(key, float) and math.isnan(key)
            ):
                raise LuaLiteralError(f"Unsupported table key: {key!r}")
            out.append("\n" + new_indent + "[")
            _dump(key, new_indent, out)
            out.append("] = ")
            _dump(item, new_indent, out)
            out.append(",")
        if items:
            out.append("\n" + indent)
        out.append("}")
    else:
        raise LuaLiteralError(f"Cannot serialize value of type {type(value).__name__}")


def dumps(value: Any) -> str:
    """Serialize ``value`` to a Lua literal."""
    out: List[str] = []
    _dump(value, "", out)
    return "".join(out)


def write_file(handle: TextIO, literal: str) -> None:
    """Write a serialized literal with the comment banner and ``return``."""
    handle.write(BANNER + "\nreturn ")
    handle.write(literal)
    handle.write("\n")


# -- deserialization -------------------------------------------------------


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> LuaLiteralError:
        line = self.text.count("\n", 0, self.pos) + 1
        return LuaLiteralError(f"{message} (line {line})")

    def skip_space(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in " \t\r\n\f\v":
                self.pos += 1
            elif text.startswith("--", self.pos):
                self.pos += 2
                match = _LONG_BRACKET.match(text, self.pos)
                if match:
                    self.read_long_bracket(match)
                else:
                    end = text.find("\n", self.pos)
                    self.pos = len(text) if end == -1 else end + 1
            else:
                break

    def peek(self) -> str:
        self.skip_space()
        return self.text[self.pos : self.pos + 1]

    def expect(self, token: str) -> None:
        self.skip_space()
        if not self.text.startswith(token, self.pos):
            raise self.error(f"Expected {token!r}")
        self.pos += len(token)

    def read_chunk(self) -> Any:
        self.skip_space()
        match = _IDENTIFIER.match(self.text, self.pos)
        if not match or match.group() != "return":
            raise self.error("Expected 'return'")
        self.pos = match.end()
        value = self.read_value()
        if self.peek() == ";":
            self.pos += 1
        if self.peek():
            raise self.error("Unexpected trailing data")
        return value

    def read_value(self) -> Any:
        char = self.peek()
        if not char:
            raise self.error("Unexpected end of input")
        if char == "{":
            return self.read_table()
        if char in "\"'":
            return self.read_string()
        if char == "[":
            match = _LONG_BRACKET.match(self.text, self.pos)
            if match:
                return self.read_long_bracket(match)
        if char == "-":
            self.pos += 1
            value = self.read_value()
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise self.error("Unary minus on a non-number")
            return -value
        if char.isdigit() or char == ".":
            return self.read_number()
        match = _IDENTIFIER.match(self.text, self.pos)
        if match:
            word = match.group()
            self.pos = match.end()
            if word == "true":
                return True
            if word == "false":
                return False
            if word == "nil":
                return None
            if word == "math" and self.text.startswith(".huge", self.pos):
                self.pos += len(".huge")
                return math.inf
            raise self.error(f"Unexpected name {word!r}")
        raise self.error(f"Unexpected character {char!r}")

    def read_number(self) -> int | float:
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            raise self.error("Malformed number")
        self.pos = match.end()
        literal = match.group()
        if self.text.startswith("/0", self.pos) and literal in ("0", "0.0"):
            # 0/0 is how NaN is written
            self.pos += 2
            return math.nan
        if literal[:2].lower() == "0x":
            if "." in literal or "p" in literal.lower():
                return float.fromhex(literal)
            return int(literal, 16)
        if any(c in literal for c in ".eE"):
            return float(literal)
        return int(literal)

    def read_long_bracket(self, match: re.Match) -> str:
        closing = "]" + match.group(1) + "]"
        start = match.end()
        end = self.text.find(closing, start)
        if end == -1:
            raise self.error("Unfinished long bracket")
        self.pos = end + len(closing)
        body = self.text[start:end]
        # a newline right after the opening bracket is skipped
        if body.startswith("\r\n"):
            body = body[2:]
        elif body.startswith("\n"):
            body = body[1:]
        return body

    def read_string(self) -> str:
        text = self.text
        quote = text[self.pos]
        self.pos += 1
        buf = bytearray()
        while True:
            if self.pos >= len(text):
                raise self.error("Unfinished string")
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                break
            if char == "\n":
                raise self.error("Unfinished string")
            if char != "\\":
                buf += char.encode("utf-8", "surrogateescape")
                self.pos += 1
                continue
            self.pos += 1
            esc = text[self.pos : self.pos + 1]
            if esc in _SIMPLE_ESCAPES:
                buf.append(_SIMPLE_ESCAPES[esc])
                self.pos += 1
            elif esc.isdigit():
                digits = re.match(r"\d{1,3}", text[self.pos : self.pos + 3]).group()
                code = int(digits)
                if code > 255:
                    raise self.error("Decimal escape too large")
                buf.append(code)
                self.pos += len(digits)
            elif esc == "x":
                digits = text[self.pos + 1 : self.pos + 3]
                if not re.fullmatch(r"[0-9a-fA-F]{2}", digits):
                    raise self.error("Malformed hexadecimal escape")
                buf.append(int(digits, 16))
                self.pos += 3
            elif esc == "z":
                self.pos += 1
                while self.pos < len(text) and text[self.pos] in " \t\r\n\f\v":
                    self.pos += 1
            elif esc == "u":
                match = re.match(r"u\{([0-9a-fA-F]+)\}", text[self.pos :])
                if not match:
                    raise self.error("Malformed unicode escape")
                buf += chr(int(match.group(1), 16)).encode("utf-8", "surrogatepass")
                self.pos += match.end()
            else:
                raise self.error(f"Invalid escape sequence \\{esc}")
        return buf.decode("utf-8", "replace")

    def read_table(self) -> Dict[Any, Any] | List[Any]:
        self.expect("{")
        table: Dict[Any, Any] = {}
        positional: List[Any] = []
        while True:
            char = self.peek()
            if char == "}":
                self.pos += 1
                break
            if char == "[" and not _LONG_BRACKET.match(self.text, self.pos):
                self.pos += 1
                key = self.read_value()
                self.expect("]")
                self.expect("=")
                self._store(table, key, self.read_value())
            else:
                match = _IDENTIFIER.match(self.text, self.pos)
                after = match and self._next_is_assignment(match.end())
                if after:
                    self.pos = match.end()
                    self.expect("=")
                    self._store(table, match.group(), self.read_value())
                else:
                    positional.append(self.read_value())
            sep = self.peek()
            if sep in (",", ";"):
                self.pos += 1
            elif sep != "}":
                raise self.error("Expected ',' or '}'")
        for index, item in enumerate(positional, start=1):
            if item is not None:
                table[index] = item
        if positional and len(positional) == len(table) and None not in positional:
            return positional
        if table and all(
            isinstance(key, int) and not isinstance(key, bool) for key in table
        ) and sorted(table) == list(range(1, len(table) + 1)):
            return [table[key] for key in range(1, len(table) + 1)]
        return table

    def _next_is_assignment(self, pos: int) -> bool:
        return _ASSIGNMENT.match(self.text, pos) is not None

    def _store(self, table: Dict[Any, Any], key: Any, value: Any) -> None:
        if key is None:
            raise self.error("Table key is nil")
        if isinstance(key, float) and key.is_integer():
            key = int(key)
        if value is None:
            table.pop(key, None)
        else:
            table[key] = value


def loads(text: str) -> Any:
    """Parse a ``return <literal>`` chunk without evaluating any code."""
    if text.startswith("#"):
        # shebang line, tolerated like the Lua loader does
        text = text.split("\n", 1)[1] if "\n" in text else ""
    return _Parser(text).read_chunk()


def load_file(path: Path) -> Any:
    """Read and parse a literal file."""
    raw = Path(path).read_bytes()
    return loads(raw.decode("utf-8", "surrogateescape"))
