"""
Raw keyboard capture and key decoding.

Bytes read from a raw-mode terminal are split into key sequences and decoded
into :class:`KeyEvent` objects. Decoding tries, in order:

1. a platform-provided key descriptor, when one is passed in
2. known multi-byte escape sequences (arrows in CSI and SS3 form, Home/End,
   PageUp/PageDown, Delete, F1-F12) and the named single-byte keys
3. control bytes 0x01-0x1A as Ctrl+letter
4. a single printable character (shift set for A-Z)
5. ESC followed by one character as Alt/Meta+character
6. anything else as ``unknown``
"""

#region Imports
import atexit
import os
import sys
import termios
import tty
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, TextIO, Union

from clusage.errors import TerminalNotInteractiveError
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)

ESC = "\x1b"

KEY_SEQUENCES = {
    # Arrows (CSI)
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    # Arrows (SS3, application cursor mode)
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\r": "return",
    "\n": "return",
    "\x1b": "escape",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
    "\x1b[3~": "delete",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
}

_CTRL_FIRST = 0x01
_CTRL_LAST = 0x1A
_READ_SIZE = 1024
#endregion


#region Data Classes


@dataclass(frozen=True)
class KeyEvent:
    """
    A decoded key press.

    Attributes:
        name: Key name ("up", "return", "a", "f5", "unknown", ...)
        sequence: Raw characters that produced the event
        ctrl: Ctrl modifier
        meta: Alt/Meta modifier
        shift: Shift modifier
    """

    name: str
    sequence: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
#endregion


#region Decoding


def decode(raw: Union[bytes, str], hint: Optional[Mapping] = None) -> KeyEvent:
    """
    Decode one key sequence.

    Args:
        raw: Bytes or characters of a single key press
        hint: Optional platform key descriptor with ``name``/``ctrl``/``meta``/``shift``

    Returns:
        KeyEvent
    """
    sequence = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

    if hint:
        return KeyEvent(
            name=hint.get("name") or sequence,
            sequence=sequence,
            ctrl=bool(hint.get("ctrl", False)),
            meta=bool(hint.get("meta", False)),
            shift=bool(hint.get("shift", False)),
        )

    known = KEY_SEQUENCES.get(sequence)
    if known:
        return KeyEvent(name=known, sequence=sequence)

    if len(sequence) == 1:
        code = ord(sequence)
        if _CTRL_FIRST <= code <= _CTRL_LAST:
            return KeyEvent(name=chr(code + 0x60), sequence=sequence, ctrl=True)
        if sequence.isprintable():
            return KeyEvent(name=sequence, sequence=sequence, shift="A" <= sequence <= "Z")

    if len(sequence) == 2 and sequence[0] == ESC:
        char = sequence[1]
        return KeyEvent(name=char.lower(), sequence=sequence, meta=True, shift="A" <= char <= "Z")

    return KeyEvent(name="unknown", sequence=sequence)


def split_sequences(data: str) -> list[str]:
    """
    Split a chunk of terminal input into single key sequences.

    One read can carry several keys (fast typing, key repeat). CSI sequences
    run to their final byte, SS3 sequences are three characters, and ESC plus
    any other character is an Alt combination.
    """
    keys = []
    i = 0
    while i < len(data):
        char = data[i]
        if char != ESC or i + 1 >= len(data):
            keys.append(char)
            i += 1
            continue

        follower = data[i + 1]
        if follower == "[":
            end = i + 2
            while end < len(data) and not ("\x40" <= data[end] <= "\x7e"):
                end += 1
            keys.append(data[i:end + 1])
            i = end + 1
        elif follower == "O" and i + 2 < len(data):
            keys.append(data[i:i + 3])
            i += 3
        elif follower == ESC:
            keys.append(ESC)
            i += 1
        else:
            keys.append(data[i:i + 2])
            i += 2
    return keys


def is_exit_key(event: KeyEvent) -> bool:
    """q (unmodified), Escape, Ctrl+C or Ctrl+D."""
    if event.name == "q" and not event.ctrl and not event.meta:
        return True
    if event.name == "escape":
        return True
    return event.ctrl and event.name in ("c", "d")


def is_navigation_key(event: KeyEvent) -> bool:
    return event.name in ("up", "down", "left", "right")


def format_key_help(bindings: Iterable[tuple[str, str]]) -> str:
    """
    Format key bindings for a footer line.

    Args:
        bindings: (key, description) pairs

    Returns:
        "key desc | key desc | ..."
    """
    return " | ".join(f"{key} {desc}" for key, desc in bindings)
#endregion


#region Raw Keyboard


class RawKeyboard:
    """
    Puts a terminal into raw mode and turns its input into key events.

    Enabling is idempotent. The saved terminal attributes are restored on
    :meth:`disable`, and also at interpreter exit if disable was never
    reached.

    Args:
        stream: Input stream (default: sys.stdin)
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdin
        self._saved_attrs = None
        self._fd: Optional[int] = None

    @property
    def is_raw(self) -> bool:
        return self._saved_attrs is not None

    def enable(self) -> None:
        """
        Switch the terminal to raw mode.

        Raises:
            TerminalNotInteractiveError: If the stream is not a TTY
        """
        if not self.stream.isatty():
            raise TerminalNotInteractiveError()
        if self.is_raw:
            return

        fd = self.stream.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        self._fd = fd
        tty.setraw(fd)
        atexit.register(self.disable)
        logger.debug("Raw mode enabled on fd %s", fd)

    def disable(self) -> None:
        """Restore the terminal attributes saved by :meth:`enable`."""
        if not self.is_raw:
            return
        saved, fd = self._saved_attrs, self._fd
        self._saved_attrs = None
        self._fd = None
        atexit.unregister(self.disable)
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        logger.debug("Raw mode disabled on fd %s", fd)

    def fileno(self) -> int:
        return self.stream.fileno()

    def read_events(self) -> list[KeyEvent]:
        """Read whatever input is pending and decode it."""
        data = os.read(self.fileno(), _READ_SIZE)
        if not data:
            return []
        text = data.decode("utf-8", errors="replace")
        return [decode(sequence) for sequence in split_sequences(text)]

    def attach(self, loop, callback: Callable[[KeyEvent], None]) -> None:
        """Deliver key events to a callback from the event loop."""
        def _on_readable() -> None:
            for event in self.read_events():
                callback(event)

        loop.add_reader(self.fileno(), _on_readable)

    def detach(self, loop) -> None:
        loop.remove_reader(self.fileno())
#endregion
