"""
Argument frames and response-file ("@file") expansion.

What this module provides
- split_response(text): tokenize response-file contents.
  • '#' starts a comment only at the beginning of a line (after blanks).
  • blank lines are ignored; LF and CRLF line endings are equivalent.
  • tokens are maximal runs of characters other than space, tab and line
    terminators; there is no quoting or escaping.
- read_response_file(path): read and tokenize one file; raises
  ResponseFileError when it cannot be read.
- Frame: one scanning context (token list, read index, source label).
- ArgumentSourceStack: drives an OptionResolver over the command line and every
  response file it reaches, resuming each parent frame where it left off.

Nesting
- A response file may name further response files. Expanding a file that is
  already being expanded by an enclosing frame is fatal, and so is nesting
  deeper than MAX_DEPTH.
"""
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from .faults import FaultCode, ResponseFileError
from .utils import ordinal

MAX_DEPTH = 64

_LINES = re.compile(r"\r?\n")
_TOKENS = re.compile(r"[^ \t\r\n]+")


def split_response(text):
    tokens = []
    for line in _LINES.split(text):
        line = line.lstrip(" \t")
        if not line or line.startswith("#"):
            continue
        tokens.extend(_TOKENS.findall(line))
    return tokens


def read_response_file(path):
    try:
        data = Path(path).read_bytes()
    except OSError as error:
        raise ResponseFileError(
            "error reading @%s: %s" % (path, error.strerror or error),
            title="unreadable response file",
            code=FaultCode.UNREADABLE_RESPONSE_FILE,
            path=str(path),
        ) from None
    # Undecodable bytes survive as surrogates so paths round-trip
    return split_response(data.decode("utf-8", "surrogateescape"))


@dataclass(slots=True)
class Frame:
    tokens: list[str]
    source: str | None = None  # None for the process arguments
    index: int = 0  # next token to scan; the resume position once a child frame pops
    ended: bool = False  # "--" was seen
    key: str | None = field(default=None, repr=False)

    @property
    def exhausted(self):
        return self.ended or self.index >= len(self.tokens)

    def remaining(self):
        return self.tokens[self.index:]

    def where(self, index):
        """Describe the 0-based token `index` for diagnostics."""
        source = "command line" if self.source is None else "@" + self.source
        return "%s, %s argument" % (source, ordinal(index + 1))


class ArgumentSourceStack:
    """
    LIFO stack of response-file frames above the root (process arguments) frame.

    protocol
    - drain(resolver): let the resolver scan the current frame. When it hands
      back a response-file path, push a frame for it and scan that next. When
      it hands back None, register any tokens left after "--" as inputs, then
      pop to the parent frame (or stop once the root is exhausted).
    """

    def __init__(self, argv, diagnostics, *, max_depth=MAX_DEPTH):
        self.root = Frame(list(argv))
        self.diagnostics = diagnostics
        self.max_depth = max_depth
        self._stack = []

    @property
    def current(self):
        return self._stack[-1] if self._stack else self.root

    @property
    def depth(self):
        return len(self._stack)

    def push(self, path, *, location=None):
        context = {"location": location} if location else {}
        key = os.path.realpath(path) if path else path
        if any(frame.key == key for frame in self._stack):
            self.diagnostics.trigger(ResponseFileError(
                "response file @%s includes itself" % path,
                title="recursive response file",
                code=FaultCode.RECURSIVE_RESPONSE_FILE,
                hint="remove the @%s reference from the files it pulls in" % path,
                path=path,
                **context,
            ))
        if self.depth >= self.max_depth:
            self.diagnostics.trigger(ResponseFileError(
                "response files are nested more than %d levels deep at @%s" % (self.max_depth, path),
                title="response files nested too deeply",
                code=FaultCode.RECURSIVE_RESPONSE_FILE,
                path=path,
                **context,
            ))
        try:
            tokens = read_response_file(path)
        except ResponseFileError as error:
            self.diagnostics.trigger(error, **context)
        self._stack.append(Frame(tokens, source=path, key=key))

    def pop(self):
        if not self._stack:
            return False
        self._stack.pop()
        return True

    def drain(self, resolver):
        while True:
            frame = self.current
            if (path := resolver.scan(frame)) is not None:
                self.push(path, location=frame.where(frame.index - 1))
                continue
            for index, token in enumerate(frame.remaining(), frame.index):
                resolver.register_input(token, location=frame.where(index))
            frame.index = len(frame.tokens)
            if not self.pop():
                return


__all__ = (
    "MAX_DEPTH",
    "split_response",
    "read_response_file",
    "Frame",
    "ArgumentSourceStack",
)
