"""
Numeric literals for option values.

Grammar
- optional base prefix: `$` or `0x`/`0X` (hexadecimal), `%` or `0b`/`0B`
  (binary); no prefix means decimal.
- one or more digits valid for that base (hex digits are case-insensitive).

The parser reads from a Cursor and stops at the first character that is not a
digit of the detected base, leaving it unconsumed. Composite option values
(`1,2`, `5,10:20,30`) are parsed by chaining calls with separator checks in
between.

Failures never raise: a fault is triggered on the Diagnostics sink and the
caller-supplied default is returned, so one invocation reports every problem.
"""
from .faults import FaultCode, MalformedNumberError, NumberTooLargeError
from .utils import Unset

UINT16_MAX = 0xFFFF

_BLANKS = " \t"


class Cursor:
    """Read position over an immutable option argument."""

    __slots__ = ("text", "pos")

    def __init__(self, text, pos=0):
        self.text = text
        self.pos = pos

    def __repr__(self):
        return "Cursor(%r, pos=%d)" % (self.text, self.pos)

    @property
    def at_end(self):
        return self.pos >= len(self.text)

    def peek(self, offset=0):
        """Return the character `offset` places ahead, or "" past the end."""
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def advance(self, count=1):
        self.pos = min(self.pos + count, len(self.text))

    def skip_blanks(self):
        while self.peek() and self.peek() in _BLANKS:
            self.pos += 1

    def accept(self, char):
        """Consume `char` if it is next; report whether it was."""
        if self.peek() == char:
            self.pos += 1
            return True
        return False


def _digit(char, base):
    # Maps one character to its value in `base`, or None when it is not a digit there
    if not char:
        return None
    if "0" <= char <= "9":
        value = ord(char) - ord("0")
        return value if value < base else None
    if base == 16 and "a" <= char.lower() <= "f":
        return ord(char.lower()) - ord("a") + 10
    return None


def parse_number(cursor, label, diagnostics, default=UINT16_MAX, *, location=Unset):
    """
    Parse one base-prefixed unsigned 16-bit number at `cursor`.

    Returns the value with the cursor left on the first non-digit, or `default`
    after triggering a recoverable fault when:
    - the cursor is already at the end ("expected number"),
    - no valid digit follows (a base prefix) ("expected digit"),
    - the accumulated value reaches 65535 ("too large").
    """
    context = {} if location is Unset else {"location": location}

    if cursor.at_end:
        diagnostics.trigger(MalformedNumberError(
            "%s: expected number, but found nothing" % label,
            title="expected number",
            code=FaultCode.EXPECTED_NUMBER,
            **context,
        ))
        return default

    base = 10
    if cursor.peek() == "$":
        base = 16
        cursor.advance()
    elif cursor.peek() == "%":
        base = 2
        cursor.advance()
    elif cursor.peek() == "0" and cursor.peek(1) in ("x", "X"):
        base = 16
        cursor.advance(2)
    elif cursor.peek() == "0" and cursor.peek(1) in ("b", "B"):
        base = 2
        cursor.advance(2)

    if _digit(cursor.peek(), base) is None:
        diagnostics.trigger(MalformedNumberError(
            "%s: expected digit%s, but found nothing" % (label, " after base" if base != 10 else ""),
            title="expected digit",
            code=FaultCode.EXPECTED_DIGIT,
            **context,
        ))
        return default

    number = 0
    while (digit := _digit(cursor.peek(), base)) is not None:
        cursor.advance()
        number = number * base + digit
        if number >= UINT16_MAX:
            diagnostics.trigger(NumberTooLargeError(
                "%s: the number is too large!" % label,
                title="number too large",
                code=FaultCode.NUMBER_TOO_LARGE,
                hint="values must stay below %d" % UINT16_MAX,
                **context,
            ))
            return default

    return number


__all__ = (
    "UINT16_MAX",
    "Cursor",
    "parse_number",
)
