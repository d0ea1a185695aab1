"""Hardware palette rows and the color values they hold."""
from __future__ import annotations

from typing import NamedTuple

# 15-bit hardware colors leave bit 15 free: it marks transparency, and the
# all-ones word marks an empty slot.
TRANSPARENT = 0x8000
EMPTY = 0xFFFF

NB_SLOTS = 4


class Rgba(NamedTuple):
    red: int
    green: int
    blue: int
    alpha: int = 255

    @classmethod
    def from_css(cls, value: str) -> Rgba:
        """Parse `#rgb` or `#rrggbb` (leading `#` optional)."""
        value = value.strip()
        if value.startswith("#"):
            value = value[1:]
        if len(value) == 3:
            value = "".join(char * 2 for char in value)
        if len(value) != 6:
            raise ValueError("expected a color in the form #rgb or #rrggbb, not %r" % value)
        try:
            channels = int(value, 16)
        except ValueError:
            raise ValueError("expected hexadecimal color digits, not %r" % value) from None
        return cls(channels >> 16, (channels >> 8) & 0xFF, channels & 0xFF)

    @classmethod
    def from_rgb555(cls, word: int) -> Rgba:
        def scale(channel):
            return (channel << 3) | (channel >> 2)

        return cls(scale(word & 0x1F), scale((word >> 5) & 0x1F), scale((word >> 10) & 0x1F))

    @property
    def opaque(self) -> bool:
        return self.alpha >= 0x80

    def to_css(self) -> int:
        """Pack as 0xRRGGBBAA."""
        return (self.red << 24) | (self.green << 16) | (self.blue << 8) | self.alpha

    def rgb555(self) -> int:
        """Hardware color identifier (5 bits per channel), or TRANSPARENT."""
        if not self.opaque:
            return TRANSPARENT
        return (self.red >> 3) | (self.green >> 3) << 5 | (self.blue >> 3) << 10


class Palette:
    """
    One hardware palette row: four color slots, filled front to back.

    When `transparent` is set, slot 0 holds TRANSPARENT and is not part of the
    assignable range: iteration and `index_of` skip it, while `size()` still
    counts it as occupied. Occupied slots always form a contiguous prefix.
    """

    __slots__ = ("_colors", "_reserved")

    def __init__(self, colors=(), *, transparent=False):
        self._colors = [EMPTY] * NB_SLOTS
        self._reserved = int(bool(transparent))
        if self._reserved:
            self._colors[0] = TRANSPARENT
        for color in colors:
            self.add_color(color)

    def __repr__(self):
        return "Palette(%r, transparent=%r)" % (list(self), bool(self._reserved))

    @property
    def colors(self) -> tuple[int, ...]:
        return tuple(self._colors)

    @property
    def transparent(self) -> bool:
        return bool(self._reserved)

    def _end(self):
        try:
            return self._colors.index(EMPTY, self._reserved)
        except ValueError:
            return NB_SLOTS

    def add_color(self, color: int) -> None:
        # Callers pack rows beforehand, so a full row here is a logic error
        for index, slot in enumerate(self._colors):
            if slot == color:
                return
            if slot == EMPTY:
                self._colors[index] = color
                return
        raise AssertionError("palette row is already full")

    def index_of(self, color: int) -> int:
        """Slot index of `color`; 0 for transparency, `size()` when absent."""
        if color == TRANSPARENT:
            return 0
        try:
            return self._colors.index(color, self._reserved, self._end())
        except ValueError:
            return self.size()

    def size(self) -> int:
        return self._end()

    def __iter__(self):
        return iter(self._colors[self._reserved:self._end()])

    def __contains__(self, color):
        return color in self._colors[self._reserved:self._end()]


__all__ = (
    "TRANSPARENT",
    "EMPTY",
    "NB_SLOTS",
    "Rgba",
    "Palette",
)
