r"""
tilegfx option table.

Overview
- Key: one semantic tag per option; deprecated spellings share the tag of the
  option that replaced them.
- Switch: one spelling row (short letter, long name, value metavar, help,
  deprecation marker and successor).
- SwitchTable: lookups used by the resolver.
  • short(letter) → Switch | None
  • lookup(name)  → every switch whose long name starts with `name`, or only
    the exact match when there is one (unambiguous prefixes are accepted).

Spelling rules (long-only style)
- "--name[=value]" and "-name[=value]" both name long options.
- a single-letter "-x" that is also a short option is the short option.
- any other single-dash token is a cluster of short options ("-mu", "-ofile").
"""
from dataclasses import dataclass
from enum import Enum, auto


class Key(Enum):
    AUTO_ATTRMAP = auto()
    ATTRMAP = auto()
    BASE_TILES = auto()
    COLOR_CURVE = auto()
    COLORS = auto()
    DEPTH = auto()
    SLICE = auto()
    MIRROR_TILES = auto()
    NB_TILES = auto()
    NB_PALETTES = auto()
    GROUP_OUTPUTS = auto()
    OUTPUT = auto()
    AUTO_PALETTE = auto()
    PALETTE = auto()
    AUTO_PALETTE_MAP = auto()
    PALETTE_MAP = auto()
    REVERSE = auto()
    PALETTE_SIZE = auto()
    AUTO_TILEMAP = auto()
    TILEMAP = auto()
    UNIQUE_TILES = auto()
    VERSION = auto()
    VERBOSE = auto()
    TRIM_END = auto()
    COLUMNS = auto()


@dataclass(frozen=True, slots=True)
class Switch:
    key: Key
    long: str
    short: str | None = None
    metavar: str | None = None
    descr: str | None = None
    deprecated: bool = False
    successor: str | None = None

    @property
    def takes_value(self):
        return self.metavar is not None

    @property
    def names(self):
        if self.short:
            return ("-" + self.short, "--" + self.long)
        return ("--" + self.long,)

    def __str__(self):
        return "--" + self.long


# Keep in the same order as the short letters of the usage line
SWITCHES = (
    Switch(Key.AUTO_ATTRMAP, "auto-attr-map", "A", descr="derive the attribute map path"),
    Switch(Key.AUTO_ATTRMAP, "output-attr-map", deprecated=True, successor="--auto-attr-map"),
    Switch(Key.ATTRMAP, "attr-map", "a", "attr_map", "output the attribute map to this path"),
    Switch(Key.BASE_TILES, "base-tiles", "b", "base_ids", "base tile IDs for banks 0 and 1"),
    Switch(Key.COLOR_CURVE, "color-curve", "C", descr="emulate the hardware color curve"),
    Switch(Key.COLORS, "colors", "c", "colors", "explicit palette spec, `embedded`, or fmt:path"),
    Switch(Key.DEPTH, "depth", "d", "depth", "bit depth of the output tile data (1 or 2)"),
    Switch(Key.SLICE, "slice", "L", "slice", "only convert left,top:width,height of the image"),
    Switch(Key.MIRROR_TILES, "mirror-tiles", "m", descr="optimize out mirrored tiles"),
    Switch(Key.NB_TILES, "nb-tiles", "N", "nb_tiles", "maximum number of tiles in banks 0 and 1"),
    Switch(Key.NB_PALETTES, "nb-palettes", "n", "nb_pals", "maximum number of palettes"),
    Switch(Key.GROUP_OUTPUTS, "group-outputs", "O", descr="derive automatic paths from the output path"),
    Switch(Key.OUTPUT, "output", "o", "out_file", "output the tile data to this path"),
    Switch(Key.AUTO_PALETTE, "auto-palette", "P", descr="derive the palette path"),
    Switch(Key.AUTO_PALETTE, "output-palette", deprecated=True, successor="--auto-palette"),
    Switch(Key.PALETTE, "palette", "p", "pal_file", "output the palettes to this path"),
    Switch(Key.AUTO_PALETTE_MAP, "auto-palette-map", "Q", descr="derive the palette map path"),
    Switch(Key.AUTO_PALETTE_MAP, "output-palette-map", deprecated=True, successor="--auto-palette-map"),
    Switch(Key.PALETTE_MAP, "palette-map", "q", "pal_map", "output the palette map to this path"),
    Switch(Key.REVERSE, "reverse", "r", "stride", "rebuild an image from tile data, N tiles wide"),
    Switch(Key.PALETTE_SIZE, "palette-size", "s", "nb_colors", "number of colors per palette"),
    Switch(Key.AUTO_TILEMAP, "auto-tilemap", "T", descr="derive the tile map path"),
    Switch(Key.AUTO_TILEMAP, "output-tilemap", deprecated=True, successor="--auto-tilemap"),
    Switch(Key.TILEMAP, "tilemap", "t", "tile_map", "output the tile map to this path"),
    Switch(Key.UNIQUE_TILES, "unique-tiles", "u", descr="optimize out identical tiles"),
    Switch(Key.VERSION, "version", "V", descr="print the version and exit"),
    Switch(Key.VERBOSE, "verbose", "v", descr="print more information (repeatable)"),
    Switch(Key.TRIM_END, "trim-end", "x", "nb_tiles", "trim this many tiles off the end of the output"),
    Switch(Key.COLUMNS, "columns", "Z", descr="visit the image in column-major order"),
)


class SwitchTable:
    def __init__(self, switches=SWITCHES):
        self.switches = tuple(switches)
        self._shorts = {}
        self._longs = {}
        for switch in self.switches:
            if switch.short:
                if self._shorts.setdefault(switch.short, switch) is not switch:
                    raise ValueError("short option -%s is declared twice" % switch.short)
            if self._longs.setdefault(switch.long, switch) is not switch:
                raise ValueError("long option --%s is declared twice" % switch.long)

    def short(self, letter):
        return self._shorts.get(letter)

    def lookup(self, name):
        if not name:
            return []
        if name in self._longs:
            return [self._longs[name]]
        return [switch for switch in self.switches if switch.long.startswith(name)]


TABLE = SwitchTable()


__all__ = (
    "Key",
    "Switch",
    "SWITCHES",
    "SwitchTable",
    "TABLE",
)
