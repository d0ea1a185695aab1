"""
Conversion configuration: raw accumulation, then one finalization step.

Phases
- Builder: mutable record filled while option frames are scanned. Fields may
  be overwritten any number of times. It carries a Deferred record holding the
  decisions that can only be taken once every option is known.
- finalize(builder, diagnostics) → Options: derives colors-per-palette,
  automatic output paths and the external palette spec, then freezes the
  result. Recoverable problems are recorded on the diagnostics sink; missing
  sources for automatic paths are fatal.

Options is immutable and is what downstream collaborators receive.
"""
from dataclasses import dataclass, field, fields
from enum import IntEnum
from pathlib import Path

from .faults import DepthMismatchError, FaultCode, MissingSourceError
from .literals import UINT16_MAX
from .palspec import parse_external


class PalSpecType(IntEnum):
    NO_SPEC = 0
    EXPLICIT = 1
    EMBEDDED = 2


class Verbosity(IntEnum):
    NONE = 0
    CFG = 1
    LOG_ACT = 2
    INTERM = 3
    DEBUG = 4
    UNMAPPED = 5
    VVVVVV = 6


@dataclass(frozen=True, slots=True)
class InputSlice:
    left: int = 0
    top: int = 0
    width: int = 0  # 0 means "up to the image's edge"
    height: int = 0


@dataclass(slots=True)
class Deferred:
    auto_attrmap: bool = False
    auto_tilemap: bool = False
    auto_palettes: bool = False
    auto_palmap: bool = False
    group_outputs: bool = False
    external_palspec: str | None = None


@dataclass(slots=True)
class Builder:
    input: Path | None = None
    output: Path | None = None
    tilemap: Path | None = None
    attrmap: Path | None = None
    palettes: Path | None = None
    palmap: Path | None = None
    bit_depth: int = 2
    nb_colors_per_pal: int = 0  # 0 means "1 << bit_depth"
    nb_palettes: int = 8
    base_tile_ids: list[int] = field(default_factory=lambda: [0, 0])
    max_nb_tiles: list[int] = field(default_factory=lambda: [UINT16_MAX, 0])
    input_slice: InputSlice = field(default_factory=InputSlice)
    allow_mirroring: bool = False
    allow_dedup: bool = False
    use_color_curve: bool = False
    column_major: bool = False
    pal_spec_type: PalSpecType = PalSpecType.NO_SPEC
    pal_spec: tuple = ()
    trim: int = 0
    reversed_width: int = 0
    verbosity: Verbosity = Verbosity.NONE
    deferred: Deferred = field(default_factory=Deferred)


@dataclass(frozen=True, slots=True)
class Options:
    input: Path | None = None
    output: Path | None = None
    tilemap: Path | None = None
    attrmap: Path | None = None
    palettes: Path | None = None
    palmap: Path | None = None
    bit_depth: int = 2
    nb_colors_per_pal: int = 4
    nb_palettes: int = 8
    base_tile_ids: tuple[int, int] = (0, 0)
    max_nb_tiles: tuple[int, int] = (UINT16_MAX, 0)
    input_slice: InputSlice = InputSlice()
    allow_mirroring: bool = False
    allow_dedup: bool = False
    use_color_curve: bool = False
    column_major: bool = False
    pal_spec_type: PalSpecType = PalSpecType.NO_SPEC
    pal_spec: tuple = ()
    trim: int = 0
    reversed_width: int = 0
    verbosity: Verbosity = Verbosity.NONE

    @property
    def reverse(self):
        return self.reversed_width != 0


# (deferred flag, path field, extension)
AUTO_PATHS = (
    ("auto_attrmap", "attrmap", ".attrmap"),
    ("auto_tilemap", "tilemap", ".tilemap"),
    ("auto_palettes", "palettes", ".pal"),
    ("auto_palmap", "palmap", ".palmap"),
)


def replace_extension(path, extension):
    path = Path(path)
    if path.name in ("", ".", ".."):
        return Path(str(path) + extension)
    return path.with_suffix(extension)


def finalize(builder, diagnostics):
    deferred = builder.deferred
    nb_colors_per_pal = builder.nb_colors_per_pal
    limit = 1 << builder.bit_depth

    if nb_colors_per_pal == 0:
        nb_colors_per_pal = limit
    elif nb_colors_per_pal > limit:
        diagnostics.trigger(DepthMismatchError(
            "%dbpp palettes can only contain %d colors, not %d" % (builder.bit_depth, limit, nb_colors_per_pal),
            title="palette too large for bit depth",
            code=FaultCode.DEPTH_MISMATCH,
            hint="lower -s or raise -d",
        ))

    paths = {}
    for flag, name, extension in AUTO_PATHS:
        # An explicit path always wins over the automatic one
        if not getattr(deferred, flag) or getattr(builder, name) is not None:
            continue
        source = builder.output if deferred.group_outputs else builder.input
        if source is None:
            diagnostics.trigger(MissingSourceError(
                "No %s specified" % ("output tile data file" if deferred.group_outputs else "input image"),
                title="missing path source",
                code=FaultCode.MISSING_SOURCE,
                hint="pass %s or an explicit path instead of the automatic option"
                     % ("-o" if deferred.group_outputs else "an input image"),
                usage=True,
            ))
        paths[name] = replace_extension(source, extension)

    pal_spec = builder.pal_spec
    if deferred.external_palspec is not None:
        pal_spec = parse_external(deferred.external_palspec, nb_colors_per_pal, diagnostics) or ()

    values = {item.name: getattr(builder, item.name) for item in fields(Options)}
    values.update(
        paths,
        nb_colors_per_pal=nb_colors_per_pal,
        base_tile_ids=tuple(builder.base_tile_ids),
        max_nb_tiles=tuple(builder.max_nb_tiles),
        pal_spec=tuple(pal_spec),
    )
    return Options(**values)


__all__ = (
    "PalSpecType",
    "Verbosity",
    "InputSlice",
    "Deferred",
    "Builder",
    "Options",
    "AUTO_PATHS",
    "replace_extension",
    "finalize",
)
