"""
Palette specifications given with `-c`.

Inline specs are parsed as soon as the option is seen:

    -c '#fff,#aaa,#555,#000;#f00,#0f0'

External specs (`fmt:path`) are parsed only once every option is known,
because flat color lists must be cut into rows of the final palette size.
Both return a tuple of rows; each row has exactly four entries, `None`
marking a slot the spec left empty.
"""
import re
import struct
from pathlib import Path

from .faults import FaultCode, PaletteFileError, PaletteSpecError
from .palette import NB_SLOTS, Rgba
from .utils import Unset


class _Malformed(ValueError):
    pass


def _pad(colors):
    return tuple(colors) + (None,) * (NB_SLOTS - len(colors))


def parse_inline(spec, diagnostics, *, location=Unset):
    """
    Parse `#color[,#color…][;#color…]`.

    Returns None after a recoverable fault when the text is malformed.
    """
    context = {} if location is Unset else {"location": location}
    rows = []
    for index, row in enumerate(spec.split(";"), 1):
        colors = [color.strip(" \t") for color in row.split(",")]
        if colors == [""]:
            # Tolerate a trailing ';'
            if index > 1 and index == spec.count(";") + 1:
                continue
            diagnostics.trigger(PaletteSpecError(
                "palette #%d in \"%s\" is empty" % (index, spec),
                title="malformed palette spec",
                code=FaultCode.MALFORMED_PALETTE_SPEC,
                **context,
            ))
            return None
        if len(colors) > NB_SLOTS:
            diagnostics.trigger(PaletteSpecError(
                "palette #%d in \"%s\" has %d colors, but palettes can only contain up to %d"
                % (index, spec, len(colors), NB_SLOTS),
                title="malformed palette spec",
                code=FaultCode.MALFORMED_PALETTE_SPEC,
                **context,
            ))
            return None
        parsed = []
        for number, color in enumerate(colors, 1):
            if not re.fullmatch(r"#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})", color):
                diagnostics.trigger(PaletteSpecError(
                    "failed to parse color #%d (\"%s\") of palette #%d in \"%s\"" % (number, color, index, spec),
                    title="malformed palette spec",
                    code=FaultCode.MALFORMED_PALETTE_SPEC,
                    hint="colors are written #rgb or #rrggbb",
                    **context,
                ))
                return None
            parsed.append(Rgba.from_css(color))
        rows.append(_pad(parsed))
    return tuple(rows)


def _read_psp(data):
    # JASC-PAL: header, version, count, then "r g b" per line
    lines = [line.strip() for line in data.decode("ascii", "replace").splitlines()]
    if len(lines) < 3 or lines[0] != "JASC-PAL" or lines[1] != "0100":
        raise _Malformed("missing JASC-PAL header")
    try:
        count = int(lines[2])
    except ValueError:
        raise _Malformed("invalid color count %r" % lines[2]) from None
    entries = [line for line in lines[3:] if line]
    if len(entries) < count:
        raise _Malformed("expected %d colors, found %d" % (count, len(entries)))
    return [_rgb_triplet(entry) for entry in entries[:count]]


def _read_gpl(data):
    lines = data.decode("utf-8", "replace").splitlines()
    if not lines or lines[0].strip() != "GIMP Palette":
        raise _Malformed("missing \"GIMP Palette\" header")
    colors = []
    for line in lines[1:]:
        line = line.strip()
        if not line or line.startswith("#") or re.match(r"(Name|Columns):", line):
            continue
        colors.append(_rgb_triplet(" ".join(line.split()[:3])))
    return colors


def _read_hex(data):
    colors = []
    for line in data.decode("ascii", "replace").splitlines():
        line = line.strip()
        if not line:
            continue
        if not re.fullmatch(r"#?[0-9A-Fa-f]{6}", line):
            raise _Malformed("expected rrggbb, not %r" % line)
        colors.append(Rgba.from_css(line))
    return colors


def _read_act(data):
    # 256 RGB triplets, optionally followed by a big-endian count and transparent index
    if len(data) not in (768, 772):
        raise _Malformed("expected 768 or 772 bytes, got %d" % len(data))
    count = 256
    if len(data) == 772:
        count, _transparent = struct.unpack(">HH", data[768:772])
        count = min(count, 256)
    return [Rgba(*data[index:index + 3]) for index in range(0, count * 3, 3)]


def _read_aco(data):
    # Version 1 swatches; only the RGB color space is understood
    if len(data) < 4:
        raise _Malformed("file is truncated")
    version, count = struct.unpack(">HH", data[:4])
    if version != 1:
        raise _Malformed("unsupported version %d" % version)
    if len(data) < 4 + count * 10:
        raise _Malformed("expected %d colors, file is truncated" % count)
    colors = []
    for offset in range(4, 4 + count * 10, 10):
        space, red, green, blue, _ = struct.unpack(">HHHHH", data[offset:offset + 10])
        if space != 0:
            raise _Malformed("unsupported color space %d" % space)
        colors.append(Rgba(red >> 8, green >> 8, blue >> 8))
    return colors


def _read_gbc(data):
    # Little-endian RGB555 words, four per palette, never re-cut
    if len(data) % (2 * NB_SLOTS):
        raise _Malformed("size must be a multiple of %d bytes" % (2 * NB_SLOTS))
    words = struct.unpack("<%dH" % (len(data) // 2), data)
    return [
        _pad([Rgba.from_rgb555(word) for word in words[index:index + NB_SLOTS]])
        for index in range(0, len(words), NB_SLOTS)
    ]


def _rgb_triplet(line):
    try:
        red, green, blue = (int(part) for part in line.split())
    except ValueError:
        raise _Malformed("expected \"r g b\", not %r" % line) from None
    if not all(0 <= channel <= 255 for channel in (red, green, blue)):
        raise _Malformed("color channels must be in 0..255: %r" % line)
    return Rgba(red, green, blue)


# format name -> (reader, whether the reader already returns rows)
FORMATS = {
    "act": (_read_act, False),
    "aco": (_read_aco, False),
    "gbc": (_read_gbc, True),
    "gpl": (_read_gpl, False),
    "hex": (_read_hex, False),
    "psp": (_read_psp, False),
}


def parse_external(spec, nb_colors_per_pal, diagnostics, *, location=Unset):
    """
    Load `fmt:path` and cut flat color lists into rows of `nb_colors_per_pal`.

    Returns None after a recoverable fault.
    """
    context = {} if location is Unset else {"location": location}
    format, colon, path = spec.partition(":")
    if not colon:
        diagnostics.trigger(PaletteSpecError(
            "external palette spec must have format `fmt:path` (missing colon) in \"%s\"" % spec,
            title="malformed palette spec",
            code=FaultCode.MALFORMED_PALETTE_SPEC,
            hint="supported formats: %s" % ", ".join(sorted(FORMATS)),
            **context,
        ))
        return None
    try:
        reader, rows = FORMATS[format.lower()]
    except KeyError:
        diagnostics.trigger(PaletteSpecError(
            "unknown external palette format \"%s\"" % format,
            title="unknown palette format",
            code=FaultCode.MALFORMED_PALETTE_SPEC,
            hint="supported formats: %s" % ", ".join(sorted(FORMATS)),
            **context,
        ))
        return None
    try:
        data = Path(path).read_bytes()
    except OSError as error:
        diagnostics.trigger(PaletteFileError(
            "failed to open external palette file \"%s\": %s" % (path, error.strerror or error),
            title="unreadable palette file",
            code=FaultCode.UNREADABLE_PALETTE_FILE,
            **context,
        ))
        return None
    try:
        colors = reader(data)
    except _Malformed as error:
        diagnostics.trigger(PaletteSpecError(
            "%s palette file \"%s\": %s" % (format.upper(), path, error),
            title="malformed palette file",
            code=FaultCode.MALFORMED_PALETTE_SPEC,
            **context,
        ))
        return None
    if rows:
        return tuple(colors)
    size = max(1, min(nb_colors_per_pal, NB_SLOTS))
    return tuple(_pad(colors[index:index + size]) for index in range(0, len(colors), size))


__all__ = (
    "FORMATS",
    "parse_inline",
    "parse_external",
)
