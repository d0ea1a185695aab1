"""
Option resolution: turn one frame's raw tokens into Builder updates.

What this module provides
- OptionResolver.scan(frame): walk the frame left to right.
  • "--" ends option scanning for the frame (the stack registers the rest).
  • "@path" hands `path` back to the caller, which expands it as a new frame.
  • other positionals register the input image (exactly once, never empty).
  • options are matched against the switch table and applied to the Builder.
- VersionRequest: raised for -V/--version; the driver prints and exits 0.

Diagnostics
- Unknown/ambiguous options, missing values and input registration problems
  are fatal. Everything about option values is recoverable: a fault is
  recorded, a documented fallback is kept, and scanning continues so that one
  run reports every mistake.
- Messages about composite values quote the argument exactly as given.
"""
from dataclasses import replace
from pathlib import Path

from .config import PalSpecType, Verbosity
from .faults import (
    AmbiguousOptionError,
    DeprecatedOptionWarning,
    DuplicateInputError,
    EmptyPathError,
    EmptyInputError,
    FaultCode,
    MalformedListError,
    MalformedSliceError,
    MissingArgumentError,
    OverridingPathWarning,
    TrailingCharactersError,
    UnexpectedArgumentError,
    UnknownOptionError,
    ValueRangeError,
)
from .literals import UINT16_MAX, Cursor, parse_number
from .palspec import parse_inline
from .switches import TABLE, Key
from .utils import Unset

INT16_MAX = 0x7FFF


class VersionRequest(Exception):
    """Raised when -V/--version is seen; nothing after it is parsed."""


# path field, deferred flag, description used by "overriding" warnings
_PATHS = {
    Key.OUTPUT: ("output", None, "tile data file"),
    Key.ATTRMAP: ("attrmap", "auto_attrmap", "attrmap file"),
    Key.TILEMAP: ("tilemap", "auto_tilemap", "tilemap file"),
    Key.PALETTE: ("palettes", "auto_palettes", "palettes file"),
    Key.PALETTE_MAP: ("palmap", "auto_palmap", "palette map file"),
}

_AUTOS = {
    Key.AUTO_ATTRMAP: ("auto_attrmap", "attrmap"),
    Key.AUTO_TILEMAP: ("auto_tilemap", "tilemap"),
    Key.AUTO_PALETTE: ("auto_palettes", "palettes"),
    Key.AUTO_PALETTE_MAP: ("auto_palmap", "palmap"),
}


class OptionResolver:
    def __init__(self, builder, diagnostics, *, table=TABLE):
        self.builder = builder
        self.diagnostics = diagnostics
        self.table = table

    # ---- positionals ----

    def register_input(self, path, *, location=Unset):
        context = {} if location is Unset else {"location": location}
        if self.builder.input is not None:
            self.diagnostics.trigger(DuplicateInputError(
                "input image specified more than once! (first \"%s\", then \"%s\")" % (self.builder.input, path),
                title="duplicate input",
                code=FaultCode.DUPLICATE_INPUT,
                usage=True,
                **context,
            ))
        if not path:
            self.diagnostics.trigger(EmptyInputError(
                "input image path cannot be empty",
                title="empty input",
                code=FaultCode.EMPTY_INPUT,
                usage=True,
                **context,
            ))
        self.builder.input = Path(path)

    # ---- scanning ----

    def scan(self, frame):
        """
        Scan `frame` from its current index.

        returns
        - the path of a response file to expand (the "@" token is consumed), or
        - None once the frame is exhausted or "--" was reached.
        """
        while not frame.exhausted:
            index = frame.index
            token = frame.tokens[index]
            frame.index += 1
            location = frame.where(index)

            if token == "--":
                frame.ended = True
                return None
            if token.startswith("-") and token != "-":
                for switch, spelling, value in self._resolve(token, frame, location):
                    self._apply(switch, spelling, value, location)
                continue
            if token.startswith("@"):
                return token[1:]
            self.register_input(token, location=location)
        return None

    def _resolve(self, token, frame, location):
        """
        Split one option token into (switch, spelling, value) triples.

        Values are taken inline ("--name=value", "-ovalue") or from the next
        token of the same frame.
        """
        if token.startswith("--"):
            name, equals, value = token[2:].partition("=")
            switch = self._long(name, token, location)
            return [self._long_value(switch, token, equals, value, frame, location)]

        name, equals, value = token[1:].partition("=")
        matches = self.table.lookup(name)
        # "-o" is the short option even though it also prefixes "--output"
        if len(matches) == 1 and not (len(name) == 1 and self.table.short(name)):
            return [self._long_value(matches[0], token, equals, value, frame, location)]

        resolved = []
        letters = token[1:]
        for position, letter in enumerate(letters):
            switch = self.table.short(letter)
            if switch is None:
                self.diagnostics.trigger(UnknownOptionError(
                    "unknown option '%s'" % letter,
                    title="unknown option",
                    code=FaultCode.UNKNOWN_OPTION,
                    hint="run without arguments to see the usage",
                    input=token,
                    usage=True,
                    location=location,
                ))
            if not switch.takes_value:
                resolved.append((switch, "-" + letter, Unset))
                continue
            if rest := letters[position + 1:]:
                resolved.append((switch, "-" + letter, rest))
            else:
                resolved.append((switch, "-" + letter, self._next_value(switch, "-" + letter, frame, location)))
            break
        return resolved

    def _long(self, name, token, location):
        matches = self.table.lookup(name)
        if len(matches) == 1:
            return matches[0]
        if matches:
            self.diagnostics.trigger(AmbiguousOptionError(
                "option '%s' is ambiguous (could be %s)" % (token, ", ".join(map(str, matches))),
                title="ambiguous option",
                code=FaultCode.AMBIGUOUS_OPTION,
                hint="spell out more of the option name",
                input=token,
                usage=True,
                location=location,
            ))
        self.diagnostics.trigger(UnknownOptionError(
            "unrecognized option '%s'" % token,
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            hint="run without arguments to see the usage",
            input=token,
            usage=True,
            location=location,
        ))

    def _long_value(self, switch, token, equals, value, frame, location):
        spelling = token.partition("=")[0]
        if not switch.takes_value:
            if equals:
                self.diagnostics.trigger(UnexpectedArgumentError(
                    "option '%s' doesn't allow an argument" % switch,
                    title="unexpected option value",
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    hint="remove everything from '=' (for example: %s)" % spelling,
                    input=token,
                    usage=True,
                    location=location,
                ))
            return switch, spelling, Unset
        if equals:
            return switch, spelling, value
        return switch, spelling, self._next_value(switch, spelling, frame, location)

    def _next_value(self, switch, spelling, frame, location):
        if frame.index >= len(frame.tokens):
            self.diagnostics.trigger(MissingArgumentError(
                "option '%s' requires an argument" % spelling,
                title="missing option value",
                code=FaultCode.MISSING_ARGUMENT,
                hint="pass it as %s <%s>" % (spelling, switch.metavar),
                input=spelling,
                usage=True,
                location=location,
            ))
        value = frame.tokens[frame.index]
        frame.index += 1
        return value

    # ---- application ----

    def _apply(self, switch, spelling, value, location):
        builder = self.builder
        deferred = builder.deferred

        if switch.deprecated:
            self.diagnostics.trigger(DeprecatedOptionWarning(
                "`%s` is deprecated, use `%s` instead" % (switch, switch.successor),
                title="deprecated option",
                code=FaultCode.DEPRECATED_OPTION,
                input=spelling,
                location=location,
            ))

        match switch.key:
            case Key.AUTO_ATTRMAP | Key.AUTO_TILEMAP | Key.AUTO_PALETTE | Key.AUTO_PALETTE_MAP:
                flag, name = _AUTOS[switch.key]
                # An explicit path given earlier keeps priority
                setattr(deferred, flag, getattr(builder, name) is None)
            case Key.OUTPUT | Key.ATTRMAP | Key.TILEMAP | Key.PALETTE | Key.PALETTE_MAP:
                name, flag, descr = _PATHS[switch.key]
                if not value:
                    self.diagnostics.trigger(EmptyPathError(
                        "%s path cannot be empty" % descr.capitalize(),
                        title="empty path",
                        code=FaultCode.EMPTY_PATH,
                        input=spelling,
                        location=location,
                    ))
                    return
                if flag:
                    setattr(deferred, flag, False)
                if (previous := getattr(builder, name)) is not None:
                    self.diagnostics.trigger(OverridingPathWarning(
                        "Overriding %s %s" % (descr, previous),
                        title="overriding path",
                        code=FaultCode.OVERRIDING_PATH,
                        input=spelling,
                        location=location,
                    ))
                setattr(builder, name, Path(value))
            case Key.BASE_TILES:
                builder.base_tile_ids = self._banks(
                    value, location,
                    labels=("Bank 0 base tile ID", "Bank 1 base tile ID"),
                    default=0,
                    fits=lambda number: number < 256,
                    limit="%s must be below 256",
                    grammar="Base tile IDs must be one or two comma-separated numbers, not \"%s\"",
                )
            case Key.NB_TILES:
                builder.max_nb_tiles = self._banks(
                    value, location,
                    labels=("Number of tiles in bank 0", "Number of tiles in bank 1"),
                    default=256,
                    fits=lambda number: number <= 256,
                    limit="%s cannot exceed 256",
                    grammar="Bank capacity must be one or two comma-separated numbers, not \"%s\"",
                )
            case Key.COLOR_CURVE:
                builder.use_color_curve = True
            case Key.COLORS:
                self._colors(value, location)
            case Key.DEPTH:
                cursor = Cursor(value)
                builder.bit_depth = parse_number(cursor, "Bit depth", self.diagnostics, 2, location=location)
                if not cursor.at_end:
                    self._trailing("Bit depth (-d) argument must be a valid number, not \"%s\"" % value, location)
                elif builder.bit_depth not in (1, 2):
                    self._range("Bit depth must be 1 or 2, not %d" % builder.bit_depth, location)
                if builder.bit_depth not in (1, 2):
                    builder.bit_depth = 2
            case Key.SLICE:
                self._slice(value, location)
            case Key.MIRROR_TILES:
                # Mirroring implies deduplication
                builder.allow_mirroring = True
                builder.allow_dedup = True
            case Key.UNIQUE_TILES:
                builder.allow_dedup = True
            case Key.NB_PALETTES:
                cursor = Cursor(value)
                builder.nb_palettes = parse_number(cursor, "Number of palettes", self.diagnostics, 256, location=location)
                if not cursor.at_end:
                    self._trailing("Number of palettes (-n) must be a valid number, not \"%s\"" % value, location)
                if builder.nb_palettes > 256:
                    self._range("Number of palettes (-n) must not exceed 256!", location)
                elif builder.nb_palettes == 0:
                    self._range("Number of palettes (-n) may not be 0!", location)
            case Key.GROUP_OUTPUTS:
                deferred.group_outputs = True
            case Key.REVERSE:
                cursor = Cursor(value)
                builder.reversed_width = parse_number(cursor, "Reversed image stride", self.diagnostics, location=location)
                if not cursor.at_end:
                    self._trailing("Reversed image stride (-r) must be a valid number, not \"%s\"" % value, location)
                if builder.reversed_width == 0:
                    self._range("Reversed image stride (-r) may not be 0!", location)
            case Key.PALETTE_SIZE:
                cursor = Cursor(value)
                builder.nb_colors_per_pal = parse_number(
                    cursor, "Number of colors per palette", self.diagnostics, 4, location=location
                )
                if not cursor.at_end:
                    self._trailing("Palette size (-s) must be a valid number, not \"%s\"" % value, location)
                if builder.nb_colors_per_pal > 4:
                    self._range("Palette size (-s) must not exceed 4!", location)
                elif builder.nb_colors_per_pal == 0:
                    self._range("Palette size (-s) may not be 0!", location)
            case Key.VERSION:
                raise VersionRequest()
            case Key.VERBOSE:
                if builder.verbosity < Verbosity.VVVVVV:
                    builder.verbosity = Verbosity(builder.verbosity + 1)
            case Key.TRIM_END:
                cursor = Cursor(value)
                builder.trim = parse_number(cursor, "Number of tiles to trim", self.diagnostics, 0, location=location)
                if not cursor.at_end:
                    self._trailing("Tile trim (-x) argument must be a valid number, not \"%s\"" % value, location)
            case Key.COLUMNS:
                builder.column_major = True
            case _:
                raise RuntimeError("unexpected option %r" % switch)

    def _trailing(self, message, location):
        self.diagnostics.trigger(TrailingCharactersError(
            message,
            title="trailing characters",
            code=FaultCode.TRAILING_CHARACTERS,
            location=location,
        ))

    def _range(self, message, location):
        self.diagnostics.trigger(ValueRangeError(
            message,
            title="value out of range",
            code=FaultCode.OUT_OF_RANGE,
            location=location,
        ))

    def _banks(self, value, location, *, labels, default, fits, limit, grammar):
        """
        Parse "bank0[,bank1]". Bank 1 falls back to 0 when omitted.

        Values already parsed are kept when the grammar breaks down later.
        """
        banks = [0, 0]
        cursor = Cursor(value)

        def malformed():
            self.diagnostics.trigger(MalformedListError(
                grammar % value,
                title="malformed bank list",
                code=FaultCode.MALFORMED_LIST,
                location=location,
            ))

        banks[0] = parse_number(cursor, labels[0], self.diagnostics, default, location=location)
        if not fits(banks[0]):
            self._range(limit % labels[0], location)
        if cursor.at_end:
            return banks

        cursor.skip_blanks()
        if not cursor.accept(","):
            malformed()
            return banks
        cursor.skip_blanks()
        banks[1] = parse_number(cursor, labels[1], self.diagnostics, default, location=location)
        if not fits(banks[1]):
            self._range(limit % labels[1], location)
        if not cursor.at_end:
            malformed()
        return banks

    def _slice(self, value, location):
        """Parse "left,top:width,height" into the builder's input slice."""
        builder = self.builder
        cursor = Cursor(value)

        def malformed(message):
            self.diagnostics.trigger(MalformedSliceError(
                message % value,
                title="malformed slice",
                code=FaultCode.MALFORMED_SLICE,
                hint="the slice is written left,top:width,height",
                location=location,
            ))

        def number(label):
            return parse_number(cursor, label, self.diagnostics, location=location)

        left = number("Input slice left coordinate")
        builder.input_slice = replace(builder.input_slice, left=left)
        if left > INT16_MAX:
            self._range("Input slice left coordinate is out of range!", location)
            return
        cursor.skip_blanks()
        if not cursor.accept(","):
            malformed("Missing comma after left coordinate in \"%s\"")
            return
        cursor.skip_blanks()
        builder.input_slice = replace(builder.input_slice, top=number("Input slice upper coordinate"))
        cursor.skip_blanks()
        if not cursor.accept(":"):
            malformed("Missing colon after upper coordinate in \"%s\"")
            return
        cursor.skip_blanks()
        width = number("Input slice width")
        builder.input_slice = replace(builder.input_slice, width=width)
        cursor.skip_blanks()
        if width == 0:
            self._range("Input slice width may not be 0!", location)
        if not cursor.accept(","):
            malformed("Missing comma after width in \"%s\"")
            return
        cursor.skip_blanks()
        height = number("Input slice height")
        builder.input_slice = replace(builder.input_slice, height=height)
        if height == 0:
            self._range("Input slice height may not be 0!", location)
        if not cursor.at_end:
            malformed("Unexpected extra characters after slice spec in \"%s\"")

    def _colors(self, value, location):
        builder = self.builder
        if value.startswith("#"):
            builder.pal_spec_type = PalSpecType.EXPLICIT
            builder.deferred.external_palspec = None
            builder.pal_spec = parse_inline(value, self.diagnostics, location=location) or ()
        elif value.lower() == "embedded":
            builder.pal_spec_type = PalSpecType.EMBEDDED
            builder.deferred.external_palspec = None
        else:
            # Flat color lists need the final palette size, so parsing waits
            builder.pal_spec_type = PalSpecType.EXPLICIT
            builder.deferred.external_palspec = value


__all__ = (
    "VersionRequest",
    "OptionResolver",
)
