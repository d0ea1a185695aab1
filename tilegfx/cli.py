"""
tilegfx command-line driver.

Flow
1. parse(argv, diagnostics): drain the command line and every response file
   through the resolver, then finalize the Builder into Options.
2. At verbosity CFG and above, describe the finalized Options on stderr.
3. Checkpoint: any recoverable error recorded so far aborts the run.
4. Dispatch to the pipeline (reverse / process / process_palettes).
5. Checkpoint again, for errors counted by the pipeline itself.

main() is the only place that maps outcomes to exit statuses:
0 on success or --version, 1 on a fatal fault or an aborted conversion.
"""
import sys
from collections import defaultdict
from typing import Protocol

from rich.console import Console, Group
from rich.text import Text

from . import __version__
from .config import Builder, PalSpecType, Verbosity, finalize
from .faults import ConversionAborted, Diagnostics, FatalError, FaultCode, MissingInputError, console
from .frames import ArgumentSourceStack
from .resolver import OptionResolver, VersionRequest
from .switches import SWITCHES, Key

PROG = "tilegfx"

# Value options offered together with their automatic counterpart in the usage line
_PAIRS = {
    Key.ATTRMAP: Key.AUTO_ATTRMAP,
    Key.PALETTE: Key.AUTO_PALETTE,
    Key.PALETTE_MAP: Key.AUTO_PALETTE_MAP,
    Key.TILEMAP: Key.AUTO_TILEMAP,
}


class Pipeline(Protocol):
    """Downstream collaborator receiving the finalized options."""

    def process(self, options, diagnostics): ...

    def reverse(self, options, diagnostics): ...

    def process_palettes(self, options, diagnostics): ...


def parse(argv, diagnostics):
    """Resolve `argv` (and any response files it names) into Options."""
    builder = Builder()
    ArgumentSourceStack(argv, diagnostics).drain(OptionResolver(builder, diagnostics))
    return finalize(builder, diagnostics)


def usage(*, colorful=False, prog=PROG):
    """
    Render the usage summary from the option table.

    Palette keys
    - usage-label, program-name, flag-name, option-name, metavar, argument-description
    - __main__.__styles__ overrides any entry, as for faults.
    """
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "flag-name": "bold #22C55E",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",
        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",
    } | getattr(sys.modules.get("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    switches = [switch for switch in SWITCHES if not switch.deprecated]
    autos = {_PAIRS[switch.key]: switch for switch in switches if switch.key in _PAIRS}
    by_key = {switch.key: switch for switch in switches}

    def option(switch):
        return Text.assemble(
            ("-" + switch.short, styler("option-name")), " <", (switch.metavar, styler("metavar")), ">"
        )

    items = [Text.assemble("[", option(by_key[Key.REVERSE]), "]")]
    letters = sorted(
        (switch.short for switch in switches
         if not switch.takes_value and switch.key not in autos and switch.key is not Key.VERBOSE),
        key=str.lower,
    )
    items.append(Text.assemble("[-", ("".join(letters), styler("flag-name")), "]"))
    items.append(Text.assemble("[", ("-v", styler("flag-name")), " [", ("-v", styler("flag-name")), " ...]]"))
    for switch in sorted(switches, key=lambda switch: switch.short.lower()):
        if not switch.takes_value or switch.key is Key.REVERSE:
            continue
        if switch.key in _PAIRS:
            auto = by_key[_PAIRS[switch.key]]
            items.append(Text.assemble("[", option(switch), " | ", ("-" + auto.short, styler("flag-name")), "]"))
        else:
            items.append(Text.assemble("[", option(switch), "]"))
    items.append(Text.assemble("<", ("file", styler("metavar")), ">"))

    line = Text.assemble(("usage", styler("usage-label")), ": ", (prog, styler("program-name")))
    offset = len(line) + 1
    width = console.width
    current = len(line)
    for item in items:
        if current + 1 + len(item) > width:
            line.append("\n" + " " * offset)
            current = offset
        else:
            line.append(" ")
            current += 1
        line.append_text(item)
        current += len(item)

    options = Text.assemble(("options", styler("group-label")), ":")
    indent = 28
    for switch in switches:
        names = Text(", ").join(Text(name, styler("flag-name" if not switch.takes_value else "option-name"))
                                for name in switch.names)
        if switch.takes_value:
            names.append(" <").append(switch.metavar, styler("metavar")).append(">")
        section = Text("  ").append_text(names)
        if len(section) >= indent:
            section.append("\n" + " " * indent)
        else:
            section.append(" " * (indent - len(section)))
        section.append(switch.descr or "", styler("argument-description"))
        options.append("\n").append_text(section)

    return Group(line, options)


def describe(options):
    """Summarize finalized options the way -v reports them."""
    lines = ["Options:"]
    if options.column_major:
        lines.append("\tVisit image in column-major order")
    if options.allow_mirroring:
        lines.append("\tAllow mirroring tiles")
    if options.allow_dedup:
        lines.append("\tAllow deduplicating tiles")
    if options.use_color_curve:
        lines.append("\tUse color curve")
    lines.append("\tBit depth: %dbpp" % options.bit_depth)
    if options.trim:
        lines.append("\tTrim the last %d tiles" % options.trim)
    lines.append("\tMaximum %d palettes" % options.nb_palettes)
    lines.append("\tPalettes contain %d colors" % options.nb_colors_per_pal)
    lines.append("\t%s palette spec" % {
        PalSpecType.NO_SPEC: "No",
        PalSpecType.EXPLICIT: "Explicit",
        PalSpecType.EMBEDDED: "Embedded",
    }[options.pal_spec_type])
    if options.pal_spec_type is PalSpecType.EXPLICIT:
        lines.append("\t[")
        for row in options.pal_spec:
            lines.append("\t\t%s," % ", ".join(
                "#------" if color is None else "#%06x" % (color.to_css() >> 8) for color in row
            ))
        lines.append("\t]")
    lines.append("\tInput image slice: %dx%d pixels starting at (%d, %d)" % (
        options.input_slice.width, options.input_slice.height, options.input_slice.left, options.input_slice.top
    ))
    lines.append("\tBase tile IDs: [%d, %d]" % options.base_tile_ids)
    lines.append("\tMaximum %d tiles in bank 0, %d in bank 1" % options.max_nb_tiles)
    for name, path in (
        ("Input image", options.input),
        ("Output tile data", options.output),
        ("Output tilemap", options.tilemap),
        ("Output attrmap", options.attrmap),
        ("Output palettes", options.palettes),
        ("Output palette map", options.palmap),
    ):
        if path is not None:
            lines.append("\t%s: %s" % (name, path))
    return "\n".join(lines)


def dispatch(options, diagnostics, pipeline=None):
    """
    Hand the options to the matching pipeline stage.

    An input image is converted (or rebuilt with -r); without one, only an
    explicit palette spec written to a palette file is meaningful.
    """
    if options.input is not None:
        stage = "reverse" if options.reverse else "process"
    elif options.palettes is not None and options.pal_spec_type is PalSpecType.EXPLICIT and not options.reverse:
        stage = "process_palettes"
    else:
        diagnostics.trigger(MissingInputError(
            "No input image specified",
            title="missing input",
            code=FaultCode.MISSING_INPUT,
            hint="pass the image to convert as a positional argument",
            usage=True,
        ))
    if pipeline is not None:
        getattr(pipeline, stage)(options, diagnostics)
    return stage


def main(argv=None, pipeline=None, **options):
    """
    Run tilegfx on `argv` (defaults to sys.argv[1:]) and return the exit status.

    Keyword options are forwarded to Diagnostics (colorful, fancy, prog).
    """
    argv = sys.argv[1:] if argv is None else argv
    options.setdefault("colorful", console.is_terminal)
    options.setdefault("prog", PROG)
    diagnostics = Diagnostics(shell=True, **options)

    try:
        config = parse(argv, diagnostics)
        if config.verbosity >= Verbosity.CFG:
            console.print("%s v%s" % (PROG, __version__), highlight=False)
            console.print(describe(config), highlight=False, markup=False)
            console.print("Ready.", highlight=False)
        diagnostics.checkpoint()
        dispatch(config, diagnostics, pipeline)
        diagnostics.checkpoint()
    except VersionRequest:
        Console().print("%s v%s" % (PROG, __version__), highlight=False)
        return 0
    except FatalError as fault:
        if fault.options.get("usage"):
            console.print(usage(colorful=diagnostics.colorful, prog=diagnostics.prog))
        return 1
    except ConversionAborted:
        return 1
    return 0


__all__ = (
    "PROG",
    "Pipeline",
    "parse",
    "usage",
    "describe",
    "dispatch",
    "main",
)
