"""
tilegfx faults (errors and warnings), rendering, and the diagnostics sink.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by severity so logs/searches stay predictable.
- Severity: WARNING (informational), ERROR (recoverable, counted), FATAL
  (stops resolution immediately).
- GfxException / GfxWarning: base types that carry message + options and know
  how to render themselves for rich, in plain, colorful or fancy (panel) form.
- Diagnostics: the sink threaded through every parsing component. It records
  each fault as structured data, optionally echoes it to stderr, counts
  recoverable errors and raises fatal ones.
- ConversionAborted: grouped exit raised at a checkpoint when recoverable
  errors were recorded.

Integration
- Parsing code builds a fault and calls diagnostics.trigger(fault, **context).
- Nothing in here terminates the process; the driver (cli.main) maps raised
  faults to exit statuses.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, nullify

console = Console(stderr=True)

# The recoverable-error counter saturates instead of growing without bound.
ERROR_LIMIT = sys.maxsize


class FaultCode(IntEnum):
    """
    canonical fault codes used across the tool (stable identifiers).

    grouping
    - fatal (21xxx): option spelling, input registration, response files.
    - recoverable (22xxx): numbers, composite values, palette specs.
    - warnings (23xxx): deprecations and overrides.
    """
    # --- fatal: option spelling (211xx) ---
    UNKNOWN_OPTION              = 21101
    AMBIGUOUS_OPTION            = 21102
    MISSING_ARGUMENT            = 21103
    UNEXPECTED_ARGUMENT         = 21104

    # --- fatal: inputs and outputs (211xx) ---
    DUPLICATE_INPUT             = 21111
    EMPTY_INPUT                 = 21112
    MISSING_INPUT               = 21113
    MISSING_SOURCE              = 21114

    # --- fatal: response files (212xx) ---
    UNREADABLE_RESPONSE_FILE    = 21201
    RECURSIVE_RESPONSE_FILE     = 21202

    # --- recoverable: numbers (221xx) ---
    EXPECTED_NUMBER             = 22101
    EXPECTED_DIGIT              = 22102
    NUMBER_TOO_LARGE            = 22103
    TRAILING_CHARACTERS         = 22104

    # --- recoverable: values (222xx) ---
    OUT_OF_RANGE                = 22201
    MALFORMED_LIST              = 22202
    MALFORMED_SLICE             = 22203
    DEPTH_MISMATCH              = 22204
    EMPTY_PATH                  = 22205

    # --- recoverable: palettes (223xx) ---
    MALFORMED_PALETTE_SPEC      = 22301
    UNREADABLE_PALETTE_FILE     = 22302

    # --- warnings (23xxx) ---
    DEPRECATED_OPTION           = 23101
    OVERRIDING_PATH             = 23102


class Severity(IntEnum):
    WARNING = 1
    ERROR = 2
    FATAL = 3


def _styles(defaults):
    # Host applications may override any palette entry through __main__.__styles__
    return defaultdict(str, defaults | getattr(sys.modules.get("__main__"), "__styles__", {}))


def _render(fault, label, defaults):
    """
    shared rich rendering for errors and warnings.

    layout
    - plain: "<label>: [<location>: ]<message>" then an optional "hint: …" line.
    - fancy: the same body inside a Panel titled "[ <prog> — <code> | <title> ]".
    """
    options = fault.options
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)
    styles = _styles(defaults)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styler(style))

    message = Text.assemble(text(label, "label"), ": ")
    if location := options.get("location"):
        message.append_text(text(location, "location"))
        message.append(": ")
    message.append_text(text(fault.message, "message"))

    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text("hint", "hint-label"), ": ", text(hint, "hint")))

    if not fancy:
        return Group(*renders)

    prog = getattr(sys.modules.get("__main__"), "__prog__", options.get("prog", "tilegfx"))
    header = Text.assemble("[ ", text(prog, "prog-name"))
    if code := options.get("code"):
        header.append(" — ")
        header.append_text(text(str(int(code)), "code"))
    if title := options.get("title"):
        header.append(" | ")
        header.append_text(text(title.title(), "title"))
    header.append(" ]")
    return Panel(Group(*renders), title=header, title_align="left")


class GfxException(Exception):
    severity = Severity.ERROR
    label = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Text | type(Unset))
        super().__init__(nullify(message, ""))
        self.message = nullify(message, "")
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def location(self):
        return self.options.get("location")

    def __str__(self):
        if self.location:
            return "%s: %s" % (self.location, self.message)
        return str(self.message)

    def __rich__(self):
        return _render(self, self.label, {
            "label": "bold #FF4DA6",
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "location": "#9CA3AF",
            "message": "#C8C8D0",
            "hint-label": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RecoverableError(GfxException):
    """Recorded and counted; parsing keeps going with a substitute value."""
    severity = Severity.ERROR


class FatalError(GfxException):
    """Stops resolution at once; the driver turns it into exit status 1."""
    severity = Severity.FATAL
    label = "FATAL"


class UnknownOptionError(FatalError): ...
class AmbiguousOptionError(FatalError): ...
class MissingArgumentError(FatalError): ...
class UnexpectedArgumentError(FatalError): ...
class DuplicateInputError(FatalError): ...
class EmptyInputError(FatalError): ...
class MissingInputError(FatalError): ...
class MissingSourceError(FatalError): ...
class ResponseFileError(FatalError): ...

class MalformedNumberError(RecoverableError): ...
class NumberTooLargeError(RecoverableError): ...
class TrailingCharactersError(RecoverableError): ...
class ValueRangeError(RecoverableError): ...
class MalformedListError(RecoverableError): ...
class MalformedSliceError(RecoverableError): ...
class DepthMismatchError(RecoverableError): ...
class EmptyPathError(RecoverableError): ...
class PaletteSpecError(RecoverableError): ...
class PaletteFileError(RecoverableError): ...


class GfxWarning(Warning):
    severity = Severity.WARNING
    label = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Text | type(Unset))
        super().__init__(nullify(message, ""))
        self.message = nullify(message, "")
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def location(self):
        return self.options.get("location")

    def __rich__(self):
        return _render(self, self.label, {
            "label": "bold #FFB400",
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "location": "#9CA3AF",
            "message": "#D6D6DE",
            "hint-label": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeprecatedOptionWarning(GfxWarning): ...
class OverridingPathWarning(GfxWarning): ...


class ConversionAborted(ExceptionGroup):
    """
    grouped exit raised by Diagnostics.checkpoint().

    `count` is the saturated error counter, which can exceed the number of
    grouped exceptions when collaborators only bumped the counter.
    """

    def __new__(cls, exceptions, count=Unset, **options):
        return super().__new__(cls, "conversion aborted", list(exceptions) or [RecoverableError()])

    def __init__(self, exceptions, count=Unset, **options):
        super().__init__("conversion aborted", list(self.exceptions))
        self.count = nullify(count, len(self.exceptions))
        self.options = MappingProxyType(options)

    def derive(self, exceptions):
        return type(self)(exceptions, self.count, **self.options)

    def __str__(self):
        return "conversion aborted after %d error%s" % (self.count, "" if self.count == 1 else "s")

    def __rich__(self):
        styles = _styles({"abort": "bold #FF4DA6"})
        return Text(str(self), styles["abort"] if self.options.get("colorful") else "")


class Diagnostics:
    """
    explicit, owned diagnostics sink (one per resolution run).

    contract
    - trigger(fault, **options): merge the run's presentation options and any
      context (location, hint, …) into the fault, record it, and:
        • WARNING → echoed in shell mode, otherwise emitted via warnings.warn.
        • ERROR   → echoed in shell mode; the error counter increments (saturating).
        • FATAL   → echoed in shell mode, then raised.
    - count(): bump the counter without a fault object (collaborator hook).
    - checkpoint(): raise ConversionAborted when the counter is nonzero.

    options
    - shell: echo every fault to stderr as soon as it is triggered.
    - colorful / fancy: rendering style for echoed faults.
    - prog: program name used in fancy headers.
    """

    def __init__(self, *, shell=False, colorful=False, fancy=False, prog="tilegfx"):
        self.shell = shell
        self.colorful = colorful
        self.fancy = fancy
        self.prog = prog
        self.faults = []
        self.errors = 0

    @property
    def warnings(self):
        return tuple(fault for fault in self.faults if fault.severity is Severity.WARNING)

    @property
    def exceptions(self):
        return tuple(fault for fault in self.faults if fault.severity is not Severity.WARNING)

    def count(self):
        self.errors = min(self.errors + 1, ERROR_LIMIT)

    def trigger(self, fault, /, **options):
        if not hasattr(fault, "__replace__") or not hasattr(fault, "severity"):
            raise TypeError("trigger() argument must be a tilegfx fault")
        fault = fault.__replace__(
            **options,
            prog=self.prog,
            shell=self.shell,
            colorful=self.colorful,
            fancy=self.fancy,
        )
        self.faults.append(fault)

        if self.shell:
            console.print(fault)
        elif fault.severity is Severity.WARNING:
            warnings.warn(fault, stacklevel=len(inspect.stack()))

        if fault.severity is Severity.FATAL:
            self.count()
            raise fault
        if fault.severity is Severity.ERROR:
            self.count()
        return fault

    def checkpoint(self):
        if not self.errors:
            return
        aborted = ConversionAborted(
            (fault for fault in self.faults if fault.severity is Severity.ERROR),
            self.errors,
            colorful=self.colorful,
        )
        if self.shell:
            console.print(aborted)
        raise aborted


__all__ = (
    "FaultCode",
    "Severity",
    "GfxException",
    "RecoverableError",
    "FatalError",
    "UnknownOptionError",
    "AmbiguousOptionError",
    "MissingArgumentError",
    "UnexpectedArgumentError",
    "DuplicateInputError",
    "EmptyInputError",
    "MissingInputError",
    "MissingSourceError",
    "ResponseFileError",
    "MalformedNumberError",
    "NumberTooLargeError",
    "TrailingCharactersError",
    "ValueRangeError",
    "MalformedListError",
    "MalformedSliceError",
    "DepthMismatchError",
    "EmptyPathError",
    "PaletteSpecError",
    "PaletteFileError",
    "GfxWarning",
    "DeprecatedOptionWarning",
    "OverridingPathWarning",
    "ConversionAborted",
    "Diagnostics",
)
