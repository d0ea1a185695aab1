"""
tilegfx utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the parsing layers so they agree on
  "not provided" semantics and on how positions are worded in diagnostics.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "value not provided" without conflating it with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- nullify(value, default=None)
  • Replace Unset with a concrete default while preserving None/0/"" as real values.

- ordinal(number)
  • Human-friendly 1-based position labels ("first", "second", …, "11th", "22nd").

Stability and contract
- Names in __all__ are re-exported by the package; everything else may change.
"""
import functools
from typing import final


@final
class UnsetType:
    """
    internal singleton sentinel representing an "unset" value.

    intent
    - used where None is a meaningful value (an option explicitly set to an empty
      path, a fault without location) and "nothing was given" must stay distinct.

    behavior
    - truthiness: bool(Unset) is False.
    - identity: Unset is a process-wide singleton (see __new__).
    - display: repr(Unset) -> "Unset".
    - final: subclassing is forbidden (see __init_subclass__).
    """

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def nullify(object, default=None, /):
    """
    return `default` when `object` is Unset; otherwise return `object` unchanged.

    examples
    - nullify("out.2bpp", "x") -> "out.2bpp"
    - nullify(Unset, "x")      -> "x"
    - nullify(None, "x")       -> None   # None is a value, not a missing one
    """
    return default if object is Unset else object


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    if not isinstance(number, int) or number < 1:
        raise ValueError("ordinal() argument must be a positive integer")
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


__all__ = (
    "UnsetType",
    "Unset",
    "nullify",
    "ordinal",
)
