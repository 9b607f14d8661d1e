"""
Optionist faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the package
  can report, grouped by domain so logs and searches stay predictable.
- DeclarationSyntaxError / DeclarationTableError: raised while building an
  option table. A malformed specifier is a programming error in the table, but
  it is surfaced as an exception so embedding code may recover.
- OptionFault / OptionWarning: diagnostics produced while scanning tokens.
  They are never raised by the parser; they are rendered (one line, exactly
  "<command>: <message>.") on the parser's error stream through rich, or
  handed to a fallback installed by the caller.
- trigger(): central entry point to surface a diagnostic.

Integration
- Options.trigger(fault, **ctx) merges the parser context (tool, console,
  colorful) and calls trigger(); QUIET suppresses the call entirely.
"""
import sys
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True, highlight=False, soft_wrap=True, emoji=False)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - declarations (2110x): EMPTY_SPECIFIER, BAD_SPECIFIER
    - options (2111x): UNKNOWN_OPTION, UNKNOWN_KEYWORD, AMBIGUOUS_KEYWORD, MISSING_VALUE
    - warnings (2211x): UNEXPECTED_VALUE
    """
    # --- declaration errors (21xxx) ---
    EMPTY_SPECIFIER   = 21101
    BAD_SPECIFIER     = 21102

    # --- option errors (21xxx) ---
    UNKNOWN_OPTION    = 21111
    UNKNOWN_KEYWORD   = 21112
    AMBIGUOUS_KEYWORD = 21113
    MISSING_VALUE     = 21114

    # --- warnings (22xxx) ---
    UNEXPECTED_VALUE  = 22111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


def _styles(kind):
    styles = {
        "prog-name": "bold #E6E6F0",
        "message": "#C8C8D0" if kind == "error" else "#D6D6DE",
    }
    return styles | getattr(sys.modules.get("__main__"), "__styles__", {})


def _render(fault, kind):
    """
    build the one-line "<command>: <message>." text for a fault.

    styling is applied only when the "colorful" option is set; otherwise the
    text carries no style and renders byte-for-byte as plain output.
    """
    tool = fault.options.get("tool")
    name = getattr(tool, "name", "<optionist>")
    if not fault.options.get("colorful"):
        return Text("%s: %s." % (name, fault.message))
    styles = _styles(kind)
    return Text.assemble(
        (name, styles["prog-name"]),
        ": ",
        (fault.message, styles["message"]),
        ".",
    )


class OptionFault(Exception):
    """
    base type for diagnostics reported while scanning options.

    the message is the lowercase body of the diagnostic; options carry the
    context (code, tool, input, console, colorful) used when rendering.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, "error")

    def __trigger__(self):
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownOptionError(OptionFault): ...
class AmbiguousOptionError(OptionFault): ...
class MissingValueError(OptionFault): ...


class OptionWarning(Warning):
    """
    base type for non-fatal diagnostics (the option is still returned).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, "warning")

    def __trigger__(self):
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnexpectedValueWarning(OptionWarning): ...


class DeclarationSyntaxError(ValueError):
    """
    a single option specifier that does not follow the declaration grammar.

    attributes
    - spec: the offending specifier string.
    - hint: one line telling how to fix it.
    - code: FaultCode.EMPTY_SPECIFIER or FaultCode.BAD_SPECIFIER.
    """

    def __init__(self, message, /, *, spec, hint, code):
        super().__init__(message)
        self.message = message
        self.spec = spec
        self.hint = hint
        self.code = code

    def __rich__(self):
        return Text("%s.\n\t%s." % (self.message, self.hint))


class DeclarationTableError(ExceptionGroup):
    """
    every syntax error found in one option table, reported together.
    """

    def __new__(cls, exceptions, /, *, name=Unset):
        return super().__new__(cls, "bad option table", tuple(exceptions))

    def __init__(self, exceptions, /, *, name=Unset):
        super().__init__("bad option table", tuple(exceptions))
        self.name = name

    def derive(self, exceptions):
        return type(self)(exceptions, name=self.name)

    def __rich__(self):
        prefix = "%s: " % self.name if self.name else ""
        return Group(*(
            Text("%s%s.\n\t%s." % (prefix, exception.message, exception.hint))
            for exception in self.exceptions
        ))


def trigger(fault, /, **options):
    """
    surface a diagnostic with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "OptionFault",
    "UnknownOptionError",
    "AmbiguousOptionError",
    "MissingValueError",
    "OptionWarning",
    "UnexpectedValueWarning",
    "DeclarationSyntaxError",
    "DeclarationTableError",
    "trigger",
)
