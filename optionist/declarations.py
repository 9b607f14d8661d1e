r"""
Optionist option declarations.

Overview
- Declaration: one recognised option, parsed from a compact specification string.
- Arity: how many values an option takes.
- OptCtrl: control flags shared by the parser and the usage formatter.
- declare(*specs): parse a whole option table, reporting every bad specifier at once.

Specification grammar
- The 1st character is the option letter ('c' for a -c option).
- The 2nd character selects the arity:
  • '|' no value            • '?' one optional value   • ':' one required value
  • '*' zero or more values • '+' one or more values
  When the 2nd character is missing the option takes no value and has no long form.
- The remainder is the long-option name, up to the first space. Any text after
  that space (trimmed) names the value in usage messages; "<value>" otherwise.
- A space right after the arity character means there is no long form
  ("c: <number>" is a -c option taking a value, with no --long spelling).
- A whitespace or non-printable letter means there is no short form
  (" |hello" only matches --hello; the parser still reports ' ' as the letter).
- A leading '-' hides the option from usage output ("-h|hidden").

Examples
    >>> Declaration("c:count   <number>").format()
    '[-c|--count <number>]'
    >>> Declaration("s?str <string>").format()
    '[-s|--str [<string>]]'
    >>> Declaration("g+groups <newsgroup>").format()
    '[-g|--groups <newsgroup> ...]'
"""
import functools
import operator
import re
from enum import Enum, IntFlag

from .faults import FaultCode, DeclarationSyntaxError, DeclarationTableError
from .utils import *

DEFAULT_VALUE_NAME = "<value>"


class OptCtrl(IntFlag):
    """
    control settings for scanning options and formatting usage.

    - ANYCASE: ignore case when matching short options.
    - QUIET: do not print diagnostics.
    - PLUS: allow "+" as a long-option prefix.
    - SHORT_ONLY: do not accept long options.
    - LONG_ONLY: do not accept short options ("-" also introduces a long option).
    - NOGUESSING: when a short (long) option is unknown, do not try it as a long
      (short) one.
    - PARSE_POS: report positional arguments as Positional outcomes instead of
      stopping at the first one.
    """
    DEFAULT    = 0x00
    ANYCASE    = 0x01
    QUIET      = 0x02
    PLUS       = 0x04
    SHORT_ONLY = 0x08
    LONG_ONLY  = 0x10
    NOGUESSING = 0x20
    PARSE_POS  = 0x40


class Arity(Enum):
    """
    value arity of an option, keyed by its specification character.
    """
    NONE          = "|"
    OPTIONAL_ONE  = "?"
    REQUIRED_ONE  = ":"
    OPTIONAL_MANY = "*"
    REQUIRED_MANY = "+"

    @classmethod
    def from_char(cls, char, /):
        """map a specification character to an arity; an empty string means NONE."""
        return cls(char) if char else cls.NONE

    @property
    def char(self):
        return self.value

    @property
    def takes_value(self):
        return self is not Arity.NONE

    @property
    def required(self):
        return self in (Arity.REQUIRED_ONE, Arity.REQUIRED_MANY)

    @property
    def optional(self):
        return self in (Arity.OPTIONAL_ONE, Arity.OPTIONAL_MANY)

    @property
    def many(self):
        return self in (Arity.OPTIONAL_MANY, Arity.REQUIRED_MANY)


class DeclarationType(type):
    """
    Metaclass that gives declarations a stable, introspectable shape.

    Responsibilities
    - Expose the names listed in __introspectable__ as read-only properties
      mirroring the private "_name" fields (see mirror()).
    - Provide __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when no narrower set is given).
    - Derive __typename__ from the class name for messages.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _syntax_error(spec, body, /):
    if not body:
        return DeclarationSyntaxError(
            "empty option specifier",
            spec=spec,
            hint="must be at least 1 character long",
            code=FaultCode.EMPTY_SPECIFIER,
        )
    if len(body) > 1 and body[1] not in "|?:*+":
        return DeclarationSyntaxError(
            'bad option specifier "%s"' % body,
            spec=spec,
            hint='2nd character must be in the set "|?:*+"',
            code=FaultCode.BAD_SPECIFIER,
        )
    return None


class Declaration(metaclass=DeclarationType):
    """
    One parsed option specification (immutable).

    Properties
    - spec: the raw specification string, hidden marker included.
    - letter: the option letter; whitespace/non-printable when there is no short form.
    - arity: Arity of the option value.
    - long_name: the long-option name, or None.
    - value_name: label used for the value in usage messages.
    - hidden: hidden options are matched but left out of usage messages.

    Raises
    - TypeError: when spec is not a string.
    - DeclarationSyntaxError: when spec does not follow the grammar.
    """
    __introspectable__ = ("spec", "letter", "arity", "long_name", "value_name", "hidden")
    __displayable__ = ("letter", "arity", "long_name", "value_name", "hidden")

    __slots__ = ("_spec", "_letter", "_arity", "_long_name", "_value_name", "_hidden")

    def __init__(self, spec, /):
        if not isinstance(spec, str):
            raise TypeError("Declaration() argument must be a string")

        hidden = spec.startswith("-")
        body = spec[1:] if hidden else spec
        if error := _syntax_error(spec, body):
            raise error

        rest = body[2:]
        if rest and not rest[0].isspace():
            long_name, _, value_name = rest.partition(" ")
        else:
            long_name, value_name = None, rest

        self._spec = spec
        self._hidden = hidden
        self._letter = body[0]
        self._arity = Arity.from_char(body[1:2])
        self._long_name = long_name
        self._value_name = value_name.strip() or DEFAULT_VALUE_NAME

    @property
    def has_letter(self):
        """False when the letter is the "no short form" sentinel."""
        return not self._letter.isspace() and self._letter.isprintable()

    def format(self, ctrls=OptCtrl.DEFAULT, /):
        """
        Render the usage fragment for this option ("" when it has nothing to show).

        SHORT_ONLY drops the long form of options that have a letter, LONG_ONLY drops
        the letter of options that have a long form (NOGUESSING drops them always),
        and under either flag long options are spelled with a single "-".
        """
        if self._hidden:
            return ""

        letter = self._letter if self.has_letter else None
        long_name = self._long_name

        if ctrls & OptCtrl.SHORT_ONLY and (letter or ctrls & OptCtrl.NOGUESSING):
            long_name = None
        if ctrls & OptCtrl.LONG_ONLY and (long_name or ctrls & OptCtrl.NOGUESSING):
            letter = None
        if letter is None and long_name is None:
            return ""

        parts = ["["]
        if letter:
            parts.append("-" + letter)
        if letter and long_name:
            parts.append("|")
        if long_name:
            parts.append("-" if ctrls & (OptCtrl.LONG_ONLY | OptCtrl.SHORT_ONLY) else "--")
            parts.append(long_name)

        if self._arity.takes_value:
            parts.append(" ")
            if self._arity.optional:
                parts.append("[")
            parts.append(self._value_name)
            if self._arity.many:
                parts.append(" ...")
            if self._arity.optional:
                parts.append("]")

        parts.append("]")
        return "".join(parts)

    def __eq__(self, other):
        if not isinstance(other, Declaration):
            return NotImplemented
        return self._spec == other._spec

    def __hash__(self):
        return hash(self._spec)


def declare(*specs, name=Unset):
    """
    Parse an option table.

    Parameters
    - *specs: specification strings (or already-built Declaration objects).
    - name: command name attached to the raised table error, for rendering.

    Returns
    - tuple[Declaration, ...] in declaration order.

    Raises
    - TypeError: when an entry is neither a string nor a Declaration.
    - DeclarationTableError: grouping one DeclarationSyntaxError per bad specifier.
    """
    declarations = []
    errors = []
    for spec in specs:
        if isinstance(spec, Declaration):
            declarations.append(spec)
            continue
        try:
            declarations.append(Declaration(spec))
        except DeclarationSyntaxError as error:
            errors.append(error)
    if errors:
        raise DeclarationTableError(errors, name=name)
    return tuple(declarations)


__all__ = (
    "OptCtrl",
    "Arity",
    "Declaration",
    "declare",
)
