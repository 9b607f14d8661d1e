"""
Optionist option parser: a getopt-style scanner over a token source.

What this module provides
- Options: owns an option table (see optionist.declarations) and the scan state
  carried between calls. Each call to step() (or to the instance itself)
  consumes zero or more tokens and returns one outcome.
- Outcomes: Matched(letter, value), EndOfOptions(), BadChar(letter),
  BadKwd(text), Ambiguous(text), Positional(text). EndOfOptions is the only
  falsy outcome, so the classic loop reads naturally.

Quick start
    from optionist import Options, ArgvSource, Matched, usage

    opts = Options(sys.argv[0], ["c:count <number>", "x", "g+groups <group>"])
    source = ArgvSource(sys.argv[1:])

    while outcome := opts(source):
        match outcome:
            case Matched("c", None):
                ...  # -c given without its required value (already reported)
            case Matched("c", value):
                count = int(value)
            case Matched("x", _):
                xflag = True
            case Matched("g", group):
                groups.append(group)
            case _:
                errors += 1

    files = source.remaining()

Scanning rules
- "-abc" is a bundle of short options; the scan resumes inside the bundle on
  the next call. A value-taking letter takes the rest of the bundle as value,
  or else the next token (always when the value is required, only when that
  token does not look like an option when it is optional).
- "--name", "--name=value" and "--name:value" are long options; a unique
  case-insensitive prefix is enough ("--co" for "--count").
- An unknown short letter is retried as a long option, and an unknown long
  option as a bundle of short ones, unless NOGUESSING is set. The retry is
  quiet and never retries back.
- After a list option ('*' or '+') matched with a value, following plain
  tokens are further values of that option until another option shows up.
- "--" ends the options. Without PARSE_POS, the first positional argument (or
  "--") ends the scan and stays available in the source.
"""
import difflib
import os
from enum import IntEnum

from rich.console import Console

from .declarations import OptCtrl, declare
from .faults import *
from .faults import console
from .sources import ArgvSource
from .usage import WIDTH, format_usage, print_usage
from .utils import *


class OptRC(IntEnum):
    """outcome codes, numbered as the classic getopt-style return values."""
    ENDOPTS    =  0
    BADCHAR    = -1
    BADKWD     = -2
    AMBIGUOUS  = -3
    POSITIONAL = -4
    MATCHED    =  1


class Outcome:
    """
    Base of the immutable step outcomes.

    Subclasses name their fields in __match_args__, so outcomes can be used in
    match statements positionally; equality requires the same outcome type.
    """
    __slots__ = ()
    __match_args__ = ()
    code = Unset

    def __init__(self, *fields):
        for name, field in zip(self.__match_args__, fields, strict=True):
            object.__setattr__(self, name, field)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __reduce__(self):
        return type(self), self._fields()

    def _fields(self):
        return tuple(getattr(self, name) for name in self.__match_args__)

    @property
    def optarg(self):
        """the string associated with the outcome (value, bad text or positional), or None."""
        fields = self._fields()
        return fields[-1] if fields else None

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self):
        return hash((type(self), self._fields()))

    def __bool__(self):
        return True

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, ", ".join(map(repr, self._fields())))


class Matched(Outcome):
    __slots__ = ("letter", "value")
    __match_args__ = ("letter", "value")
    code = OptRC.MATCHED

    def __init__(self, letter, value=None):
        super().__init__(letter, value)


class EndOfOptions(Outcome):
    __slots__ = ()
    code = OptRC.ENDOPTS

    def __bool__(self):
        return False


class BadChar(Outcome):
    __slots__ = ("letter",)
    __match_args__ = ("letter",)
    code = OptRC.BADCHAR

    def __init__(self, letter):
        super().__init__(letter)


class BadKwd(Outcome):
    __slots__ = ("text",)
    __match_args__ = ("text",)
    code = OptRC.BADKWD

    def __init__(self, text):
        super().__init__(text)


class Ambiguous(Outcome):
    __slots__ = ("text",)
    __match_args__ = ("text",)
    code = OptRC.AMBIGUOUS

    def __init__(self, text):
        super().__init__(text)


class Positional(Outcome):
    __slots__ = ("text",)
    __match_args__ = ("text",)
    code = OptRC.POSITIONAL

    def __init__(self, text):
        super().__init__(text)


def _is_option(token, ctrls):
    # A lone "-" or "+" is an ordinary argument (conventionally stdin/stdout).
    return len(token) > 1 and (token[0] == "-" or bool(ctrls & OptCtrl.PLUS) and token[0] == "+")


def _basename(name):
    for separator in ("/", os.sep):
        name = name.rpartition(separator)[2]
    return name


def _split_inline(text):
    # "name=value" / "name:value", split at whichever separator comes first.
    for index, char in enumerate(text):
        if char in ":=":
            return text[:index], text[index + 1:]
    return text, None


class Options:
    """
    Scan command-line options from a token source.

    Parameters
    - name: command name used in diagnostics and usage (reduced to its basename).
    - declarations: iterable of specification strings or Declaration objects.
    - ctrls: OptCtrl settings (default: case-sensitive short options, diagnostics
      on, short and long options accepted, guessing on, stop at positionals).
    - stderr: stream receiving diagnostics (sys.stderr by default).
    - colorful: style diagnostics (only visible on terminals).

    Scan state
    - cursor: rest of the short-option bundle being scanned, or None.
    - pending list: the list option that accepts further plain tokens, or None.
    - explicit end: whether "--" was consumed.

    Raises
    - TypeError: when name is not a string.
    - DeclarationTableError: when the table has malformed specifiers.
    """
    name = mirror("name")
    declarations = mirror("declarations")
    explicit_end = mirror("explicit_end")

    def __init__(self, name, declarations, ctrls=OptCtrl.DEFAULT, /, *, stderr=Unset, colorful=False):
        if not isinstance(name, str):
            raise TypeError("Options() name must be a string")
        self._name = _basename(name)
        self._declarations = declare(*declarations, name=self._name)
        self._ctrls = OptCtrl(ctrls)
        if stderr is Unset:
            self._console = console
        else:
            self._console = Console(file=stderr, highlight=False, soft_wrap=True, emoji=False)
        self._colorful = bool(colorful)
        self._fallback = Unset
        self._cursor = None
        self._listopt = None
        self._explicit_end = False

    @property
    def ctrls(self):
        return self._ctrls

    @ctrls.setter
    def ctrls(self, ctrls):
        self._ctrls = OptCtrl(ctrls)

    def reset(self):
        """Forget the scan state, to scan again from the source's current position."""
        self._cursor = None
        self._listopt = None
        self._explicit_end = False

    def fallback(self, fallback, /):
        """
        Register a handler receiving every diagnostic instead of the error stream.

        The handler gets the fault (an OptionFault or OptionWarning carrying its
        context in .options); it may raise it. QUIET still suppresses diagnostics.

        Returns
        - The same callable, enabling decorator-style usage: @opts.fallback
        """
        if not callable(fallback):
            raise TypeError("options fallback must be callable")
        if self._fallback is not Unset:
            raise TypeError("options fallback cannot be overridden")
        self._fallback = fallback
        return fallback

    def trigger(self, fault, /, **options):
        fault = fault.__replace__(**options, tool=self, console=self._console, colorful=self._colorful)
        if self._fallback is not Unset:
            return self._fallback(fault)
        trigger(fault)

    def match_short(self, letter, ignore_case=False, /):
        """Return the first declaration whose letter is `letter`, or None."""
        for declaration in self._declarations:
            if not declaration.has_letter:
                continue
            if letter == declaration.letter:
                return declaration
            if ignore_case and letter.lower() == declaration.letter.lower():
                return declaration
        return None

    def match_long(self, prefix, length=0, ignore_case=True, /):
        """
        Match a long-option name or a prefix of one.

        Only the first `length` characters of prefix are considered (all of them
        when length is 0), stopping at a space. An exact match wins; otherwise a
        prefix shared by exactly one long name selects it.

        Returns
        - (declaration, False) on a match.
        - (None, True) when the prefix matches several long names.
        - (None, False) when nothing matches.
        """
        attempt = (prefix[:length] if length else prefix).partition(" ")[0]
        if not attempt:
            return None, False

        fold = str.lower if ignore_case else str
        attempt = fold(attempt)
        partial = []
        for declaration in self._declarations:
            if declaration.long_name is None:
                continue
            long_name = fold(declaration.long_name)
            if long_name == attempt:
                return declaration, False
            if long_name.startswith(attempt) and declaration not in partial:
                partial.append(declaration)

        if len(partial) == 1:
            return partial[0], False
        return None, len(partial) > 1

    def _take_value(self, source, declaration, ctrls, spelling):
        # The value is not attached to the option token: look at the next token.
        token = source.current()
        if token is not None and (declaration.arity.required or not _is_option(token, ctrls)):
            source.advance()
            if declaration.arity.many:
                self._listopt = declaration
            return Matched(declaration.letter, token)

        if declaration.arity.required and not ctrls & OptCtrl.QUIET:
            self.trigger(MissingValueError(
                "argument required for %s option" % spelling,
                code=FaultCode.MISSING_VALUE,
                input=spelling,
                declaration=declaration,
            ))
        return Matched(declaration.letter, None)

    def _parse_short(self, source, ctrls):
        self._listopt = None

        text = self._cursor
        letter = text[0]
        self._cursor = text[1:]

        declaration = self.match_short(letter, bool(ctrls & OptCtrl.ANYCASE))

        if declaration is None:
            # maybe a long option in disguise
            if not ctrls & OptCtrl.NOGUESSING:
                outcome = self._parse_long(source, text, ctrls | OptCtrl.QUIET | OptCtrl.NOGUESSING)
                if isinstance(outcome, Matched):
                    return outcome
                self._cursor = text[1:]
            if not ctrls & OptCtrl.QUIET:
                self.trigger(UnknownOptionError(
                    "unknown option -%s" % letter,
                    code=FaultCode.UNKNOWN_OPTION,
                    input=letter,
                ))
            return BadChar(letter)

        if not declaration.arity.takes_value:
            return Matched(declaration.letter, None)

        if self._cursor:
            value, self._cursor = self._cursor, None
            if declaration.arity.many:
                self._listopt = declaration
            return Matched(declaration.letter, value)

        self._cursor = None
        return self._take_value(source, declaration, ctrls, "-" + declaration.letter)

    def _parse_long(self, source, text, ctrls):
        self._listopt = None

        name, value = _split_inline(text)
        declaration, ambiguous = self.match_long(name)
        dash = "-" if ctrls & OptCtrl.LONG_ONLY else "--"

        if declaration is None:
            # maybe a bundle of short options in disguise
            if text and not ambiguous and not ctrls & OptCtrl.NOGUESSING:
                cursor = self._cursor
                self._cursor = text
                outcome = self._parse_short(source, ctrls | OptCtrl.QUIET | OptCtrl.NOGUESSING)
                if isinstance(outcome, Matched):
                    return outcome
                self._cursor = cursor
            if not ctrls & OptCtrl.QUIET:
                if ambiguous:
                    fault = AmbiguousOptionError(
                        "ambiguous option %s%s" % (dash, text),
                        code=FaultCode.AMBIGUOUS_KEYWORD,
                        input=text,
                    )
                else:
                    fault = UnknownOptionError(
                        "unknown option %s%s" % (dash, text),
                        code=FaultCode.UNKNOWN_KEYWORD,
                        input=text,
                        suggestions=difflib.get_close_matches(name, [
                            candidate.long_name for candidate in self._declarations if candidate.long_name
                        ], 5),
                    )
                self.trigger(fault)
            self._cursor = None
            return Ambiguous(text) if ambiguous else BadKwd(text)

        self._cursor = None

        if not declaration.arity.takes_value:
            if value is not None and not ctrls & OptCtrl.QUIET:
                self.trigger(UnexpectedValueWarning(
                    "option %s%s does NOT take an argument" % (dash, declaration.long_name),
                    code=FaultCode.UNEXPECTED_VALUE,
                    input=text,
                    declaration=declaration,
                ))
            return Matched(declaration.letter, value)

        if value is not None:
            if declaration.arity.many:
                self._listopt = declaration
            return Matched(declaration.letter, value)

        return self._take_value(source, declaration, ctrls, dash + declaration.long_name)

    def step(self, source, /):
        """
        Scan the next option from source.

        Returns
        - Matched(letter, value): an option was recognised; value is None when the
          option got no value (also when a required value is missing: that case is
          reported as a diagnostic and left for the caller to handle).
        - EndOfOptions(): no more options; remaining tokens stay in source.
        - BadChar(letter) / BadKwd(text) / Ambiguous(text): unrecognised input.
        - Positional(text): a positional argument (only with PARSE_POS).
        """
        ctrls = self._ctrls
        opts_only = not ctrls & OptCtrl.PARSE_POS
        if opts_only:
            self._explicit_end = False

        # resume inside a short-option bundle
        if self._cursor:
            return self._parse_short(source, ctrls)
        self._cursor = None

        while True:
            token = source.current()
            if token is None:
                self._listopt = None
                return EndOfOptions()
            if self._explicit_end or token != "--":
                break
            source.advance()
            self._listopt = None
            self._explicit_end = True
            if opts_only:
                return EndOfOptions()

        if self._explicit_end or not _is_option(token, ctrls):
            if self._listopt is not None:
                source.advance()
                return Matched(self._listopt.letter, token)
            if opts_only:
                return EndOfOptions()
            source.advance()
            return Positional(token)

        source.advance()

        if not ctrls & OptCtrl.SHORT_ONLY:
            if token.startswith("--"):
                return self._parse_long(source, token[2:], ctrls)
            if token.startswith("+"):
                return self._parse_long(source, token[1:], ctrls)
        if token.startswith("-") and ctrls & OptCtrl.LONG_ONLY:
            return self._parse_long(source, token[1:], ctrls)

        self._cursor = token[1:]
        return self._parse_short(source, ctrls)

    def __call__(self, source, /):
        return self.step(source)

    def scan(self, source, /):
        """Yield outcomes until the end of options (EndOfOptions is not yielded)."""
        while outcome := self.step(source):
            yield outcome

    def parse(self, tokens, /):
        """
        Scan a list of tokens in one go.

        Returns
        - (outcomes, rest): every outcome before the end of options, and the
          tokens left unconsumed.
        """
        source = ArgvSource(tokens)
        outcomes = list(self.scan(source))
        return outcomes, source.remaining()

    def format_usage(self, positionals="", /, *, width=WIDTH):
        return format_usage(self._name, self._declarations, positionals, self._ctrls, width=width)

    def usage(self, positionals="", /, *, file=Unset, width=WIDTH):
        """Print the usage message (to sys.stdout unless file is given)."""
        print_usage(self._name, self._declarations, positionals, self._ctrls, width=width, file=file)

    def __rich_repr__(self):
        yield "name", self._name
        yield "ctrls", self._ctrls
        yield "declarations", self._declarations

    def __repr__(self):
        return "options(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "OptRC",
    "Outcome",
    "Matched",
    "EndOfOptions",
    "BadChar",
    "BadKwd",
    "Ambiguous",
    "Positional",
    "Options",
)
