"""
Optionist usage formatter.

Renders an option table as a one-paragraph usage message:

    usage: cmdname [-c|--count <number>] [-s|--str [<string>]]
                   [-x] [--hello] [-g|--groups <newsgroup> ...] files ...

Fragments come from Declaration.format(ctrls) in declaration order (hidden
options are skipped) and are followed by the caller's description of the
positional arguments. A fragment that would run past the width starts a new
line, indented to line up with the first fragment.
"""
from rich.console import Console
from rich.text import Text

from .declarations import OptCtrl
from .utils import Unset, coalesce

WIDTH = 79


def format_usage(name, declarations, positionals="", ctrls=OptCtrl.DEFAULT, /, *, width=WIDTH):
    """
    Build the usage text (always ending with a single newline).

    Parameters
    - name: command name printed after "usage: ".
    - declarations: iterable of Declaration, in display order.
    - positionals: syntax of the positional arguments ("" for none).
    - ctrls: OptCtrl settings affecting how each option is spelled.
    - width: column limit used for wrapping.
    """
    parts = ["usage: ", name]
    column = len(name) + 7
    margin = column + 1

    fragments = [(declaration.format(ctrls), index == 0) for index, declaration in enumerate(declarations)]
    fragments.append((positionals, not fragments))

    for fragment, first in fragments:
        if not fragment:
            continue
        if column + len(fragment) + 1 > width - first:
            parts.append("\n" + " " * margin)
            column = margin
        else:
            parts.append(" ")
            column += 1
        column += len(fragment)
        parts.append(fragment)

    parts.append("\n")
    return "".join(parts)


def print_usage(name, declarations, positionals="", ctrls=OptCtrl.DEFAULT, /, *, width=WIDTH, file=Unset):
    """
    Write the usage text to file (sys.stdout by default) through a rich console.

    The console never wraps, highlights or interprets markup, so what is written
    is exactly format_usage(...).
    """
    console = Console(file=coalesce(file), highlight=False, soft_wrap=True, emoji=False, markup=False)
    text = format_usage(name, declarations, positionals, ctrls, width=width)
    console.print(Text(text.removesuffix("\n")))


__all__ = (
    "format_usage",
    "print_usage",
)
