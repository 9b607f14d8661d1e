"""
Demonstration front-end: python -m optionist [options] files ...

Scans the classic example table and prints what it understood:

    usage: optionist [-H|--help] [-c|--count <number>] [-s|--str [<string>]]
                     [-x] [--hello] [-g|--groups <newsgroup> ...] files ...
"""
import sys

from rich.console import Console

from .options import Options, Matched
from .sources import ArgvSource
from .utils import Unset, coalesce

OPTIONS = (
    "H|help",
    "c:count   <number>",
    "s?str     <string>",
    "x",
    " |hello",
    "g+groups  <newsgroup>",
)

POSITIONALS = "files ..."


def main(argv=Unset, /, *, stdout=Unset, stderr=Unset):
    """
    Run the demonstration and return the exit status.

    Parameters
    - argv: full argument vector, command name first (sys.argv by default).
    - stdout / stderr: streams for the report and for diagnostics.
    """
    argv = list(coalesce(argv, sys.argv))
    stdout = coalesce(stdout, sys.stdout)
    stderr = coalesce(stderr, sys.stderr)

    opts = Options(argv[0] if argv else "optionist", OPTIONS, stderr=stderr)
    source = ArgvSource(argv[1:])
    out = Console(file=stdout, highlight=False, soft_wrap=True, emoji=False, markup=False)
    err = Console(file=stderr, highlight=False, soft_wrap=True, emoji=False, markup=False)

    string = "default_string"
    count = 0
    xflag = hello = False
    errors = ngroups = 0

    while outcome := opts(source):
        match outcome:
            case Matched("H", _):
                opts.usage(POSITIONALS, file=stdout)
                return 0
            case Matched("g", _):
                ngroups += 1
            case Matched("s", value):
                string = value
            case Matched("x", _):
                xflag = True
            case Matched(" ", _):
                hello = True
            case Matched("c", None):
                errors += 1
            case Matched("c", value):
                try:
                    count = int(value)
                except ValueError:
                    err.print("%s: invalid count %r." % (opts.name, value))
                    errors += 1
            case _:
                errors += 1

    files = source.remaining()
    if errors or not files:
        if not errors:
            err.print("%s: no filenames given." % opts.name)
        opts.usage(POSITIONALS, file=stderr)
        return 1

    out.print("xflag=%s" % ("ON" if xflag else "OFF"))
    out.print("hello=%s" % ("YES" if hello else "NO"))
    out.print("count=%d" % count)
    out.print("str=%s" % ('"%s"' % string if string is not None else "No value given!"))
    out.print("ngroups=%d" % ngroups)
    out.print("files=%s" % " ".join('"%s"' % file for file in files))
    return 0


if __name__ == "__main__":
    sys.exit(main())
