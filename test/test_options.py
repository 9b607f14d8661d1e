"""
Options module behavioral tests (matching, stepping, diagnostics).

Scope
- Validate short, bundled and long options, inline and spaced values.
- Validate prefix matching and ambiguity, guessing between short and long forms.
- Validate list accumulation, positional handling and the "--" terminator.
- Validate control flags, diagnostics text and the fallback hook.

Conventions
- Test method names follow CamelCase per project convention.
- Diagnostics are captured by passing a StringIO as stderr.
"""

from __future__ import annotations

import copy
import io
import os
import pickle
import unittest
from unittest import TestCase

from optionist import (
    Options,
    OptCtrl,
    OptRC,
    ArgvSource,
    Matched,
    EndOfOptions,
    BadChar,
    BadKwd,
    Ambiguous,
    Positional,
    DeclarationTableError,
    UnknownOptionError,
    MissingValueError,
    UnexpectedValueWarning,
    FaultCode,
)


def run(specs, tokens, ctrls=OptCtrl.DEFAULT):
    """Step until the end of options; return (outcomes, source, diagnostics)."""
    stderr = io.StringIO()
    opts = Options("cmd", specs, ctrls, stderr=stderr)
    source = ArgvSource(tokens)
    outcomes = []
    while True:
        outcome = opts(source)
        outcomes.append(outcome)
        if not outcome:
            break
    return outcomes, source, stderr.getvalue()


class TestShortOptions(TestCase):
    """Short options, bundles and their values."""

    def testBundledShortOptions(self):
        outcomes, _, errors = run(["x", "a", "b", "c"], ["-x", "-abc"])
        self.assertEqual(outcomes, [
            Matched("x", None),
            Matched("a", None),
            Matched("b", None),
            Matched("c", None),
            EndOfOptions(),
        ])
        self.assertEqual(errors, "")

    def testValueAttachedToLetter(self):
        outcomes, _, _ = run(["c:"], ["-c42"])
        self.assertEqual(outcomes, [Matched("c", "42"), EndOfOptions()])

    def testBundleEndingWithValueOption(self):
        outcomes, _, _ = run(["x", "c:"], ["-xc5"])
        self.assertEqual(outcomes, [Matched("x"), Matched("c", "5"), EndOfOptions()])

    def testRequiredValueTakesOptionLikeToken(self):
        outcomes, _, _ = run(["c:", "x"], ["-c", "-x"])
        self.assertEqual(outcomes, [Matched("c", "-x"), EndOfOptions()])

    def testOptionalValueSkipsOptionLikeToken(self):
        outcomes, _, errors = run(["s?str", "x"], ["-s", "-x"])
        self.assertEqual(outcomes, [Matched("s", None), Matched("x", None), EndOfOptions()])
        self.assertEqual(errors, "")

    def testOptionalValueTakesPlainToken(self):
        outcomes, _, _ = run(["s?str"], ["-s", "foo"])
        self.assertEqual(outcomes, [Matched("s", "foo"), EndOfOptions()])

    def testMissingRequiredValueStillMatches(self):
        outcomes, _, errors = run(["c:count"], ["-c"])
        self.assertEqual(outcomes, [Matched("c", None), EndOfOptions()])
        self.assertEqual(errors, "cmd: argument required for -c option.\n")

    def testUnknownShortOption(self):
        outcomes, _, errors = run(["x"], ["-q"])
        self.assertEqual(outcomes, [BadChar("q"), EndOfOptions()])
        self.assertEqual(errors, "cmd: unknown option -q.\n")

    def testUnknownLetterInsideBundleContinues(self):
        outcomes, _, _ = run(["x", "y"], ["-xqy"], OptCtrl.NOGUESSING)
        self.assertEqual(outcomes, [Matched("x"), BadChar("q"), Matched("y"), EndOfOptions()])

    def testShortOptionsAreCaseSensitive(self):
        outcomes, _, _ = run(["x"], ["-X"])
        self.assertEqual(outcomes[0], BadChar("X"))

    def testAnyCaseMatchesDeclaredLetter(self):
        outcomes, _, _ = run(["x"], ["-X"], OptCtrl.ANYCASE)
        self.assertEqual(outcomes, [Matched("x"), EndOfOptions()])


class TestLongOptions(TestCase):
    """Long options, prefixes and inline values."""

    def testSpacedValue(self):
        outcomes, _, _ = run(["c:count"], ["--count", "42"])
        self.assertEqual(outcomes, [Matched("c", "42"), EndOfOptions()])

    def testInlineValueWithEquals(self):
        outcomes, _, _ = run(["c:count"], ["--count=42"])
        self.assertEqual(outcomes, [Matched("c", "42"), EndOfOptions()])

    def testInlineValueWithColon(self):
        outcomes, _, _ = run(["c:count"], ["--count:42"])
        self.assertEqual(outcomes, [Matched("c", "42"), EndOfOptions()])

    def testUniquePrefix(self):
        outcomes, _, _ = run(["c:count", "d:delta"], ["--co", "1"])
        self.assertEqual(outcomes, [Matched("c", "1"), EndOfOptions()])

    def testAmbiguousPrefix(self):
        outcomes, source, errors = run(["c:count", "p:copy"], ["--co", "1"])
        self.assertEqual(outcomes, [Ambiguous("co"), EndOfOptions()])
        self.assertEqual(source.current(), "1")
        self.assertEqual(errors, "cmd: ambiguous option --co.\n")

    def testExactNameBeatsLongerNames(self):
        outcomes, _, _ = run(["c:count", "p:countdown"], ["--count", "1"])
        self.assertEqual(outcomes, [Matched("c", "1"), EndOfOptions()])

    def testLongNamesIgnoreCase(self):
        outcomes, _, _ = run(["c:count"], ["--COUNT=3"])
        self.assertEqual(outcomes, [Matched("c", "3"), EndOfOptions()])

    def testUnknownLongOption(self):
        outcomes, _, errors = run(["x|extra"], ["--frob"])
        self.assertEqual(outcomes, [BadKwd("frob"), EndOfOptions()])
        self.assertEqual(errors, "cmd: unknown option --frob.\n")

    def testMissingRequiredLongValue(self):
        outcomes, _, errors = run(["c:count <number>"], ["--count"])
        self.assertEqual(outcomes, [Matched("c", None), EndOfOptions()])
        self.assertEqual(errors, "cmd: argument required for --count option.\n")

    def testUnexpectedValueIsWarnedButAttached(self):
        outcomes, _, errors = run(["v|verbose"], ["--verbose=yes"])
        self.assertEqual(outcomes, [Matched("v", "yes"), EndOfOptions()])
        self.assertEqual(errors, "cmd: option --verbose does NOT take an argument.\n")

    def testLongOnlyAcceptsSingleDash(self):
        outcomes, _, _ = run(["c:count"], ["-count", "3"], OptCtrl.LONG_ONLY)
        self.assertEqual(outcomes, [Matched("c", "3"), EndOfOptions()])

    def testLongOnlyDiagnosticsUseSingleDash(self):
        _, _, errors = run(["c:count"], ["-count"], OptCtrl.LONG_ONLY)
        self.assertEqual(errors, "cmd: argument required for -count option.\n")

    def testPlusPrefix(self):
        outcomes, _, _ = run(["c:count"], ["+count", "3"], OptCtrl.PLUS)
        self.assertEqual(outcomes, [Matched("c", "3"), EndOfOptions()])

    def testPlusIsPositionalWithoutFlag(self):
        outcomes, source, _ = run(["c:count"], ["+count", "3"])
        self.assertEqual(outcomes, [EndOfOptions()])
        self.assertEqual(source.current(), "+count")


class TestGuessing(TestCase):
    """Retrying unknown short options as long ones and vice versa."""

    def testShortTokenGuessedAsLongOption(self):
        outcomes, _, errors = run([" |hello"], ["-hello"])
        self.assertEqual(outcomes, [Matched(" ", None), EndOfOptions()])
        self.assertEqual(errors, "")

    def testLongTokenGuessedAsShortBundle(self):
        outcomes, _, errors = run(["x", "y"], ["--xy"])
        self.assertEqual(outcomes, [Matched("x"), Matched("y"), EndOfOptions()])
        self.assertEqual(errors, "")

    def testNoGuessing(self):
        outcomes, _, errors = run([" |hello"], ["-hello"], OptCtrl.NOGUESSING)
        self.assertEqual(outcomes[0], BadChar("h"))
        self.assertTrue(errors.startswith("cmd: unknown option -h.\n"))

    def testAmbiguityIsNotGuessed(self):
        outcomes, _, _ = run(["c:count", "p:copy", "o"], ["--co"])
        self.assertEqual(outcomes, [Ambiguous("co"), EndOfOptions()])


class TestListOptions(TestCase):
    """List options keep accepting plain tokens."""

    def testListAccumulation(self):
        outcomes, _, _ = run(["g+groups", "x"], ["-g", "a", "b", "c", "-x"])
        self.assertEqual(outcomes, [
            Matched("g", "a"),
            Matched("g", "b"),
            Matched("g", "c"),
            Matched("x", None),
            EndOfOptions(),
        ])

    def testListAccumulationAfterAttachedValue(self):
        outcomes, _, _ = run(["g+groups", "x"], ["-ga", "b", "-x"])
        self.assertEqual(outcomes, [Matched("g", "a"), Matched("g", "b"), Matched("x"), EndOfOptions()])

    def testListAccumulationAfterInlineLongValue(self):
        outcomes, _, _ = run(["g+groups"], ["--groups=a", "b"])
        self.assertEqual(outcomes, [Matched("g", "a"), Matched("g", "b"), EndOfOptions()])

    def testTerminatorEndsList(self):
        outcomes, _, _ = run(["g+groups"], ["-g", "a", "--", "b"], OptCtrl.PARSE_POS)
        self.assertEqual(outcomes, [Matched("g", "a"), Positional("b"), EndOfOptions()])

    def testSingleValueOptionDoesNotAccumulate(self):
        outcomes, source, _ = run(["c:count"], ["-c", "1", "2"])
        self.assertEqual(outcomes, [Matched("c", "1"), EndOfOptions()])
        self.assertEqual(source.current(), "2")


class TestPositionals(TestCase):
    """Positional arguments and the end of options."""

    def testStopsAtFirstPositional(self):
        outcomes, source, _ = run(["x"], ["file", "-x"])
        self.assertEqual(outcomes, [EndOfOptions()])
        self.assertEqual(source.remaining(), ["file", "-x"])

    def testTerminatorLeavesRestForCaller(self):
        stderr = io.StringIO()
        opts = Options("cmd", ["x"], stderr=stderr)
        source = ArgvSource(["--", "-foo"])
        self.assertEqual(opts(source), EndOfOptions())
        self.assertTrue(opts.explicit_end)
        self.assertEqual(source.current(), "-foo")

    def testTerminatorIsRecognisedAgainOnNextStep(self):
        opts = Options("cmd", ["f"], stderr=io.StringIO())
        source = ArgvSource(["--", "-f"])
        self.assertEqual(opts(source), EndOfOptions())
        self.assertEqual(opts(source), Matched("f"))
        self.assertFalse(opts.explicit_end)

    def testParsePositional(self):
        outcomes, _, _ = run(["x"], ["a", "-x", "--", "-x"], OptCtrl.PARSE_POS)
        self.assertEqual(outcomes, [Positional("a"), Matched("x"), Positional("-x"), EndOfOptions()])

    def testLoneDashIsPositional(self):
        outcomes, _, _ = run(["x"], ["-"], OptCtrl.PARSE_POS)
        self.assertEqual(outcomes, [Positional("-"), EndOfOptions()])

    def testEmptySourceEndsImmediately(self):
        outcomes, _, _ = run(["x"], [])
        self.assertEqual(outcomes, [EndOfOptions()])


class TestScanState(TestCase):
    """reset(), scan() and parse() helpers."""

    def testResetDropsBundle(self):
        opts = Options("cmd", ["x", "y"], stderr=io.StringIO())
        source = ArgvSource(["-xy"])
        self.assertEqual(opts(source), Matched("x"))
        opts.reset()
        self.assertEqual(opts(source), EndOfOptions())

    def testResetDropsPendingList(self):
        opts = Options("cmd", ["g+groups"], stderr=io.StringIO())
        source = ArgvSource(["-g", "a", "b"])
        self.assertEqual(opts(source), Matched("g", "a"))
        opts.reset()
        self.assertEqual(opts(source), EndOfOptions())
        self.assertEqual(source.current(), "b")

    def testScanYieldsUntilEnd(self):
        opts = Options("cmd", ["x", "c:"], stderr=io.StringIO())
        source = ArgvSource(["-x", "-c", "3", "rest"])
        self.assertEqual(list(opts.scan(source)), [Matched("x"), Matched("c", "3")])
        self.assertEqual(source.remaining(), ["rest"])

    def testParseReturnsRest(self):
        opts = Options("cmd", ["x"], stderr=io.StringIO())
        self.assertEqual(opts.parse(["-x", "file"]), ([Matched("x")], ["file"]))

    def testCtrlsCanChangeBetweenSteps(self):
        opts = Options("cmd", ["x"], stderr=io.StringIO())
        opts.ctrls = OptCtrl.PARSE_POS | OptCtrl.QUIET
        self.assertEqual(opts.ctrls, OptCtrl.PARSE_POS | OptCtrl.QUIET)
        self.assertEqual(opts(ArgvSource(["file"])), Positional("file"))


class TestMatching(TestCase):
    """match_short() and match_long() lookups."""

    def setUp(self):
        self.opts = Options("cmd", ["c:count", "p:copy", "x", " |hello"], stderr=io.StringIO())

    def testMatchShort(self):
        self.assertEqual(self.opts.match_short("c").long_name, "count")
        self.assertIsNone(self.opts.match_short("C"))
        self.assertEqual(self.opts.match_short("C", True).letter, "c")

    def testMatchShortSkipsLetterlessDeclarations(self):
        self.assertIsNone(self.opts.match_short(" "))

    def testMatchLongAmbiguous(self):
        self.assertEqual(self.opts.match_long("co"), (None, True))

    def testMatchLongUnique(self):
        declaration, ambiguous = self.opts.match_long("cou")
        self.assertEqual(declaration.letter, "c")
        self.assertFalse(ambiguous)

    def testMatchLongHonoursLength(self):
        declaration, _ = self.opts.match_long("count=5", 5)
        self.assertEqual(declaration.letter, "c")

    def testMatchLongNothing(self):
        self.assertEqual(self.opts.match_long("zzz"), (None, False))
        self.assertEqual(self.opts.match_long(""), (None, False))


class TestDiagnostics(TestCase):
    """Quiet mode, fallback hook and construction errors."""

    def testQuietSuppressesDiagnostics(self):
        outcomes, _, errors = run(["x"], ["-q", "--frob"], OptCtrl.QUIET)
        self.assertEqual(outcomes, [BadChar("q"), BadKwd("frob"), EndOfOptions()])
        self.assertEqual(errors, "")

    def testFallbackReceivesFaults(self):
        stderr = io.StringIO()
        faults = []
        opts = Options("cmd", ["x", "c:count", "v|verbose"], stderr=stderr)
        opts.fallback(faults.append)
        opts.parse(["-q", "--verbose=1", "--count"])
        self.assertEqual(
            [type(fault) for fault in faults],
            [UnknownOptionError, UnexpectedValueWarning, MissingValueError],
        )
        self.assertEqual(faults[0].options["code"], FaultCode.UNKNOWN_OPTION)
        self.assertIs(faults[0].options["tool"], opts)
        self.assertEqual(stderr.getvalue(), "")

    def testUnknownLongOptionCarriesSuggestions(self):
        faults = []
        opts = Options("cmd", [" |verbose", "c:count"])
        opts.fallback(faults.append)
        self.assertEqual(opts.parse(["--verbsoe"]), ([BadKwd("verbsoe")], []))
        self.assertEqual(faults[0].options["suggestions"], ["verbose"])
        self.assertEqual(faults[0].options["code"], FaultCode.UNKNOWN_KEYWORD)

    def testFallbackMayRaise(self):
        opts = Options("cmd", ["x"], stderr=io.StringIO())

        @opts.fallback
        def fail(fault):
            raise fault

        with self.assertRaises(UnknownOptionError):
            opts.parse(["-q"])

    def testFallbackSingleAssignmentGuard(self):
        opts = Options("cmd", ["x"])
        opts.fallback(print)
        with self.assertRaises(TypeError):
            opts.fallback(print)

    def testFallbackMustBeCallable(self):
        with self.assertRaises(TypeError):
            Options("cmd", ["x"]).fallback("nope")

    def testMalformedTableRaises(self):
        with self.assertRaises(DeclarationTableError) as context:
            Options("cmd", ["x!", "", "c:count"])
        self.assertEqual(len(context.exception.exceptions), 2)

    def testNameIsReducedToBasename(self):
        self.assertEqual(Options("/usr/local/bin/cmd", ["x"]).name, "cmd")

    def testNameStripsEverySeparator(self):
        self.assertEqual(Options(os.path.join("bin", "tools/cmd"), ["x"]).name, "cmd")
        self.assertEqual(Options("a/b" + os.sep + "cmd", ["x"]).name, "cmd")

    def testNameMustBeString(self):
        with self.assertRaises(TypeError):
            Options(None, ["x"])


class TestOutcomes(TestCase):
    """Outcome values behave like the classic return codes."""

    def testCodesAndTruthiness(self):
        self.assertEqual(Matched("x").code, OptRC.MATCHED)
        self.assertEqual(BadChar("x").code, OptRC.BADCHAR)
        self.assertEqual(Positional("a").code, OptRC.POSITIONAL)
        self.assertFalse(EndOfOptions())
        self.assertTrue(BadKwd("frob"))

    def testEqualityRequiresSameOutcomeType(self):
        self.assertNotEqual(BadKwd("co"), Ambiguous("co"))
        self.assertEqual(Matched("c", "1"), Matched("c", "1"))

    def testOptarg(self):
        self.assertEqual(Matched("c", "1").optarg, "1")
        self.assertEqual(BadChar("q").optarg, "q")
        self.assertIsNone(EndOfOptions().optarg)

    def testCopyAndPickleRebuildOutcomes(self):
        outcomes, rest = Options("cmd", ["x", "c:"], stderr=io.StringIO()).parse(["-x", "-c1", "-q", "file"])
        self.assertEqual(copy.deepcopy(outcomes), outcomes)
        self.assertEqual(copy.copy(Matched("x", "1")), Matched("x", "1"))
        for outcome in [*outcomes, EndOfOptions(), Positional("a"), Ambiguous("co")]:
            self.assertEqual(pickle.loads(pickle.dumps(outcome)), outcome)
        self.assertEqual(rest, ["file"])

    def testImmutable(self):
        with self.assertRaises(AttributeError):
            Matched("c", "1").value = "2"

    def testMatchStatement(self):
        match Matched("c", "7"):
            case Matched("c", value):
                self.assertEqual(value, "7")
            case _:
                self.fail("outcome did not match")


if __name__ == "__main__":
    unittest.main()
