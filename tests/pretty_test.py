import math
import unittest

from calcvm import FormatMode, compile_source, format_source
from calcvm.codegen import Code, OPCodes
from calcvm.pretty import format_number

SOURCES = [
    "2 + 3 * 5",
    "(2 - 3) - 4",
    "2 - (3 - 4)",
    "2 ^ -1",
    "1 - -1",
    "(x)(x) + 2x + 1",
    "1 == 2 != 3 <= 4 >= 5 < 6 > 7",
    "sin(pi) + cos(e) * sqrt(2) / log(10) - rand() + round(0.5) + floor(1.5)",
    "let s2 = (x, y, z) => (x - y) mod z",
    "let calc = (x) => { let y = 2(x + 1); y^2 + y + 3 }",
    "let loop = (i, n, f) => { if (i < n) { f(); loop(i + 1, n, f); } else {} }",
    "{let x = 0; if (3 < 2) { let x = 3 }; x}",
    "if (1) { 5 } else { 8 }",
    "if (a) (if (b) 1) else 2",
    "if (a) (-1 + b)",
    "(let x = 2) + x",
    "((x) => x) + 1",
    "let x = 3; f(x, 0.001)",
]


class PrettyPrinterTestCase(unittest.TestCase):

    def test_pretty(self):
        self.assertEqual("let calc = (x) => sin(90)", format_source("let calc= ( x, ) =>sin (90)"))

    def test_parenthesize_by_precedence(self):
        self.assertEqual("2 * (20 - 10)", format_source("2 * (20 - 10)"))
        self.assertEqual("2 * 20 - 10", format_source("(2 * 20) - 10"))
        self.assertEqual("2 - 3 - 4", format_source("(2 - 3) - 4"))
        self.assertEqual("2 - (3 - 4)", format_source("2 - (3 - 4)"))
        self.assertEqual("2 * x", format_source("2x"))

    def test_open_ended_operands(self):
        self.assertEqual("(let x = 2) + x", format_source("(let x = 2) + x"))
        self.assertEqual("((x) => x) + 1", format_source("((x) => x) + 1"))
        self.assertEqual("if (a) (if (b) 1) else 2", format_source("if (a) (if (b) 1) else 2"))
        self.assertEqual("if (a) (-1)", format_source("if (a) (-1)"))

    def test_modes(self):
        source = "let calc = (x) => { let y = 2(x + 1); y^2 + y + 3 }"
        self.assertEqual("let calc=(x)=>{let y=2*(x+1);y^2+y+3}", format_source(source, FormatMode.MINIFIED))
        self.assertEqual("let calc = (x) => { let y = 2 * (x + 1); y ^ 2 + y + 3 }", format_source(source))
        self.assertEqual(
            "let calc = (x) => {\n"
            "    let y = 2 * (x + 1);\n"
            "    y ^ 2 + y + 3\n"
            "}",
            format_source(source, FormatMode.INDENTED),
        )

    def test_nested_indentation(self):
        self.assertEqual(
            "let loop = (i, n, f) => {\n"
            "    if (i < n) {\n"
            "        f();\n"
            "        loop(i + 1, n, f)\n"
            "    } else {}\n"
            "}",
            format_source(
                "let loop = (i, n, f) => { if (i < n) { f(); loop(i + 1, n, f); } else {} }",
                FormatMode.INDENTED,
            ),
        )

    def test_statements(self):
        self.assertEqual("let x = 3; x", format_source("let x = 3;x"))
        self.assertEqual("let x=3;x", format_source("let x = 3; x", FormatMode.MINIFIED))
        self.assertEqual("let x = 3;\nx", format_source("let x = 3; x", FormatMode.INDENTED))
        self.assertEqual("{}", format_source("{ }"))

    def test_format_number(self):
        self.assertEqual("90", format_number(90.0))
        self.assertEqual("-2", format_number(-2.0))
        self.assertEqual("0.25", format_number(0.25))
        self.assertEqual("0.00001", format_number(1e-05))
        self.assertEqual("1" + "0" * 309, format_number(math.inf))
        self.assertEqual("-1" + "0" * 309, format_number(-math.inf))

    def test_overflowing_literal(self):
        source = "1" * 400
        text = format_source(source)
        self.assertEqual([Code(OPCodes.PUSH, math.inf)], compile_source(text))
        self.assertEqual(compile_source(source), compile_source(text))
        self.assertEqual(compile_source("2 - " + source), compile_source(format_source("2 - " + source)))

    def test_long_sum(self):
        source = " + ".join(["1"] * 5000)
        self.assertEqual(source, format_source(source))
        self.assertEqual("1-2-(3-4)*5", format_source("1 - 2 - (3 - 4) * 5", FormatMode.MINIFIED))

    def test_formatting_is_stable(self):
        for mode in FormatMode:
            for source in SOURCES:
                with self.subTest(mode=mode, source=source):
                    text = format_source(source, mode)
                    self.assertEqual(text, format_source(text, mode))
                    self.assertEqual(compile_source(source), compile_source(text))


if __name__ == '__main__':
    unittest.main()
