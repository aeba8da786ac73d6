import math
import unittest

from calcvm import parse_source
from calcvm.exceptions import ErrorCode, ParserError
from calcvm.parser import Block, IfElse, Literal, Sequence


def parse(source):
    return repr(parse_source(source))


class ParserTestCase(unittest.TestCase):

    def test_precedence(self):
        self.assertEqual("(2.0+(3.0*5.0))", parse("2 + 3 * 5"))
        self.assertEqual("((2.0*3.0)+5.0)", parse("2 * 3 + 5"))
        self.assertEqual("((2.0^3.0)%4.0)", parse("2 ^ 3 % 4"))
        self.assertEqual("(1.0<(2.0+3.0))", parse("1 < 2 + 3"))
        self.assertEqual("((1.0+(2.0*(3.0^2.0)))-4.0)", parse("1 + 2 * 3 ^ 2 - 4"))

    def test_left_associative(self):
        self.assertEqual("((2.0-3.0)-4.0)", parse("2 - 3 - 4"))
        self.assertEqual("((8.0/4.0)/2.0)", parse("8 / 4 / 2"))
        self.assertEqual("((2.0^3.0)^2.0)", parse("2 ^ 3 ^ 2"))

    def test_implicit_multiplication(self):
        self.assertEqual("(2.0*(20.0-10.0))", parse("2(20 - 10)"))
        self.assertEqual("(((x*x)+(2.0*x))+1.0)", parse("(x)(x) + 2x + 1"))
        self.assertEqual("((2.0*3.0)*x)", parse("2 * 3x"))
        self.assertEqual("(3.141592653589793*r)", parse("pi r"))

    def test_ambiguous_operands(self):
        for source in ("x y", "(x) y", "f(1) y"):
            with self.assertRaises(ParserError) as context:
                parse_source(source)
            self.assertEqual(ErrorCode.AMBIGUOUS_OPERAND, context.exception.error_code)

    def test_functions(self):
        self.assertEqual("let s=(x)=>(sin(x)+x)", parse("let s = (x) => sin(x) + x"))
        self.assertEqual("(x)=>x", parse("( x, ) => x"))
        self.assertEqual("()=>{}", parse("() => {}"))
        self.assertEqual("f(1.0, 2.0)", parse("f(1, 2)"))
        self.assertEqual("f()", parse("f()"))
        self.assertEqual("f(1.0)", parse("f(1,)"))
        self.assertEqual("rand()", parse("rand()"))
        self.assertEqual("sqrt(log(100.0))", parse("sqrt(log(100))"))

    def test_parens_are_not_closures(self):
        self.assertEqual("(x+1.0)", parse("(x + 1)"))
        self.assertEqual("x", parse("(x)"))
        with self.assertRaises(ParserError):
            parse_source("(1, 2)")

    def test_blocks(self):
        self.assertEqual(
            "{let x=0.0;if((3.0<2.0)){let x=3.0};x}",
            parse("{let x = 0; if (3 < 2) { let x = 3 }; x}"),
        )
        self.assertEqual("{1.0;2.0}", parse("{ 1; 2; }"))
        ast = parse_source("{}")
        self.assertIsInstance(ast, Block)
        self.assertEqual([], ast.body)

    def test_if_else(self):
        ast = parse_source("if (1) { 5 } else { 8 }")
        self.assertIsInstance(ast, IfElse)
        self.assertEqual("if(1.0){5.0}else{8.0}", repr(ast))
        self.assertEqual("if(a)2.0", parse("if (a) 2"))

    def test_statements(self):
        ast = parse_source("let x = 3; x")
        self.assertIsInstance(ast, Sequence)
        self.assertEqual("let x=3.0;x", repr(ast))
        self.assertEqual("x", parse("x;"))

    def test_constants(self):
        ast = parse_source("pi")
        self.assertIsInstance(ast, Literal)
        self.assertEqual(math.pi, ast.value)
        self.assertEqual(math.e, parse_source("e").value)

    def test_auto_closed_input(self):
        self.assertEqual("sin(90.0)", parse("sin(90"))
        self.assertEqual("{(1.0+2.0)}", parse("{1 + 2"))

    def test_remaining_tokens(self):
        with self.assertRaises(ParserError) as context:
            parse_source("1 )")
        self.assertEqual(ErrorCode.REMAINING_TOKENS, context.exception.error_code)
        self.assertIn(")", str(context.exception))

    def test_empty_program(self):
        for source in ("", "   "):
            with self.assertRaises(ParserError) as context:
                parse_source(source)
            self.assertEqual(ErrorCode.EMPTY_PROGRAM, context.exception.error_code)

    def test_nesting(self):
        self.assertEqual("1.0", parse("(" * 50 + "1" + ")" * 50))
        with self.assertRaises(ParserError) as context:
            parse_source("(" * 1000 + "1" + ")" * 1000)
        self.assertEqual(ErrorCode.NESTING_TOO_DEEP, context.exception.error_code)

        with self.assertRaises(ParserError) as context:
            parse_source("(" * 1000 + "1")
        self.assertEqual(ErrorCode.NESTING_TOO_DEEP, context.exception.error_code)

    def test_long_chain_is_left_associative(self):
        ast = parse_source(" - ".join(["1"] * 5000))
        depth = 0
        while not isinstance(ast, Literal):
            self.assertEqual("1.0", repr(ast.right))
            ast = ast.left
            depth += 1
        self.assertEqual(4999, depth)

    def test_unexpected_token(self):
        with self.assertRaises(ParserError) as context:
            parse_source("2 + * 3")
        self.assertEqual(ErrorCode.UNEXPECTED_TOKEN, context.exception.error_code)
        self.assertEqual(5, context.exception.location.column)

        with self.assertRaises(ParserError):
            parse_source("let = 3")
        with self.assertRaises(ParserError):
            parse_source("if 1 2")


if __name__ == '__main__':
    unittest.main()
