"""
Numeric literal tests.

Scope
- Base detection ($, %, 0x/0X, 0b/0B, decimal) and digit validation per base.
- Cursor placement after a successful parse (first non-digit, unconsumed).
- Failure paths: empty input, prefix without digits, overflow; each returns the
  caller's default and records one recoverable fault.

Conventions
- Test method names follow CamelCase per project convention.
- A fresh, non-shell Diagnostics sink per test; nothing is printed.
"""
import unittest
from unittest import TestCase

from tilegfx.faults import Diagnostics, FaultCode, MalformedNumberError, NumberTooLargeError
from tilegfx.literals import UINT16_MAX, Cursor, parse_number


class TestCursor(TestCase):
    def testPeekPastEnd(self):
        cursor = Cursor("ab", 1)
        self.assertEqual(cursor.peek(), "b")
        self.assertEqual(cursor.peek(1), "")

    def testSkipBlanksStopsAtOtherCharacters(self):
        cursor = Cursor(" \t ,x")
        cursor.skip_blanks()
        self.assertEqual(cursor.text[cursor.pos:], ",x")

    def testAcceptOnlyConsumesMatch(self):
        cursor = Cursor(",x")
        self.assertFalse(cursor.accept(":"))
        self.assertTrue(cursor.accept(","))
        self.assertEqual(cursor.pos, 1)

    def testAdvanceIsClamped(self):
        cursor = Cursor("ab")
        cursor.advance(5)
        self.assertTrue(cursor.at_end)


class TestParseNumber(TestCase):
    """Successful parses and the faults recorded for malformed literals."""

    def setUp(self):
        self.diagnostics = Diagnostics()

    def parse(self, text, default=UINT16_MAX):
        cursor = Cursor(text)
        return parse_number(cursor, "Value", self.diagnostics, default), cursor

    def testHexDollarStopsAtSeparator(self):
        value, cursor = self.parse("$1F,2")
        self.assertEqual(value, 31)
        self.assertEqual(cursor.peek(), ",")
        self.assertEqual(cursor.pos, 3)

    def testBinaryPercentConsumesEverything(self):
        value, cursor = self.parse("%101")
        self.assertEqual(value, 5)
        self.assertTrue(cursor.at_end)

    def testHexPrefix(self):
        self.assertEqual(self.parse("0x100")[0], 256)
        self.assertEqual(self.parse("0XfF")[0], 255)

    def testBinaryPrefix(self):
        self.assertEqual(self.parse("0b11")[0], 3)
        self.assertEqual(self.parse("0B0110")[0], 6)

    def testDecimal(self):
        value, cursor = self.parse("42abc")
        self.assertEqual(value, 42)
        self.assertEqual(cursor.text[cursor.pos:], "abc")

    def testLoneZeroIsDecimal(self):
        value, cursor = self.parse("0")
        self.assertEqual(value, 0)
        self.assertTrue(cursor.at_end)

    def testBinaryRejectsOtherDigits(self):
        value, cursor = self.parse("%1012")
        self.assertEqual(value, 5)
        self.assertEqual(cursor.text[cursor.pos:], "2")

    def testDecimalDoesNotAcceptHexDigits(self):
        value, cursor = self.parse("12ab")
        self.assertEqual(value, 12)
        self.assertEqual(cursor.text[cursor.pos:], "ab")

    def testNoFaultOnSuccess(self):
        self.parse("$ffe")
        self.assertEqual(self.diagnostics.errors, 0)
        self.assertEqual(self.diagnostics.faults, [])

    def testLargestAcceptedValue(self):
        self.assertEqual(self.parse("65534")[0], 65534)
        self.assertEqual(self.diagnostics.errors, 0)

    def testOverflowReturnsDefault(self):
        value, _ = self.parse("99999")
        self.assertEqual(value, UINT16_MAX)
        self.assertEqual(self.diagnostics.errors, 1)
        fault, = self.diagnostics.faults
        self.assertIsInstance(fault, NumberTooLargeError)
        self.assertEqual(fault.code, FaultCode.NUMBER_TOO_LARGE)
        self.assertEqual(fault.message, "Value: the number is too large!")

    def testSentinelItselfIsRejected(self):
        value, _ = self.parse("$FFFF", default=7)
        self.assertEqual(value, 7)
        self.assertEqual(self.diagnostics.errors, 1)

    def testEmptyInput(self):
        value, _ = self.parse("", default=3)
        self.assertEqual(value, 3)
        fault, = self.diagnostics.faults
        self.assertIsInstance(fault, MalformedNumberError)
        self.assertEqual(fault.code, FaultCode.EXPECTED_NUMBER)
        self.assertEqual(fault.message, "Value: expected number, but found nothing")

    def testPrefixWithoutDigits(self):
        for text in ("$", "%", "0x", "0b", "0xg", "%2"):
            with self.subTest(text=text):
                diagnostics = Diagnostics()
                self.assertEqual(parse_number(Cursor(text), "Value", diagnostics, 9), 9)
                fault, = diagnostics.faults
                self.assertEqual(fault.code, FaultCode.EXPECTED_DIGIT)
                self.assertEqual(fault.message, "Value: expected digit after base, but found nothing")

    def testDecimalWithoutDigits(self):
        value, _ = self.parse(",1", default=0)
        self.assertEqual(value, 0)
        fault, = self.diagnostics.faults
        self.assertEqual(fault.message, "Value: expected digit, but found nothing")

    def testLocationIsAttached(self):
        parse_number(Cursor(""), "Value", self.diagnostics, location="command line, second argument")
        self.assertEqual(self.diagnostics.faults[0].location, "command line, second argument")

    def testErrorsAccumulate(self):
        self.parse("")
        self.parse("99999")
        self.parse("$")
        self.assertEqual(self.diagnostics.errors, 3)


if __name__ == '__main__':
    unittest.main()
