#!/usr/bin/env python3

import unittest
from datetime import date

import calver_format
from calver_format import CalVerError


class TestFormat(unittest.TestCase):
    """Test format parsing"""

    def test_tokens(self):
        self.assertEqual(calver_format.tokens_of('YYYY.0M.MICRO'), ['YYYY', '0M', 'MICRO'])
        self.assertEqual(calver_format.tokens_of('YY.MM.DD-MAJOR'), ['YY', 'MM', 'DD', 'MAJOR'])
        self.assertEqual(calver_format.tokens_of('0Y0W'), ['0Y', '0W'])

    def test_invalid_formats(self):
        for fmt in ['', None, 'v1', 'SEMVER', 'YYYY.MONTH.MICRO']:
            with self.assertRaises(CalVerError):
                calver_format.compile_format(fmt)


class TestValidation(unittest.TestCase):
    """Test tag validation"""

    def test_valid(self):
        self.assertTrue(calver_format.is_valid('YYYY.MM.MICRO', '2023.2.0'))
        self.assertTrue(calver_format.is_valid('YYYY.MM.MICRO', '2023.12.15'))
        self.assertTrue(calver_format.is_valid('YYYY.0M.MICRO', '2022.02.0'))
        self.assertTrue(calver_format.is_valid('YY.0M.0D', '24.06.01'))
        self.assertTrue(calver_format.is_valid('YYYY.WW', '2024.53'))
        self.assertTrue(calver_format.is_valid('YYYY.MM.MAJOR.MINOR.MICRO', '2024.1.2.0.10'))

    def test_invalid(self):
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', 'latest'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', '2022.01.0'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', '2023.13.0'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', '2023.0.0'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', '2023.1.01'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', 'v2023.1.0'))
        self.assertFalse(calver_format.is_valid('YYYY.0M.MICRO', '2023.1.0'))
        self.assertFalse(calver_format.is_valid('YYYY.0D', '2023.32'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', None))

    def test_separators_are_literal(self):
        self.assertTrue(calver_format.is_valid('YYYY-MM+MICRO', '2023-2+0'))
        self.assertFalse(calver_format.is_valid('YYYY.MM.MICRO', '2023x2x0'))

    def test_parse(self):
        self.assertEqual(calver_format.parse('YY.0M.MICRO', '24.06.3'), {'year': 2024, 'month': 6, 'micro': 3})


class TestLatest(unittest.TestCase):
    """Test chronological selection"""

    def test_latest(self):
        tags = ['2022.01.0', '2023.1.0', '2023.2.0', 'latest', 'stable', '2023.1.5']
        self.assertEqual(calver_format.latest_of('YYYY.MM.MICRO', tags), '2023.2.0')

    def test_numeric_not_lexicographic(self):
        self.assertEqual(calver_format.latest_of('YYYY.MM.MICRO', ['2023.9.0', '2023.10.0', '2023.9.10']), '2023.10.0')
        self.assertEqual(calver_format.latest_of('YYYY.MM.MICRO', ['2023.9.2', '2023.9.10']), '2023.9.10')

    def test_zero_padded(self):
        tags = ['2022.01.0', '2022.01.1', '2022.02.0', '2023.1.0']
        self.assertEqual(calver_format.latest_of('YYYY.0M.MICRO', tags), '2022.02.0')

    def test_none(self):
        self.assertIsNone(calver_format.latest_of('YYYY.MM.MICRO', []))
        self.assertIsNone(calver_format.latest_of('YYYY.MM.MICRO', ['latest', 'stable']))


class TestFormatFrom(unittest.TestCase):
    """Test formatting token values"""

    def test_format(self):
        self.assertEqual(calver_format.format_from('YYYY.MM.MICRO', {'year': 2025, 'month': 5, 'micro': 0}), '2025.5.0')
        self.assertEqual(calver_format.format_from('YY.0M.0D', {'year': 2024, 'month': 6, 'day': 1}), '24.06.01')
        self.assertEqual(calver_format.format_from('0Y.WW', {'year': 2006, 'week': 3}), '06.3')

    def test_missing_values_are_zero(self):
        self.assertEqual(calver_format.format_from('YYYY.MM.MINOR.MICRO', {'year': 2025, 'month': 5}), '2025.5.0.0')


class TestIncrease(unittest.TestCase):
    """Test increasing versions"""

    def test_major_moves_calendar(self):
        self.assertEqual(calver_format.increase('major', 'YYYY.MM.MICRO', '2023.2.0', now=date(2025, 6, 1)), '2025.6.0')
        self.assertEqual(calver_format.increase('major', 'YYYY.0M.MICRO', '2022.02.3', now=date(2025, 6, 1)), '2025.06.0')

    def test_major_without_calendar_change(self):
        with self.assertRaises(CalVerError):
            calver_format.increase('major', 'YYYY.MM.MICRO', '2023.2.0', now=date(2023, 2, 1))

    def test_major_bumps_major_token(self):
        self.assertEqual(calver_format.increase('major', 'YYYY.MAJOR.MINOR', '2023.1.4', now=date(2023, 5, 1)), '2023.2.0')

    def test_major_without_calendar_tokens(self):
        self.assertEqual(calver_format.increase('major', 'MAJOR.MINOR.MICRO', '1.2.3'), '2.0.0')
        with self.assertRaises(CalVerError):
            calver_format.increase('major', 'MINOR.MICRO', '2.3')

    def test_major_accepts_month_zero_seed(self):
        self.assertEqual(calver_format.increase('major', 'YYYY.MM.MICRO', '2026.0.0', now=date(2026, 1, 10)), '2026.1.0')
        self.assertEqual(calver_format.increase('major', 'YYYY.0M.MICRO', '2026.00.0', now=date(2026, 1, 10)), '2026.01.0')

    def test_major_with_days(self):
        self.assertEqual(calver_format.increase('major', 'YYYY.0M.0D.MICRO', '2025.06.01.4', now=date(2025, 6, 2)), '2025.06.02.0')

    def test_minor(self):
        self.assertEqual(calver_format.increase('minor', 'YYYY.MINOR.MICRO', '2023.1.4'), '2023.2.0')
        with self.assertRaises(CalVerError):
            calver_format.increase('minor', 'YYYY.MM.MICRO', '2023.2.0')

    def test_micro(self):
        self.assertEqual(calver_format.increase('micro', 'YYYY.MM.MICRO', '2023.2.0'), '2023.2.1')
        self.assertEqual(calver_format.increase('micro', 'YYYY.MM.MICRO', '2023.2.9'), '2023.2.10')
        with self.assertRaises(CalVerError):
            calver_format.increase('micro', 'YYYY.MM', '2023.2')

    def test_invalid(self):
        with self.assertRaises(CalVerError):
            calver_format.increase('micro', 'YYYY.MM.MICRO', 'latest')
        with self.assertRaises(CalVerError):
            calver_format.increase('patch', 'YYYY.MM.MICRO', '2023.2.0')


if __name__ == '__main__':
    unittest.main()
