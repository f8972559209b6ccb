"""Tests for the tiered edit match (exact, whitespace-collapsed, diagnostic) and multi-edit."""

import unittest

from localcli.edit_match import (
    EditRequest,
    apply_edit,
    apply_multi_edit,
    build_diagnostic,
    collapse_whitespace,
)


class TestExactTier(unittest.TestCase):
    def test_first_occurrence_only(self):
        out = apply_edit("a\nb\nc\nb\n", "b", "B")
        self.assertTrue(out.matched)
        self.assertEqual(out.result, "a\nB\nc\nb\n")
        self.assertEqual(out.strategy, "exact")
        self.assertEqual(out.start_line, 2)

    def test_same_old_and_new_is_identity(self):
        text = "x = 1\ny = 2\n"
        out = apply_edit(text, "y = 2", "y = 2")
        self.assertTrue(out.matched)
        self.assertEqual(out.result, text)

    def test_crlf_round_trip(self):
        text = "one\r\ntwo\r\nthree\r\n"
        out = apply_edit(text, "two\n", "2\nmore\n")
        self.assertTrue(out.matched)
        self.assertEqual(out.result, "one\r\n2\r\nmore\r\nthree\r\n")
        self.assertNotIn("\n", out.result.replace("\r\n", ""))

    def test_crlf_in_request_against_lf_file(self):
        out = apply_edit("a\nb\n", "a\r\nb", "c\r\nd")
        self.assertEqual(out.result, "c\nd\n")


class TestWhitespaceTier(unittest.TestCase):
    def test_collapsed_window_match(self):
        text = "def f():\n    return   1\n\nprint(f())\n"
        out = apply_edit(text, "def f():\n  return 1", "def f():\n    return 2")
        self.assertTrue(out.matched)
        self.assertEqual(out.strategy, "whitespace")
        self.assertEqual(out.result, "def f():\n    return 2\n\nprint(f())\n")

    def test_trailing_newline_on_old_text(self):
        text = "if x:\n\tpass\nrest\n"
        out = apply_edit(text, "if x:\n    pass\n", "if y:\n    pass\n")
        self.assertEqual(out.result, "if y:\n    pass\nrest\n")

    def test_crlf_preserved_through_whitespace_tier(self):
        text = "a  =  1\r\nb = 2\r\n"
        out = apply_edit(text, "a = 1", "a = 3")
        self.assertEqual(out.result, "a = 3\r\nb = 2\r\n")

    def test_collapse_whitespace(self):
        self.assertEqual(collapse_whitespace("  a \t\t b  "), "a b")


class TestNoMatch(unittest.TestCase):
    def test_diagnostic_points_at_similar_line(self):
        text = "alpha\n    Beta line here\n"
        out = apply_edit(text, "beta line here", "x")
        self.assertFalse(out.matched)
        self.assertIsNone(out.result)
        self.assertIn('Similar at line 2: "Beta line here"', out.diagnostic)
        self.assertIn("Tip: Use read_file first", out.diagnostic)

    def test_diagnostic_without_similar_line(self):
        diag = build_diagnostic("alpha\nbeta\n", "zzz_not_there")
        self.assertIn('searched for "zzz_not_there"', diag)
        self.assertNotIn("Similar at line", diag)

    def test_fragment_is_truncated(self):
        diag = build_diagnostic("", "abcdefghijklmnopqrstuvwxyz")
        self.assertIn('"abcdefghijklmnopqrst"', diag)

    def test_empty_old_text_does_not_match(self):
        out = apply_edit("abc", "", "X")
        self.assertFalse(out.matched)


class TestMultiEdit(unittest.TestCase):
    def test_partial_application_reports_skips(self):
        text = "a = 1\nb = 2\nc = 3\n"
        edits = [
            {"old_content": "a = 1", "new_content": "a = 10"},
            {"old_content": "missing", "new_content": "x"},
            {"old_content": "c = 3", "new_content": "c = 30"},
        ]
        out = apply_multi_edit(text, edits)
        self.assertTrue(out.matched)
        self.assertEqual(out.applied, 2)
        self.assertEqual(out.total, 3)
        self.assertEqual(out.skipped, [1])
        self.assertEqual(out.result, "a = 10\nb = 2\nc = 30\n")

    def test_edits_apply_against_running_copy(self):
        out = apply_multi_edit("x", [{"old_content": "x", "new_content": "y"}, {"old_content": "y", "new_content": "z"}])
        self.assertEqual(out.result, "z")

    def test_no_whitespace_escalation(self):
        out = apply_multi_edit("a  =  1\n", [{"old_content": "a = 1", "new_content": "a = 2"}])
        self.assertFalse(out.matched)
        self.assertIsNone(out.result)

    def test_crlf_restored(self):
        out = apply_multi_edit("a\r\nb\r\n", [{"old_content": "a\nb", "new_content": "c\nd"}])
        self.assertEqual(out.result, "c\r\nd\r\n")


def test_edit_request_derived_fields():
    req = EditRequest(path="f.txt", old_content="a\r\n", new_content="b\r\n", file_text="a\r\nz\r\n")
    assert req.line_ending == "\r\n"
    assert req.norm_file == "a\nz\n"
    assert req.norm_old == "a\n"
    assert req.restore("q\n") == "q\r\n"
