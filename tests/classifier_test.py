"""
Response classification rules
"""

import time
import unittest

from rapidfuzz.distance import Jaro

from domain_survivor.classifier import MAX_COMPARE_BYTES, classify, is_redirect, similarity
from domain_survivor.config import ScanConfig
from domain_survivor.prober import ProbeOutcome

NOT_FOUND = b"<html><body><h1>Not Found</h1><p>The page you requested does not exist.</p></body></html>"
REAL_PAGE = b'{"service": "billing-api", "version": "2.4.1", "endpoints": ["/invoices", "/customers"]}'


def outcome(status, body=b""):
    return ProbeOutcome(url="http://a.test", status=status, body=body)


class TestSimilarity(unittest.TestCase):
    def test_identical_bodies(self):
        self.assertEqual(similarity(NOT_FOUND, NOT_FOUND), 1.0)

    def test_unrelated_bodies_score_low(self):
        self.assertLess(similarity(NOT_FOUND, REAL_PAGE), 0.9)

    def test_shared_prefix_boosts_score(self):
        a, b = "abcdefgh", "abcdefgX"
        self.assertGreater(similarity(a.encode(), b.encode()), Jaro.similarity(a, b))

    def test_invalid_utf8_does_not_raise(self):
        self.assertEqual(similarity(b"\xff\xfe", b"\xff\xfe"), 1.0)

    def test_bytes_past_compare_cap_are_ignored(self):
        head = NOT_FOUND * (MAX_COMPARE_BYTES // len(NOT_FOUND) + 1)
        self.assertEqual(similarity(head + b"tail one", head + b"a different tail"), 1.0)

    def test_megabyte_bodies_compare_quickly(self):
        """Scenario: a 1 MB page must not hold the event loop for seconds."""
        baseline = b"a" + b"x" * (1 << 20)
        body = b"b" + b"x" * (1 << 20)
        t0 = time.monotonic()
        score = similarity(baseline, body)
        self.assertLess(time.monotonic() - t0, 1.0)
        self.assertGreater(score, 0.9)


class TestClassify(unittest.TestCase):
    def test_alive_accepts_any_status(self):
        cfg = ScanConfig(check_alive=True)
        for status in (200, 302, 404, 503):
            with self.subTest(status=status):
                self.assertTrue(classify(outcome(status), None, cfg))

    def test_alive_bypasses_baseline(self):
        cfg = ScanConfig(check_alive=True, use_baseline=True)
        self.assertTrue(classify(outcome(404, NOT_FOUND), NOT_FOUND, cfg))

    def test_status_must_equal_target(self):
        cfg = ScanConfig(target_status=404)
        self.assertTrue(classify(outcome(404), None, cfg))
        self.assertFalse(classify(outcome(200), None, cfg))

    def test_no_response_never_matches(self):
        cfg = ScanConfig(check_alive=True)
        self.assertFalse(classify(ProbeOutcome(url="http://a.test", error="timeout"), None, cfg))

    def test_baseline_identical_body_excluded(self):
        """Scenario: catch-all host answers the real path with the baseline page."""
        for threshold in (0.1, 0.5, 0.9, 0.999):
            cfg = ScanConfig(target_status=404, use_baseline=True, baseline_threshold=threshold)
            with self.subTest(threshold=threshold):
                self.assertFalse(classify(outcome(404, NOT_FOUND), NOT_FOUND, cfg))

    def test_baseline_distinct_body_matches(self):
        cfg = ScanConfig(target_status=200, use_baseline=True, baseline_threshold=0.9)
        self.assertTrue(classify(outcome(200, REAL_PAGE), NOT_FOUND, cfg))

    def test_baseline_threshold_one_accepts_near_duplicates(self):
        near = NOT_FOUND.replace(b"exist", b"exist!")
        cfg = ScanConfig(target_status=404, use_baseline=True, baseline_threshold=1.0)
        self.assertTrue(classify(outcome(404, near), NOT_FOUND, cfg))

    def test_baseline_mode_without_baseline_is_no_match(self):
        cfg = ScanConfig(use_baseline=True)
        self.assertFalse(classify(outcome(200, REAL_PAGE), None, cfg))


class TestIsRedirect(unittest.TestCase):
    def test_range(self):
        self.assertTrue(is_redirect(301))
        self.assertTrue(is_redirect(308))
        self.assertTrue(is_redirect(300))
        self.assertFalse(is_redirect(399 + 1))
        self.assertFalse(is_redirect(200))
        self.assertFalse(is_redirect(None))


if __name__ == "__main__":
    unittest.main()
