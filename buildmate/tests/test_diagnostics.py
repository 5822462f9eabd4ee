"""
Tests for error fingerprints and per-build grouping.
"""

import unittest
from unittest import TestCase

from buildmate.diagnostics import (
    ErrorDeduplicator,
    ParsedError,
    fingerprint,
    normalize_message,
)


class TestFingerprint(TestCase):
    def test_identifiers_are_normalized(self) -> None:
        self.assertEqual(
            normalize_message("cannot find value `x` in   this scope"),
            "cannot find value `<identifier>` in this scope",
        )

    def test_same_bucket_same_fingerprint(self) -> None:
        a = ParsedError(message="cannot find value `x`", file="src/lib.rs", line=12)
        b = ParsedError(message="cannot find value `y`", file="src/lib.rs", line=15)
        self.assertEqual(fingerprint(a), fingerprint(b))

    def test_different_bucket_different_fingerprint(self) -> None:
        a = ParsedError(message="cannot find value `x`", file="src/lib.rs", line=12)
        b = ParsedError(message="cannot find value `x`", file="src/lib.rs", line=25)
        self.assertNotEqual(fingerprint(a), fingerprint(b))

    def test_different_file_different_fingerprint(self) -> None:
        a = ParsedError(message="boom", file="src/a.rs", line=1)
        b = ParsedError(message="boom", file="src/b.rs", line=1)
        self.assertNotEqual(fingerprint(a), fingerprint(b))

    def test_non_identifier_text_matters(self) -> None:
        a = ParsedError(message="expected `u8`, found `i32`", file="src/a.rs", line=1)
        b = ParsedError(message="mismatched `u8`, found `i32`", file="src/a.rs", line=1)
        self.assertNotEqual(fingerprint(a), fingerprint(b))

    def test_missing_file_still_fingerprints(self) -> None:
        a = ParsedError(message="linking with `cc` failed")
        b = ParsedError(message="linking with `ld` failed")
        self.assertEqual(fingerprint(a), fingerprint(b))
        self.assertEqual(len(fingerprint(a)), 64)

    def test_stable_across_calls(self) -> None:
        error = ParsedError(message="boom", file="src/a.rs", line=3)
        self.assertEqual(fingerprint(error), fingerprint(error))


class TestErrorDeduplicator(TestCase):
    def test_incremental_process_folds_into_one_group(self) -> None:
        dedup = ErrorDeduplicator()
        for name in ("a", "b", "c"):
            groups = dedup.process(
                [ParsedError(message=f"unused `{name}`", file="src/x.rs", line=4)]
            )
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].count, 3)
        self.assertEqual(len(groups[0].variations), 3)
        self.assertEqual(groups[0].primary_error.message, "unused `a`")

    def test_groups_sorted_by_count_descending(self) -> None:
        dedup = ErrorDeduplicator()
        errors = []
        for message, n in (("one", 1), ("five", 5), ("three", 3)):
            errors.extend(ParsedError(message=message, file="f.rs", line=1) for _ in range(n))
        groups = dedup.process(errors)
        self.assertEqual([g.count for g in groups], [5, 3, 1])
        self.assertEqual(len(dedup), 3)

    def test_count_matches_variations(self) -> None:
        dedup = ErrorDeduplicator()
        dedup.process([ParsedError(message="a", file="f.rs", line=1)] * 4)
        dedup.process([ParsedError(message="b")])
        for group in dedup.groups():
            self.assertEqual(group.count, len(group.variations))

    def test_locations_skip_unknown_files(self) -> None:
        dedup = ErrorDeduplicator()
        group = dedup.add(ParsedError(message="boom", file="f.rs", line=1))
        dedup.add(ParsedError(message="boom", file="f.rs", line=2))
        self.assertEqual(group.locations, {"f.rs:1", "f.rs:2"})

        fileless = dedup.add(ParsedError(message="no file"))
        self.assertEqual(fileless.locations, set())
        self.assertEqual(fileless.to_dict()["count"], 1)

    def test_empty_process_returns_existing_groups(self) -> None:
        dedup = ErrorDeduplicator()
        self.assertEqual(dedup.process([]), [])
        dedup.add(ParsedError(message="boom"))
        self.assertEqual(len(dedup.process([])), 1)


if __name__ == "__main__":
    unittest.main()
