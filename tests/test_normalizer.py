"""Tests for helm_manifest_ingest.normalizer."""

import textwrap

from helm_manifest_ingest.normalizer import (
    normalize_manifest_body,
    normalize_structured,
    split_documents,
)
from helm_manifest_ingest.observer import RecordingObserver


class TestNormalizeStructured:
    def test_single_object(self) -> None:
        assert normalize_structured({"kind": "Pod"}) == [{"kind": "Pod"}]

    def test_array_kept_verbatim(self) -> None:
        value = [{"kind": "Pod"}, None, "text", {"kind": "Service"}]
        assert normalize_structured(value) == value

    def test_list_kind_expanded(self) -> None:
        value = {
            "apiVersion": "v1",
            "kind": "List",
            "items": [{"kind": "Pod"}, {"kind": "Service"}],
        }
        assert normalize_structured(value) == [{"kind": "Pod"}, {"kind": "Service"}]

    def test_list_kind_without_items_kept(self) -> None:
        value = {"apiVersion": "v1", "kind": "List"}
        assert normalize_structured(value) == [value]


class TestSplitDocuments:
    def test_separators_with_comments(self) -> None:
        body = textwrap.dedent("""\
            --- # Source: chart/templates/a.yaml
            kind: A
            ---
            kind: B
            ---
            kind: C
            """)
        segments = split_documents(body)
        assert len(segments) == 3
        assert "kind: A" in segments[0]
        assert "kind: C" in segments[2]

    def test_embedded_dashes_are_not_separators(self) -> None:
        body = "data:\n  banner: a---b\n----\nkind: X\n"
        assert len(split_documents(body)) == 1

    def test_crlf_separators(self) -> None:
        body = "---\r\nkind: A\r\n--- # Source: b.yaml\r\nkind: B\r\n"
        assert len(split_documents(body)) == 2

    def test_blank_segments_dropped(self) -> None:
        assert split_documents("---\n\n---\n   \n---\n") == []


class TestNormalizeManifestBody:
    def test_decodes_in_order(self) -> None:
        body = "---\nkind: A\n---\nkind: B\n"
        assert normalize_manifest_body(body) == [{"kind": "A"}, {"kind": "B"}]

    def test_bad_segment_skipped_with_warning(self, observer: RecordingObserver) -> None:
        body = "---\nkind: A\n---\nkey: [unclosed\n---\nkind: C\n"
        docs = normalize_manifest_body(body, observer)
        assert docs == [{"kind": "A"}, {"kind": "C"}]
        warnings = observer.by_level("warning")
        assert len(warnings) == 1
        assert warnings[0].startswith("Failed to parse YAML document #2")

    def test_comment_only_segment_skipped(self, observer: RecordingObserver) -> None:
        body = "---\n# Source: chart/templates/empty.yaml\n---\nkind: A\n"
        assert normalize_manifest_body(body, observer) == [{"kind": "A"}]
        assert observer.by_level("warning") == []

    def test_reports_document_count(self, observer: RecordingObserver) -> None:
        normalize_manifest_body("---\nkind: A\n---\nkind: B\n", observer)
        assert "Found 2 YAML documents in manifest" in observer.by_level("info")

    def test_duplicates_kept(self) -> None:
        body = "---\nkind: A\n---\nkind: A\n"
        assert len(normalize_manifest_body(body)) == 2
