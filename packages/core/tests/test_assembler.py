"""Tests for diff assembly and resume manifests."""

from hunkwise_core.assembler import (
    PLACEHOLDER_ERROR,
    PLACEHOLDER_NO_PATCH,
    assemble,
    placeholder,
    reconstruct,
)
from hunkwise_store.models import Session, SessionKey


def make_session(processed):
    session = Session.start(SessionKey("owner/repo", 7), total_files=5)
    session.processed_files = list(processed)
    return session


class TestReconstruct:
    def test_empty_when_nothing_processed(self):
        assert reconstruct(make_session([])) == ""

    def test_manifest_lists_processed_files(self):
        manifest = reconstruct(make_session(["a.py", "b.py"]))
        assert manifest == "# Previously processed 2 files\n# Files: a.py, b.py\n"


class TestPlaceholder:
    def test_default_note(self):
        text = placeholder("img/logo.png")
        assert text.startswith("diff --git a/img/logo.png b/img/logo.png\n")
        assert text.endswith(f"@@ {PLACEHOLDER_NO_PATCH} @@")

    def test_error_note(self):
        assert placeholder("x.py", PLACEHOLDER_ERROR).endswith("@@ Error retrieving diff @@")


class TestAssemble:
    def test_fragments_joined_with_newline(self):
        assert assemble(["one", "two"]) == "one\ntwo"

    def test_manifest_prefixed(self):
        manifest = reconstruct(make_session(["a.py"]))
        assert assemble(["frag"], manifest) == manifest + "frag"

    def test_empty_fragments_dropped(self):
        assert assemble(["one", "", "two"]) == "one\ntwo"

    def test_nothing_to_assemble(self):
        assert assemble([]) == ""
