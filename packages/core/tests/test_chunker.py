"""Tests for splitting oversized patches into chunks."""

import pytest

from hunkwise_core.chunker import file_header, split_patch
from hunkwise_core.diffparse import parse_diff
from hunkwise_core.validator import find_line_side


def make_hunk(start, length):
    """One hunk of ``length`` lines including its header (all context)."""
    body = [f" line {start + i}" for i in range(length - 1)]
    return [f"@@ -{start},{length - 1} +{start},{length - 1} @@"] + body


def make_patch(hunks=40, hunk_lines=500):
    lines = []
    for i in range(hunks):
        lines.extend(make_hunk(1 + i * 1000, hunk_lines))
    return "\n".join(lines)


class TestPackHunks:
    def test_large_patch_packed_into_bounded_chunks(self):
        patch = make_patch(hunks=40, hunk_lines=500)
        chunks = split_patch("big.txt", patch, max_lines=5000)

        assert len(chunks) == 4
        assert [c.index for c in chunks] == [1, 2, 3, 4]
        assert all(c.total == 4 for c in chunks)
        assert all(c.line_count <= 5000 for c in chunks)

    def test_bodies_concatenate_to_original_patch(self):
        patch = make_patch(hunks=7, hunk_lines=30)
        chunks = split_patch("big.txt", patch, max_lines=100)
        assert "\n".join(c.body for c in chunks) == patch

    def test_every_chunk_carries_file_header(self):
        chunks = split_patch("src/big.py", make_patch(hunks=4, hunk_lines=10), max_lines=20)
        assert all(c.text.startswith(file_header("src/big.py")) for c in chunks)

    def test_hunks_are_never_split(self):
        patch = make_patch(hunks=5, hunk_lines=30)
        chunks = split_patch("big.txt", patch, max_lines=45)
        for chunk in chunks:
            assert chunk.body.startswith("@@ ")
            assert chunk.line_count % 30 == 0

    def test_oversized_hunk_gets_its_own_chunk(self):
        lines = make_hunk(1, 10) + make_hunk(1000, 60) + make_hunk(2000, 10)
        chunks = split_patch("big.txt", "\n".join(lines), max_lines=20)

        assert [c.line_count for c in chunks] == [10, 60, 10]

    def test_preamble_stays_with_first_hunk(self):
        lines = ["index 123..456 100644"] + make_hunk(1, 5) + make_hunk(100, 5)
        chunks = split_patch("big.txt", "\n".join(lines), max_lines=6)
        assert chunks[0].body.startswith("index 123..456")
        assert len(chunks) == 2


class TestSplitWindows:
    def test_single_hunk_windows_get_recomputed_headers(self):
        patch = "@@ -1,2 +1,5 @@\n a\n+b\n+c\n d\n+e"
        chunks = split_patch("one.txt", patch, max_lines=3)

        assert len(chunks) == 2
        assert "@@ -1,1 +1,2 @@ chunk 1/2\n a\n+b" in chunks[0].text
        assert "@@ -2,1 +3,3 @@ chunk 2/2\n+c\n d\n+e" in chunks[1].text

    def test_recomputed_windows_keep_lines_addressable(self):
        patch = "@@ -1,2 +1,5 @@\n a\n+b\n+c\n d\n+e"
        chunks = split_patch("one.txt", patch, max_lines=3)
        files = parse_diff("\n".join(c.text for c in chunks))

        assert len(files) == 2
        assert find_line_side(files, "one.txt", 2) == "RIGHT"
        assert find_line_side(files, "one.txt", 5) == "RIGHT"

    def test_patch_without_headers_gets_inert_marker(self):
        chunks = split_patch("blob.txt", "first\nsecond\nthird", max_lines=2)

        assert len(chunks) == 2
        assert "@@ chunk 1/2 @@\nfirst\nsecond" in chunks[0].text
        assert "@@ chunk 2/2 @@\nthird" in chunks[1].text

    def test_window_count_is_ceiling(self):
        patch = "\n".join(f"line {i}" for i in range(11))
        assert len(split_patch("blob.txt", patch, max_lines=5)) == 3

    def test_no_newline_marker_not_counted(self):
        patch = "@@ -1,1 +1,2 @@\n a\n+b\n\\ No newline at end of file\n+c"
        chunks = split_patch("one.txt", patch, max_lines=4)
        assert "@@ -1,1 +1,2 @@ chunk 1/2" in chunks[0].text


class TestValidation:
    def test_max_lines_must_be_positive(self):
        with pytest.raises(ValueError):
            split_patch("x.txt", "@@ -1 +1 @@\n+a", max_lines=0)

    def test_small_patch_is_one_chunk(self):
        chunks = split_patch("x.txt", "@@ -1,1 +1,1 @@\n-a\n+b", max_lines=100)
        assert len(chunks) == 1
        assert chunks[0].total == 1
