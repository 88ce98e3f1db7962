"""
Tests for filename sanitization and collision-free file creation.
"""

import re
import threading

import pytest

from filedrop.config import MAX_NAME_LENGTH
from filedrop.utils import create_unique_file, format_bytes, resolve_unique_path, sanitize_filename, split_name

SAFE_NAME = re.compile(r"^[A-Za-z0-9._-]+$")


class TestSanitizeFilename:
    """Tests for sanitize_filename"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("report final.PDF", "reportfinal.PDF"),
            ("../../etc/passwd", "....etcpasswd"),
            ("a-b_c.tar.gz", "a-b_c.tar.gz"),
            ("photo (1).jpg", "photo1.jpg"),
            ("résumé.txt", "rsum.txt"),
        ],
    )
    def test_strips_unsafe_characters(self, raw, expected):
        assert sanitize_filename(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "日本語", "..", ".", "/\\:*?"])
    def test_falls_back_to_generated_name(self, raw):
        """Nothing usable left (or only dots) gives upload-<hex>"""
        name = sanitize_filename(raw)
        assert re.match(r"^upload-[0-9a-f]{32}$", name)

    def test_fallback_names_are_unique(self):
        assert sanitize_filename("") != sanitize_filename("")

    def test_none_is_treated_as_empty(self):
        assert sanitize_filename(None).startswith("upload-")

    def test_truncates_long_names(self):
        assert len(sanitize_filename("x" * 1000)) == 255

    @pytest.mark.parametrize("raw", ["a b", "\x00\x01", "ok.txt", "C:\\Users\\me\\file.doc", "tab\tname", "😀.png"])
    def test_output_is_always_safe_and_non_empty(self, raw):
        assert SAFE_NAME.match(sanitize_filename(raw))


class TestSplitName:
    """Tests for split_name"""

    def test_splits_on_last_dot(self):
        assert split_name("archive.tar.gz") == ("archive.tar", "gz")

    def test_no_extension(self):
        assert split_name("Makefile") == ("Makefile", None)

    def test_leading_dot_is_not_an_extension(self):
        assert split_name(".bashrc") == (".bashrc", None)


class TestResolveUniquePath:
    """Tests for resolve_unique_path"""

    def test_free_name_is_returned_unchanged(self, tmp_path):
        assert resolve_unique_path(tmp_path, "a.txt") == tmp_path / "a.txt"

    def test_suffixes_increase_from_one(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"0")
        assert resolve_unique_path(tmp_path, "a.txt") == tmp_path / "a_1.txt"
        (tmp_path / "a_1.txt").write_bytes(b"1")
        assert resolve_unique_path(tmp_path, "a.txt") == tmp_path / "a_2.txt"

    def test_suffix_without_extension(self, tmp_path):
        (tmp_path / "notes").write_bytes(b"")
        assert resolve_unique_path(tmp_path, "notes") == tmp_path / "notes_1"

    def test_suffix_goes_before_last_extension(self, tmp_path):
        (tmp_path / "archive.tar.gz").write_bytes(b"")
        assert resolve_unique_path(tmp_path, "archive.tar.gz") == tmp_path / "archive.tar_1.gz"

    def test_suffixed_name_stays_within_length_limit(self, tmp_path):
        name = "a" * 251 + ".txt"
        (tmp_path / name).write_bytes(b"")
        path = resolve_unique_path(tmp_path, name)
        assert path.name == "a" * 249 + "_1.txt"
        assert len(path.name) == MAX_NAME_LENGTH

    def test_long_extension_is_suffixed_as_a_whole(self, tmp_path):
        name = "a." + "b" * 253
        (tmp_path / name).write_bytes(b"")
        path = resolve_unique_path(tmp_path, name)
        assert path.name == name[:253] + "_1"


class TestCreateUniqueFile:
    """Tests for create_unique_file"""

    def test_never_overwrites(self, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"original")
        path, out = create_unique_file(tmp_path, "a.txt")
        with out:
            out.write(b"new")
        assert path.name == "a_1.txt"
        assert (tmp_path / "a.txt").read_bytes() == b"original"

    def test_concurrent_creators_get_distinct_files(self, tmp_path):
        """Threads racing on one name all end up with their own file"""
        workers = 16
        barrier = threading.Barrier(workers)
        paths = []
        lock = threading.Lock()

        def create():
            barrier.wait()
            path, out = create_unique_file(tmp_path, "same.bin")
            out.close()
            with lock:
                paths.append(path)

        threads = [threading.Thread(target=create) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(paths)) == workers
        assert len(list(tmp_path.iterdir())) == workers

    def test_gives_up_after_bounded_attempts(self, tmp_path, monkeypatch):
        """A name that keeps being taken raises instead of looping forever"""
        (tmp_path / "a.txt").write_bytes(b"")
        monkeypatch.setattr("filedrop.utils.resolve_unique_path", lambda directory, name: directory / name)
        with pytest.raises(FileExistsError):
            create_unique_file(tmp_path, "a.txt", attempts=3)


class TestFormatBytes:
    def test_units(self):
        assert format_bytes(512) == "512.0 B"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(5 * 1024 * 1024) == "5.0 MB"
