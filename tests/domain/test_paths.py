"""Tests for input path validation and include-file loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from graphpush.domain.errors import InputValidationError
from graphpush.domain.paths import is_hidden, load_include_paths, validate_sources


class TestValidateSources:
    def test_single_file_top_level_is_parent(self, tmp_path: Path) -> None:
        f = tmp_path / "a.py"
        f.write_text("")
        selection = validate_sources([str(f)])
        assert selection.paths == (f.resolve(),)
        assert selection.top_level == tmp_path.resolve()

    def test_directory_is_its_own_top_level(self, tmp_path: Path) -> None:
        d = tmp_path / "src"
        d.mkdir()
        selection = validate_sources([str(d)])
        assert selection.top_level == d.resolve()

    def test_files_in_same_directory(self, tmp_path: Path) -> None:
        for name in ("a.py", "b.py"):
            (tmp_path / name).write_text("")
        selection = validate_sources([str(tmp_path / "a.py"), str(tmp_path / "b.py")])
        assert len(selection.paths) == 2

    def test_missing_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError, match="correct path"):
            validate_sources([str(tmp_path / "nope.py")])

    def test_hidden_path_rejected(self, tmp_path: Path) -> None:
        hidden = tmp_path / ".secret.py"
        hidden.write_text("")
        with pytest.raises(InputValidationError, match="correct path"):
            validate_sources([str(hidden)])

    def test_different_top_levels_rejected(self, tmp_path: Path) -> None:
        sub = tmp_path / "sub"
        sub.mkdir()
        (tmp_path / "a.py").write_text("")
        (sub / "b.py").write_text("")
        with pytest.raises(InputValidationError, match="same top level"):
            validate_sources([str(tmp_path / "a.py"), str(sub / "b.py")])

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            validate_sources([])

    def test_is_value_error(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            validate_sources([str(tmp_path / "missing")])


class TestIsHidden:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [(".git", True), (".env", True), ("src", False), ("a.py", False)],
    )
    def test_dot_prefix(self, name: str, expected: bool) -> None:
        assert is_hidden(Path("/x") / name) is expected


class TestLoadIncludePaths:
    def test_relative_entries_resolve_against_file_dir(self, tmp_path: Path) -> None:
        conf = tmp_path / "conf"
        conf.mkdir()
        includes = conf / "includes.txt"
        includes.write_text("lib\n/opt/include\n")
        paths = load_include_paths(includes)
        assert paths == [conf.absolute() / "lib", Path("/opt/include")]

    def test_trims_and_skips_blank_lines(self, tmp_path: Path) -> None:
        includes = tmp_path / "includes.txt"
        includes.write_text("  vendor  \n\n   \nthird_party\n")
        paths = load_include_paths(includes)
        assert [p.name for p in paths] == ["vendor", "third_party"]

    def test_missing_file_is_validation_error(self, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError, match="includes file"):
            load_include_paths(tmp_path / "missing.txt")
