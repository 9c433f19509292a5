from __future__ import annotations

from pathlib import Path

import pytest

from user_import.csvfile.reader import FileError, read_source_lines, tokenize_line


def test_read_source_lines(write_csv):
    path = write_csv(["Ann,Lee,ann@example.com"])
    assert read_source_lines(path) == ["name,surname,email", "Ann,Lee,ann@example.com"]


def test_read_source_lines_strips_bom(temp_workdir: Path):
    path = temp_workdir / "data" / "bom.csv"
    path.write_bytes("\ufeffname,surname,email\r\nAnn,Lee,ann@example.com\r\n".encode("utf-8"))
    assert read_source_lines(path)[0] == "name,surname,email"


def test_missing_file(temp_workdir: Path):
    with pytest.raises(FileError, match="file not found"):
        read_source_lines(temp_workdir / "data" / "nope.csv")


def test_directory_is_not_a_file(temp_workdir: Path):
    d = temp_workdir / "data" / "dir.csv"
    d.mkdir()
    with pytest.raises(FileError, match="not a regular file"):
        read_source_lines(d)


def test_wrong_extension(temp_workdir: Path):
    p = temp_workdir / "data" / "users.txt"
    p.write_text("name,surname,email\n", encoding="utf-8")
    with pytest.raises(FileError, match="expected a .csv file"):
        read_source_lines(p)


def test_empty_file(temp_workdir: Path):
    p = temp_workdir / "data" / "empty.csv"
    p.write_text("\n  \n", encoding="utf-8")
    with pytest.raises(FileError, match="file is empty"):
        read_source_lines(p)


def test_not_utf8(temp_workdir: Path):
    p = temp_workdir / "data" / "latin1.csv"
    p.write_bytes("name,surname,email\nJos\xe9,Lee,j@example.com\n".encode("latin-1"))
    with pytest.raises(FileError, match="not valid UTF-8"):
        read_source_lines(p)


def test_tokenize_line_quoting():
    assert tokenize_line('a,"b, c","d ""e"""') == ["a", "b, c", 'd "e"']
    assert tokenize_line("a,,") == ["a", "", ""]


@pytest.mark.parametrize("separator", ["\u2028", "\u0085", "\x0b", "\x0c", "\x1e"])
def test_unicode_line_separators_stay_inside_field(temp_workdir: Path, separator: str):
    path = temp_workdir / "data" / "sep.csv"
    path.write_text(f"name,surname,email\nAnn,Lee{separator}Smith,ann@example.com\n", encoding="utf-8")
    lines = read_source_lines(path)
    assert lines == ["name,surname,email", f"Ann,Lee{separator}Smith,ann@example.com"]
    assert tokenize_line(lines[1]) == ["Ann", f"Lee{separator}Smith", "ann@example.com"]


def test_crlf_and_trailing_blank_lines(temp_workdir: Path):
    path = temp_workdir / "data" / "crlf.csv"
    path.write_bytes(b"name,surname,email\r\nAnn,Lee,ann@example.com\r\n\r\n  \r\n")
    assert read_source_lines(path) == ["name,surname,email", "Ann,Lee,ann@example.com"]


def test_blank_line_in_the_middle_is_kept(temp_workdir: Path):
    path = temp_workdir / "data" / "gap.csv"
    path.write_text("name,surname,email\nAnn,Lee,ann@example.com\n\nBob,Ray,bob@example.com\n", encoding="utf-8")
    assert read_source_lines(path) == [
        "name,surname,email",
        "Ann,Lee,ann@example.com",
        "",
        "Bob,Ray,bob@example.com",
    ]
