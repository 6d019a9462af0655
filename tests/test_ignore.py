from pathlib import Path

from setupkit.ignore import compile_ignore, is_excluded, parse_patterns


def _rule(tmp_path: Path, content: str):
    ignore_file = tmp_path / ".setupkitignore"
    ignore_file.write_text(content, encoding="utf-8")
    return compile_ignore(ignore_file)


def test_missing_ignore_file_excludes_nothing(tmp_path: Path):
    rule = compile_ignore(tmp_path / ".setupkitignore")

    assert not rule
    assert is_excluded(rule, tmp_path / "anything") is False


def test_comments_and_blank_lines_are_skipped():
    patterns = parse_patterns(["# comment", "", "   ", "build/", "/dist", "*.log"])

    assert [pattern.glob for pattern in patterns] == ["build", "dist", "*.log"]
    assert [pattern.directory_only for pattern in patterns] == [True, False, False]


def test_patterns_are_anchored_to_root(tmp_path: Path):
    rule = _rule(tmp_path, "ignored_file_0\nfolder/ignored_file_2\n")
    (tmp_path / "folder").mkdir()

    assert is_excluded(rule, tmp_path / "ignored_file_0")
    assert is_excluded(rule, tmp_path / "folder" / "ignored_file_2")
    assert not is_excluded(rule, tmp_path / "folder")
    assert not is_excluded(rule, tmp_path / "folder" / "ignored_file_0")
    assert not is_excluded(rule, tmp_path / "file_1")


def test_directory_pattern_covers_descendants(tmp_path: Path):
    (tmp_path / ".git" / "objects").mkdir(parents=True)
    (tmp_path / ".github").mkdir()
    rule = _rule(tmp_path, ".git/\n")

    assert is_excluded(rule, tmp_path / ".git")
    assert is_excluded(rule, tmp_path / ".git" / "objects" / "pack")
    assert not is_excluded(rule, tmp_path / ".github")


def test_directory_only_pattern_skips_plain_files(tmp_path: Path):
    (tmp_path / "snapshots").write_text("not a directory", encoding="utf-8")
    rule = _rule(tmp_path, "snapshots/\n")

    assert not is_excluded(rule, tmp_path / "snapshots")


def test_wildcards(tmp_path: Path):
    rule = _rule(tmp_path, "*.log\nfile?.txt\n")

    assert is_excluded(rule, tmp_path / "debug.log")
    assert is_excluded(rule, tmp_path / "file1.txt")
    assert not is_excluded(rule, tmp_path / "file10.txt")
    assert not is_excluded(rule, tmp_path / "notes.md")


def test_paths_outside_root_are_never_excluded(tmp_path: Path):
    source = tmp_path / "source"
    source.mkdir()
    rule = _rule(source, "*\n")

    assert not is_excluded(rule, tmp_path / "other")
