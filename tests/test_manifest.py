from __future__ import annotations

import io
import logging
from pathlib import Path
from urllib.error import URLError

import pytest
from pytest import MonkeyPatch

from barbs_setup.errors import ManifestUnavailable
from barbs_setup.manifest import ManifestEntry, Tag, load_manifest, parse_manifest

MANIFEST = """\
#TAG,NAME IN REPO (or git url),PURPOSE (should be a verb phrase to sound right while installing)
,xorg-server,"is the graphical server."
A,brave-bin,is a web browser.
G,https://github.com/tanklinux/dwm.git,"is the window manager."
P,qutebrowser,"is a keyboard driven browser, with vim bindings."
"""


def test_parse_skips_comments_and_keeps_order() -> None:
    entries = parse_manifest(MANIFEST)
    assert [e.identifier for e in entries] == [
        "xorg-server",
        "brave-bin",
        "https://github.com/tanklinux/dwm.git",
        "qutebrowser",
    ]
    assert [e.tag for e in entries] == [Tag.REPOSITORY, Tag.FOREIGN, Tag.SOURCE_BUILD, Tag.LANGUAGE_PACKAGE]


def test_quoted_note_has_outer_quotes_stripped() -> None:
    quoted, unquoted = parse_manifest(',make,"build tool"\n,make,build tool\n')
    assert quoted.note == "build tool"
    assert unquoted.note == "build tool"


def test_note_keeps_embedded_commas_and_inner_quotes() -> None:
    (entry,) = parse_manifest('P,qutebrowser,"a browser, with "vim" bindings"\n')
    assert entry.note == 'a browser, with "vim" bindings'


def test_unbalanced_quote_is_left_alone() -> None:
    (entry,) = parse_manifest(',xclip,"copies things\n')
    assert entry.note == '"copies things'


@pytest.mark.parametrize("marker", ["", "X", "a", "AUR"])
def test_unrecognized_or_empty_tag_defaults_to_repository(marker: str) -> None:
    (entry,) = parse_manifest(f"{marker},htop,monitors processes\n")
    assert entry.tag is Tag.REPOSITORY


def test_missing_note_column_is_empty() -> None:
    assert parse_manifest("A,yay-bin\n") == [ManifestEntry(Tag.FOREIGN, "yay-bin", "")]


def test_duplicates_are_kept() -> None:
    entries = parse_manifest(",git,vcs\n,git,vcs\n")
    assert len(entries) == 2
    assert entries[0] == entries[1]


def test_blank_and_crlf_lines() -> None:
    entries = parse_manifest(",zsh,a shell\r\n\r\n   \n,vim,an editor\r\n")
    assert [(e.identifier, e.note) for e in entries] == [("zsh", "a shell"), ("vim", "an editor")]


def test_missing_identifier_is_skipped_with_warning(
    logger: logging.Logger, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger=logger.name):
        entries = parse_manifest(",htop,top\nA,,oops\n,vim,editor\n,\n", logger)
    assert [e.identifier for e in entries] == ["htop", "vim"]
    assert [r.getMessage() for r in caplog.records] == [
        "Skipping manifest line 2: missing package name or repository URL",
        "Skipping manifest line 4: missing package name or repository URL",
    ]


def test_source_build_name_is_repository_basename() -> None:
    entry = ManifestEntry(Tag.SOURCE_BUILD, "https://example.com/tool.git", "a handy tool")
    assert entry.name == "tool"
    assert ManifestEntry(Tag.SOURCE_BUILD, "https://example.com/st/", "").name == "st"
    assert ManifestEntry(Tag.FOREIGN, "brave-bin").name == "brave-bin"


def test_load_local_file(tmp_path: Path) -> None:
    path = tmp_path / "progs.csv"
    path.write_text(MANIFEST, encoding="utf-8")
    assert len(load_manifest(str(path))) == 4


def test_load_remote(monkeypatch: MonkeyPatch) -> None:
    seen: list[str] = []

    def fake_urlopen(url: str, timeout: float) -> io.BytesIO:
        seen.append(url)
        return io.BytesIO(MANIFEST.encode("utf-8"))

    monkeypatch.setattr("barbs_setup.manifest.urlopen", fake_urlopen)
    entries = load_manifest("https://example.com/progs.csv")
    assert seen == ["https://example.com/progs.csv"]
    assert len(entries) == 4


def test_remote_failure_is_manifest_unavailable(monkeypatch: MonkeyPatch) -> None:
    def fake_urlopen(url: str, timeout: float) -> io.BytesIO:
        raise URLError("no route to host")

    monkeypatch.setattr("barbs_setup.manifest.urlopen", fake_urlopen)
    with pytest.raises(ManifestUnavailable, match="no route to host"):
        load_manifest("https://example.com/progs.csv")


def test_missing_local_file_that_is_not_a_url(tmp_path: Path) -> None:
    with pytest.raises(ManifestUnavailable):
        load_manifest(str(tmp_path / "nope.csv"))


def test_local_file_with_invalid_utf8_is_manifest_unavailable(tmp_path: Path) -> None:
    path = tmp_path / "progs.csv"
    path.write_bytes(b",htop,\xff bad note\n")
    with pytest.raises(ManifestUnavailable, match="Unable to read manifest"):
        load_manifest(str(path))
