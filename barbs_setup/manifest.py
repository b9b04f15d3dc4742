from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlopen

from barbs_setup.errors import ManifestUnavailable
from barbs_setup.util import repo_name

COMMENT_MARKER = "#"


class Tag(enum.Enum):
    REPOSITORY = ""
    FOREIGN = "A"
    SOURCE_BUILD = "G"
    LANGUAGE_PACKAGE = "P"

    @classmethod
    def from_marker(cls, marker: str) -> "Tag":
        # Anything we don't recognize (including an empty column) is a plain repository package.
        for tag in cls:
            if tag.value and tag.value == marker:
                return tag
        return cls.REPOSITORY


@dataclass(frozen=True)
class ManifestEntry:
    tag: Tag
    identifier: str
    note: str = ""

    @property
    def name(self) -> str:
        """Display/checkout name: the last URL component for source builds."""
        if self.tag is not Tag.SOURCE_BUILD:
            return self.identifier
        return repo_name(self.identifier)


def _strip_quotes(note: str) -> str:
    # Only a fully wrapping pair is removed; embedded quotes/commas are left as-is.
    if len(note) >= 2 and note.startswith('"') and note.endswith('"'):
        return note[1:-1]
    return note


def parse_manifest(text: str, logger: logging.Logger | None = None) -> list[ManifestEntry]:
    """
    Parse `tag,identifier,note` lines into entries, in file order.

    Lines starting with '#' and blank lines are ignored. The note column takes
    the remainder of the line, so it may itself contain commas. A line without
    an identifier is skipped with a warning.
    """
    log = logger or logging.getLogger("barbs-setup")
    entries: list[ManifestEntry] = []
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip("\r")
        if line.startswith(COMMENT_MARKER) or not line.strip():
            continue
        fields = line.split(",", 2)
        fields += [""] * (3 - len(fields))
        marker, identifier, note = fields
        identifier = identifier.strip()
        if not identifier:
            log.warning("Skipping manifest line %d: missing package name or repository URL", lineno)
            continue
        entries.append(
            ManifestEntry(
                tag=Tag.from_marker(marker.strip()),
                identifier=identifier,
                note=_strip_quotes(note),
            )
        )
    return entries


def fetch_text(url: str, *, timeout: float = 30) -> str:
    try:
        with urlopen(url, timeout=timeout) as resp:
            return resp.read().decode("utf-8")
    except (URLError, OSError, ValueError) as e:
        raise ManifestUnavailable(f"Unable to fetch manifest from {url}: {e}") from e


def load_manifest(source: str, *, timeout: float = 30, logger: logging.Logger | None = None) -> list[ManifestEntry]:
    path = Path(source).expanduser()
    if path.is_file():
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestUnavailable(f"Unable to read manifest {path}: {e}") from e
    else:
        text = fetch_text(source, timeout=timeout)

    return parse_manifest(text, logger)
