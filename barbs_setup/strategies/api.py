from __future__ import annotations

import enum
from typing import Protocol

from barbs_setup.core import Context, InstallContext
from barbs_setup.manifest import ManifestEntry, Tag


class InstallOutcome(enum.Enum):
    SKIPPED = "skipped"  # already installed
    INSTALLED = "installed"
    FAILED = "failed"


class InstallStrategy(Protocol):
    """
    An installation strategy handles every manifest entry carrying its tag.

    A strategy must:
    - declare the tag it handles
    - report whether the tools it drives are present
    - install one entry and translate command failures into an InstallOutcome
    """

    name: str
    tag: Tag

    def is_available(self, ctx: Context) -> tuple[bool, str | None]: ...

    def install(self, entry: ManifestEntry, ctx: Context, state: InstallContext) -> InstallOutcome: ...
