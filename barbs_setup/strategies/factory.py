from __future__ import annotations

from typing import Iterable

from barbs_setup.manifest import Tag
from barbs_setup.strategies.api import InstallStrategy


class StrategyFactory:
    """
    Maps every manifest tag to exactly one installation strategy.

    The tag set is closed: construction fails unless each Tag is covered once,
    so adding a tag without a strategy is caught before anything is installed.
    """

    def __init__(self, strategies: Iterable[InstallStrategy]) -> None:
        by_tag: dict[Tag, InstallStrategy] = {}
        for strategy in strategies:
            if not getattr(strategy, "name", None):
                raise ValueError("Strategy is missing required attribute 'name'")
            tag = getattr(strategy, "tag", None)
            if not isinstance(tag, Tag):
                raise ValueError(f"Strategy {strategy.name} returned invalid tag: {tag!r}")
            if tag in by_tag:
                other = by_tag[tag]
                raise ValueError(f"Duplicate strategy for {tag.name}: {other.name} and {strategy.name}")
            by_tag[tag] = strategy

        missing = [t.name for t in Tag if t not in by_tag]
        if missing:
            raise ValueError(f"No strategy registered for: {', '.join(missing)}")
        self._by_tag = by_tag

    @property
    def registered(self) -> list[str]:
        return [f"{tag.name} -> {self._by_tag[tag].name}" for tag in Tag]

    def for_tag(self, tag: Tag) -> InstallStrategy:
        if tag is Tag.FOREIGN:
            return self._by_tag[Tag.FOREIGN]
        if tag is Tag.SOURCE_BUILD:
            return self._by_tag[Tag.SOURCE_BUILD]
        if tag is Tag.LANGUAGE_PACKAGE:
            return self._by_tag[Tag.LANGUAGE_PACKAGE]
        # Tag.REPOSITORY, and the default for anything the manifest didn't mark.
        return self._by_tag[Tag.REPOSITORY]
