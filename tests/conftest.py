from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import pytest

from barbs_setup.core import Context, Options
from barbs_setup.errors import ExecutionFailed
from barbs_setup.util import ROOT, CommandRunner, Identity, RunResult, TargetUser

Effect = Callable[[list[str], Path | None], None]


@dataclass(frozen=True)
class Call:
    argv: list[str]
    identity: Identity
    cwd: Path | None


class FakeRunner(CommandRunner):
    """Records every command and answers from scripted (prefix -> returncode) rules."""

    def __init__(self, logger: logging.Logger, *, dry_run: bool = False) -> None:
        super().__init__(dry_run=dry_run, logger=logger, escalate=False)
        self.calls: list[Call] = []
        self._rules: list[tuple[tuple[str, ...], int, str, Effect | None]] = []

    def script(self, *prefix: str, returncode: int = 0, stdout: str = "", effect: Effect | None = None) -> None:
        # Most recently added rule wins.
        self._rules.insert(0, (prefix, returncode, stdout, effect))

    def run(
        self,
        args: Iterable[str],
        *,
        identity: Identity = ROOT,
        check: bool = False,
        cwd: Path | None = None,
    ) -> RunResult:
        argv = list(args)
        self.calls.append(Call(argv=argv, identity=identity, cwd=cwd))
        result = RunResult(args=argv, returncode=0, stdout="", stderr="")
        for prefix, returncode, stdout, effect in self._rules:
            if tuple(argv[: len(prefix)]) == prefix:
                if effect is not None:
                    effect(argv, cwd)
                result = RunResult(args=argv, returncode=returncode, stdout=stdout, stderr="")
                break
        if check and not result.ok:
            raise ExecutionFailed(result.returncode, argv)
        return result

    def commands(self, *prefix: str) -> list[Call]:
        return [c for c in self.calls if tuple(c.argv[: len(prefix)]) == prefix]


def make_checkout(argv: list[str], cwd: Path | None) -> None:
    """Effect for `git clone`: create the destination as a git checkout."""
    (Path(argv[-1]) / ".git").mkdir(parents=True, exist_ok=True)


@pytest.fixture
def logger() -> logging.Logger:
    log = logging.getLogger("barbs-setup-test")
    log.setLevel(logging.DEBUG)
    return log


@pytest.fixture
def runner(logger: logging.Logger) -> FakeRunner:
    return FakeRunner(logger)


@pytest.fixture
def user(tmp_path: Path) -> TargetUser:
    home = tmp_path / "home"
    home.mkdir()
    # chown to our own uid/gid is always permitted, so tests need no root.
    return TargetUser(name="tank", uid=os.getuid(), gid=os.getgid(), home=home)


@pytest.fixture
def ctx(runner: FakeRunner, logger: logging.Logger, user: TargetUser, tmp_path: Path) -> Context:
    src_dir = tmp_path / "src"
    src_dir.mkdir()
    return Context(
        logger=logger,
        runner=runner,
        options=Options(dry_run=False),
        user=user,
        src_dir=src_dir,
    )


@pytest.fixture(autouse=True)
def tools_on_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
