from __future__ import annotations

import os
import pwd
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from barbs_setup.errors import ExecutionFailed

# Return code reported when the executable itself cannot be started.
MISSING_EXECUTABLE = 127


def expand_path(s: str) -> Path:
    # Expand ~ and $VARS
    return Path(os.path.expandvars(os.path.expanduser(s)))


def sh_join(args: Sequence[str]) -> str:
    return shlex.join(list(args))


@dataclass(frozen=True)
class TargetUser:
    """The unprivileged account that owns checkouts and runs builds/helpers."""

    name: str
    uid: int
    gid: int
    home: Path


def resolve_user(name: str) -> TargetUser:
    try:
        entry = pwd.getpwnam(name)
    except KeyError:
        raise ValueError(f"User {name!r} does not exist on this system") from None
    return TargetUser(name=name, uid=entry.pw_uid, gid=entry.pw_gid, home=Path(entry.pw_dir))


@dataclass(frozen=True)
class Identity:
    # None => root (the identity the orchestrator itself runs as)
    user: TargetUser | None = None

    @property
    def is_root(self) -> bool:
        return self.user is None

    def __str__(self) -> str:
        return "root" if self.user is None else self.user.name


ROOT = Identity()


@dataclass(frozen=True)
class RunResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    def __init__(self, *, dry_run: bool, logger, escalate: bool | None = None) -> None:
        self._dry_run = dry_run
        self._logger = logger
        # Prefix root commands with sudo when we are not already root.
        self._escalate = (os.geteuid() != 0) if escalate is None else escalate

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def argv_for(self, args: Iterable[str], identity: Identity) -> list[str]:
        argv = list(args)
        if identity.user is not None:
            # -H so tools like git/makepkg see the user's own $HOME.
            return ["sudo", "-u", identity.user.name, "-H", "--", *argv]
        if self._escalate:
            return ["sudo", *argv]
        return argv

    def run(
        self,
        args: Iterable[str],
        *,
        identity: Identity = ROOT,
        check: bool = False,
        cwd: Path | None = None,
    ) -> RunResult:
        argv = self.argv_for(args, identity)

        # Keep low-level process logs at DEBUG so high-level output can stay
        # "one log line per manifest entry".
        self._logger.debug("RUN [%s] %s", identity, sh_join(argv))
        if self._dry_run:
            return RunResult(args=argv, returncode=0, stdout="", stderr="")

        try:
            cp = subprocess.run(
                argv,
                text=True,
                errors="replace",
                capture_output=True,
                check=False,  # we handle below to include logs
                cwd=str(cwd) if cwd is not None else None,
            )
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            result = RunResult(args=argv, returncode=MISSING_EXECUTABLE, stdout="", stderr=str(e))
        else:
            result = RunResult(
                args=argv,
                returncode=cp.returncode,
                stdout=cp.stdout or "",
                stderr=cp.stderr or "",
            )

        if not result.ok:
            self._logger.debug("Command exited with %d: %s", result.returncode, sh_join(argv))
            if result.stderr.strip():
                self._logger.debug("stderr:\n%s", result.stderr.rstrip())
            if check:
                raise ExecutionFailed(result.returncode, argv, result.stderr)
        return result


def repo_name(url: str) -> str:
    """Directory name for a git URL: its last path component without `.git`."""
    name = url.rstrip("/").rsplit("/", 1)[-1]
    return name[: -len(".git")] if name.endswith(".git") else name
