from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from json import JSONDecodeError
from pathlib import Path
from typing import Any, Mapping

DEFAULT_MANIFEST = "https://github.com/tanklinux/barbs/raw/master/tank-programs.csv"
DEFAULT_DOTFILES_REPO = "https://github.com/tanklinux/gohan.git"
DEFAULT_PREREQUISITES = ("curl", "ca-certificates", "base-devel", "git", "zsh")
DEFAULT_PRUNE = (".git", "README.md", "LICENSE", "FUNDING.yml")


@dataclass(frozen=True)
class ProvisionConfig:
    user: str | None = None
    manifest: str = DEFAULT_MANIFEST
    src_dir: str | None = None
    branch: str = "master"
    aur_helper: str = "yay"
    aur_url: str = "https://aur.archlinux.org"
    prerequisites: tuple[str, ...] = DEFAULT_PREREQUISITES
    keyring: str = "archlinux-keyring"
    pip_args: tuple[str, ...] = ("--no-input",)
    dotfiles_repo: str = DEFAULT_DOTFILES_REPO
    dotfiles_branch: str | None = None
    dotfiles_prune: tuple[str, ...] = DEFAULT_PRUNE

    def with_overrides(self, overrides: Mapping[str, Any]) -> "ProvisionConfig":
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


_STR_KEYS = {"user", "manifest", "src_dir", "branch", "aur_helper", "aur_url", "keyring"}
_LIST_KEYS = {"prerequisites", "pip_args"}
_DOTFILES_KEYS = {"repo", "branch", "prune"}


def _require_str(value: Any, *, what: str, allow_empty: bool = False) -> str:
    if not isinstance(value, str) or (not value and not allow_empty):
        raise ValueError(f"'{what}' must be a non-empty string")
    return value


def _require_str_list(value: Any, *, what: str) -> tuple[str, ...]:
    if isinstance(value, list) and all(isinstance(x, str) and x for x in value):
        return tuple(value)
    raise ValueError(f"'{what}' must be an array of non-empty strings")


def _normalize_top_level(obj: Any) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValueError("Config must be a table/object of settings.")

    unknown = set(obj.keys()) - _STR_KEYS - _LIST_KEYS - {"dotfiles"}
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    out: dict[str, Any] = {}
    for key in _STR_KEYS & obj.keys():
        # An empty keyring disables the refresh.
        out[key] = _require_str(obj[key], what=key, allow_empty=(key == "keyring"))
    for key in _LIST_KEYS & obj.keys():
        out[key] = _require_str_list(obj[key], what=key)

    dotfiles = obj.get("dotfiles")
    if dotfiles is not None:
        if not isinstance(dotfiles, dict):
            raise ValueError("'dotfiles' must be a table/object")
        unknown = set(dotfiles.keys()) - _DOTFILES_KEYS
        if unknown:
            raise ValueError(f"Unknown dotfiles keys: {', '.join(sorted(unknown))}")
        if "repo" in dotfiles:
            # Empty repo disables the dotfiles stage.
            out["dotfiles_repo"] = _require_str(dotfiles["repo"], what="dotfiles.repo", allow_empty=True)
        if "branch" in dotfiles:
            out["dotfiles_branch"] = _require_str(dotfiles["branch"], what="dotfiles.branch")
        if "prune" in dotfiles:
            out["dotfiles_prune"] = _require_str_list(dotfiles["prune"], what="dotfiles.prune")
    return out


def _load_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in {path} at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e


def _load_toml(text: str, path: Path) -> Any:
    # TOML parsing is in stdlib as of Python 3.11. On older Pythons, use tomli.
    try:
        import tomllib  # type: ignore
    except ImportError:  # pragma: no cover
        import tomli as tomllib  # type: ignore
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def _load_yaml(text: str, path: Path) -> Any:
    import yaml

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None and hasattr(mark, "line") and hasattr(mark, "column"):
            line = int(mark.line) + 1
            col = int(mark.column) + 1
            raise ValueError(f"Invalid YAML in {path} at line {line}, column {col}: {e}") from e
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def load_config_file(path: Path) -> ProvisionConfig:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()

    if suffix == ".json":
        raw = _load_json(text, path)
    elif suffix == ".toml":
        raw = _load_toml(text, path)
    elif suffix in (".yaml", ".yml"):
        raw = _load_yaml(text, path)
    else:
        raise ValueError(
            f"Unsupported config format for {path} (expected .json, .toml, .yaml, .yml)."
        )
    return ProvisionConfig().with_overrides(_normalize_top_level(raw))
