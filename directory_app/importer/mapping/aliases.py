"""Loading of the job-level title -> code alias dictionary."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml
from flask import current_app, has_app_context

from directory_app.importer.errors import PreconditionError

DEFAULT_ALIASES_PATH = Path(__file__).with_name("job_level_aliases.yaml")

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")


class AliasLoadError(PreconditionError):
    """Raised when the alias dictionary cannot be loaded or validated."""


@dataclass(frozen=True)
class JobLevelAliases:
    version: int
    aliases: Mapping[str, str]
    path: Path

    def resolve(self, label: str) -> str | None:
        return self.aliases.get(normalize_alias_key(label))


def normalize_alias_key(label: str) -> str:
    """Upper-case, strip diacritics and collapse punctuation to single spaces."""

    decomposed = unicodedata.normalize("NFKD", str(label))
    ascii_only = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _NON_ALNUM.sub(" ", ascii_only.upper()).strip()


def load_job_level_aliases(path: str | Path = DEFAULT_ALIASES_PATH) -> JobLevelAliases:
    """
    Load and validate a YAML alias dictionary.

    Expected shape::

        version: 1
        levels:
          A1: [ALCALDE MUNICIPAL]
    """

    path = Path(path)
    if not path.exists():
        raise AliasLoadError(f"Job-level alias file not found at {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - YAML parser errors
        raise AliasLoadError(f"Failed to parse alias YAML at {path}: {exc}") from exc

    try:
        version = int(raw["version"])
        levels = raw["levels"]
    except KeyError as exc:
        raise AliasLoadError(f"Missing required alias attribute: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise AliasLoadError(f"Invalid alias attribute: {exc}") from exc

    if not isinstance(levels, Mapping):
        raise AliasLoadError("'levels' must map job-level codes to lists of titles.")

    aliases: dict[str, str] = {}
    for code, titles in levels.items():
        code = str(code).strip().upper()
        if not code:
            raise AliasLoadError("Alias entry missing job-level code.")
        if isinstance(titles, str):
            titles = [titles]
        for title in titles or ():
            key = normalize_alias_key(title)
            if not key:
                continue
            existing = aliases.get(key)
            if existing and existing != code:
                raise AliasLoadError(f"Title '{title}' is mapped to both {existing} and {code}.")
            aliases[key] = code

    return JobLevelAliases(version=version, aliases=aliases, path=path)


def get_active_job_level_aliases() -> JobLevelAliases:
    """
    Return the configured alias dictionary.

    Inside an app context the result is cached in ``app.extensions`` and reloaded
    when the file modification time changes.
    """

    if not has_app_context():
        return _load_default()

    config_path = Path(current_app.config.get("IMPORTER_JOB_LEVEL_ALIASES_PATH") or DEFAULT_ALIASES_PATH)
    cache: dict[str, tuple[JobLevelAliases, float]] = current_app.extensions.setdefault(
        "_importer_job_level_alias_cache", {}
    )
    lookup = str(config_path)
    current_mtime = config_path.stat().st_mtime if config_path.exists() else 0.0
    cached = cache.get(lookup)
    if cached and cached[1] == current_mtime:
        return cached[0]
    if cached:
        current_app.logger.debug("Job-level alias file changed, reloading: %s", config_path)
    aliases = load_job_level_aliases(config_path)
    cache[lookup] = (aliases, current_mtime)
    return aliases


_default_aliases: JobLevelAliases | None = None


def _load_default() -> JobLevelAliases:
    global _default_aliases
    if _default_aliases is None:
        _default_aliases = load_job_level_aliases(DEFAULT_ALIASES_PATH)
    return _default_aliases
