"""Tagger settings — reads settings.toml + .env to produce a TaggerConfig.

All knobs live in the ``[tagger]`` table of ``settings.toml`` inside the
config directory (``$AUTOTAG_DIR``, default ``~/.autotag``). A missing file
is not an error: defaults apply and the vault may be given on the command
line instead.

Key entities:
  - TaggerConfig: frozen dataclass with all resolved config.
  - load_settings(): parse .env + settings.toml → TaggerConfig.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from dotenv import load_dotenv

from .utils import TAG_SENTINEL, autotag_dir

logger = logging.getLogger(__name__)

# Delay after a "document modified" event before the note is reprocessed
DEFAULT_SETTLE_DELAY = 1.0  # seconds

# Quiet period after the last live edit before the buffer is rewritten
DEFAULT_QUIET_DELAY = 0.8  # seconds

DEFAULT_IGNORE_DIRS = (".obsidian", ".trash", ".git")

# ---------------------------------------------------------------------------
# TaggerConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaggerConfig:
    """Resolved tagger configuration.

    All path attributes are pre-resolved; no further env lookups needed.
    """

    vault_dir: Path = field(default_factory=Path.cwd)
    config_dir: Path = field(default_factory=lambda: autotag_dir())

    # Which documents count as notes (suffixes, lowercase, with dot)
    note_extensions: frozenset[str] = frozenset({".md"})
    ignore_dirs: frozenset[str] = frozenset(DEFAULT_IGNORE_DIRS)

    # Scheduling
    settle_delay: float = DEFAULT_SETTLE_DELAY
    quiet_delay: float = DEFAULT_QUIET_DELAY

    # Rewriting
    sentinel: str = TAG_SENTINEL
    skip_frontmatter: bool = True
    include_frontmatter_tags: bool = True

    # Lifecycle
    scan_on_start: bool = True

    def is_note_path(self, path: PurePath) -> bool:
        """True if ``path`` has one of the configured note extensions."""
        return path.suffix.lower() in self.note_extensions

    def is_ignored(self, rel_path: PurePath) -> bool:
        """True if any directory component of ``rel_path`` is ignored."""
        return any(part in self.ignore_dirs for part in rel_path.parts[:-1])


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


def load_settings(
    config_dir: Path | None = None,
    vault_dir: Path | None = None,
) -> TaggerConfig:
    """Read .env + settings.toml and return a TaggerConfig.

    Args:
        config_dir: Override for the base config directory.
                    Defaults to ``autotag_dir()``.
        vault_dir: Override for the vault; wins over ``AUTOTAG_VAULT_DIR``
                   and ``vault_dir`` in settings.toml.

    Raises:
        FileNotFoundError: the resolved vault directory does not exist.
        ValueError: a setting has an invalid value.
    """
    if config_dir is None:
        config_dir = autotag_dir()

    # Load .env files (local cwd first, then config_dir)
    local_env = Path(".env")
    global_env = config_dir / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
    if global_env.is_file():
        load_dotenv(global_env)

    raw: dict = {}
    toml_path = config_dir / "settings.toml"
    if toml_path.is_file():
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    else:
        logger.debug("No settings file at %s, using defaults", toml_path)

    section = raw.get("tagger", {})
    if not isinstance(section, dict):
        raise ValueError("settings.toml: [tagger] must be a table.")

    return _build_config(config_dir, section, vault_dir)


def _build_config(
    config_dir: Path,
    section: dict,
    vault_override: Path | None,
) -> TaggerConfig:
    """Validate the [tagger] table and build a TaggerConfig."""
    if vault_override is not None:
        vault_dir = vault_override
    elif os.getenv("AUTOTAG_VAULT_DIR"):
        vault_dir = Path(os.environ["AUTOTAG_VAULT_DIR"])
    elif section.get("vault_dir"):
        vault_dir = Path(str(section["vault_dir"]))
    else:
        vault_dir = Path.cwd()
    vault_dir = Path(os.path.expanduser(vault_dir)).resolve()
    if not vault_dir.is_dir():
        raise FileNotFoundError(f"Vault directory not found: {vault_dir}")

    settle_delay = _delay(section, "settle_delay", DEFAULT_SETTLE_DELAY)
    quiet_delay = _delay(section, "quiet_delay", DEFAULT_QUIET_DELAY)

    sentinel = str(section.get("sentinel", TAG_SENTINEL))
    if len(sentinel) != 1 or sentinel.isspace() or sentinel.isalnum():
        raise ValueError(
            "settings.toml: sentinel must be a single symbol character, "
            f"got {sentinel!r}"
        )

    raw_exts = section.get("note_extensions", [".md"])
    note_extensions = frozenset(_normalize_ext(e) for e in raw_exts if str(e).strip())
    if not note_extensions:
        raise ValueError("settings.toml: note_extensions must not be empty.")

    ignore_dirs = frozenset(
        str(d) for d in section.get("ignore_dirs", DEFAULT_IGNORE_DIRS)
    )

    return TaggerConfig(
        vault_dir=vault_dir,
        config_dir=config_dir,
        note_extensions=note_extensions,
        ignore_dirs=ignore_dirs,
        settle_delay=settle_delay,
        quiet_delay=quiet_delay,
        sentinel=sentinel,
        skip_frontmatter=bool(section.get("skip_frontmatter", True)),
        include_frontmatter_tags=bool(section.get("include_frontmatter_tags", True)),
        scan_on_start=bool(section.get("scan_on_start", True)),
    )


def _delay(section: dict, key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"settings.toml: {key} must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"settings.toml: {key} must not be negative, got {value}")
    return float(value)


def _normalize_ext(ext: object) -> str:
    """'md' / '.MD' → '.md'."""
    s = str(ext).strip().lower()
    return s if s.startswith(".") else f".{s}"
