"""
Firefox profile registry (profiles.ini) parsing and default profile lookup.

profiles.ini has two historical layouts for naming the default profile:

- Newer Firefox writes one `[Install<hash>]` section per installation whose
  `Default=` key holds the profile path relative to the data root.
- Older Firefox relies on the `[Profile0]` section's `Path=` key, with
  `IsRelative=1` meaning the path is relative to the data root.

The registry is parsed once into ordered sections and both layouts are
resolved as lookups against that structure. Install sections take priority.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from scrub_engine.errors import ProfileNotFoundError, ProfileRegistryError
from scrub_engine.paths_and_safety import PROFILE_REGISTRY_NAME, firefox_data_root

logger = logging.getLogger(__name__)

INSTALL_SECTION_PREFIX = "Install"
LEGACY_DEFAULT_SECTION = "Profile0"
PROFILE_SECTION_PREFIX = "Profile"

_COMMENT_PREFIXES = (";", "#")


@dataclass(frozen=True, slots=True)
class ProfileRegistry:
    """
    Parsed profiles.ini.

    Attributes
    ----------
    sections:
        Section name -> key/value mapping, both in file order.
    """

    sections: Mapping[str, Mapping[str, str]]

    def section(self, name: str) -> Mapping[str, str] | None:
        """
        Return the keys of one section.

        Returns
        -------
        Mapping[str, str] | None
            The section, or None if the registry has no section `name`.
        """
        return self.sections.get(name)

    def sections_with_prefix(self, prefix: str) -> list[tuple[str, Mapping[str, str]]]:
        """
        Return every section whose name starts with `prefix`.

        Returns
        -------
        list[tuple[str, Mapping[str, str]]]
            (name, keys) pairs in file order.
        """
        return [(name, values) for name, values in self.sections.items() if name.startswith(prefix)]


@dataclass(frozen=True, slots=True)
class RegistryProfile:
    """
    One `[Profile*]` entry of the registry.

    Attributes
    ----------
    section:
        Section name, e.g. "Profile0".
    name:
        Display name (`Name=`), empty if absent.
    path:
        Raw `Path=` value.
    is_relative:
        True unless `IsRelative` is present and not "1".
    is_default:
        True when the section carries `Default=1`.
    """

    section: str
    name: str
    path: str
    is_relative: bool
    is_default: bool

    def resolve(self, data_root: Path) -> Path:
        """
        Return the profile directory this entry points at.

        Parameters
        ----------
        data_root:
            Firefox data root that relative paths are joined to.

        Returns
        -------
        Path
            Profile directory. Its existence is not checked.
        """
        return data_root / self.path if self.is_relative else Path(self.path)


def parse_profile_registry(text: str) -> ProfileRegistry:
    """
    Parse profiles.ini text into ordered sections.

    Parameters
    ----------
    text:
        Registry contents.

    Returns
    -------
    ProfileRegistry
        Parsed registry. Lines outside any section, comment lines and lines
        without '=' are ignored. A repeated section header continues the
        earlier section; later keys overwrite earlier ones.
    """
    sections: dict[str, dict[str, str]] = {}
    current: dict[str, str] | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue

        if line.startswith("["):
            end = line.find("]")
            name = line[1:end] if end != -1 else line[1:]
            current = sections.setdefault(name.strip(), {})
            continue

        if current is None or "=" not in line:
            continue

        key, value = line.split("=", 1)
        current[key.strip()] = value.strip()

    return ProfileRegistry(sections=sections)


def read_profile_registry(data_root: Path) -> ProfileRegistry:
    """
    Read and parse profiles.ini from a Firefox data root.

    Raises
    ------
    ProfileNotFoundError
        If profiles.ini does not exist.
    ProfileRegistryError
        If profiles.ini cannot be read.
    """
    registry_path = data_root / PROFILE_REGISTRY_NAME
    if not registry_path.is_file():
        raise ProfileNotFoundError(f"{PROFILE_REGISTRY_NAME} not found at {registry_path}")

    try:
        text = registry_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ProfileRegistryError(f"Could not read {registry_path}: {exc}") from exc
    return parse_profile_registry(text)


def default_profile_from_registry(registry: ProfileRegistry, data_root: Path) -> Path | None:
    """
    Apply the default profile precedence rules to a parsed registry.

    Returns
    -------
    Path | None
        The default profile directory, or None if the registry names none.
    """
    for name, values in registry.sections_with_prefix(INSTALL_SECTION_PREFIX):
        default = values.get("Default")
        # An empty Default= names no profile; keep looking.
        if default:
            logger.debug("Default profile from [%s]: %s", name, default)
            # Install sections always store paths relative to the data root.
            return data_root / default

    legacy = registry.section(LEGACY_DEFAULT_SECTION)
    if legacy is None:
        return None

    path = legacy.get("Path")
    if not path:
        return None

    is_relative = legacy.get("IsRelative", "1").strip() == "1"
    logger.debug("Default profile from [%s]: %s (relative=%s)", LEGACY_DEFAULT_SECTION, path, is_relative)
    return data_root / path if is_relative else Path(path)


def resolve_default_profile(data_root: Path | None = None) -> Path:
    """
    Determine the default Firefox profile directory.

    Parameters
    ----------
    data_root:
        Optional override for the Firefox data root. If omitted the platform
        default is used.

    Returns
    -------
    Path
        Profile directory. Its existence is not checked here.

    Raises
    ------
    ProfileNotFoundError
        If the registry is missing or names no default profile.
    ProfileRegistryError
        If the registry cannot be read.
    """
    root = data_root if data_root is not None else firefox_data_root()
    registry = read_profile_registry(root)

    profile = default_profile_from_registry(registry, root)
    if profile is None:
        raise ProfileNotFoundError(
            f"Could not determine default profile from {root / PROFILE_REGISTRY_NAME}"
        )
    return profile


def list_registry_profiles(registry: ProfileRegistry) -> tuple[RegistryProfile, ...]:
    """
    List the `[Profile*]` sections of a registry in file order.

    Sections without a `Path=` key are skipped.
    """
    profiles: list[RegistryProfile] = []
    for section, values in registry.sections_with_prefix(PROFILE_SECTION_PREFIX):
        path = values.get("Path")
        if not path:
            continue
        profiles.append(
            RegistryProfile(
                section=section,
                name=values.get("Name", ""),
                path=path,
                is_relative=values.get("IsRelative", "1").strip() == "1",
                is_default=values.get("Default", "").strip() == "1",
            )
        )
    return tuple(profiles)
