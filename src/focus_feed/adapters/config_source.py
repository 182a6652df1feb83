"""Sources and focus profiles read from YAML files."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from focus_feed.core import ConfigError, ConfigSource, ConfigSummary, FocusProfile, SourceConfig

logger = logging.getLogger(__name__)


class StaticConfigSource(ConfigSource):
    """Configuration held in memory, optionally loaded once from disk."""

    def __init__(
        self,
        sources: list[SourceConfig],
        profiles: list[FocusProfile],
        location: str = "memory",
    ) -> None:
        self.sources = list(sources)
        self.profiles = list(profiles)
        self.location = location

    @classmethod
    def from_yaml(cls, sources_file: Path, profiles_dir: Optional[Path] = None) -> "StaticConfigSource":
        """Load ``sources.yaml`` and one profile per YAML file in ``profiles_dir``.

        An unreadable or invalid sources file is an error; invalid profile
        files are skipped with a warning.
        """
        sources = load_sources_file(sources_file)

        profiles: list[FocusProfile] = []
        profiles_dir = profiles_dir or sources_file.parent / "profiles"
        if profiles_dir.is_dir():
            for path in sorted(profiles_dir.iterdir()):
                if path.suffix not in (".yaml", ".yml"):
                    continue
                try:
                    profiles.append(load_profile_file(path))
                except ConfigError as e:
                    logger.warning("Skipping invalid profile %s: %s", path.name, e)
        else:
            logger.warning("Profiles directory not found: %s", profiles_dir)

        return cls(sources, profiles, location=str(sources_file.parent))

    async def load_sources(self) -> list[SourceConfig]:
        return list(self.sources)

    async def get_all_profiles(self) -> list[FocusProfile]:
        return list(self.profiles)

    async def get_summary(self) -> ConfigSummary:
        return ConfigSummary(
            sources_count=len(self.sources),
            enabled_sources_count=sum(1 for s in self.sources if s.enabled),
            profiles_count=len(self.profiles),
            active_profiles_count=sum(1 for p in self.profiles if p.enabled),
            location=self.location,
        )


def _read_yaml(path: Path) -> object:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e


def load_sources_file(path: Path) -> list[SourceConfig]:
    data = _read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("sources"), list):
        raise ConfigError(f"Invalid source configuration in {path}: expected a 'sources' list")

    sources: list[SourceConfig] = []
    for index, record in enumerate(data["sources"]):
        try:
            sources.append(SourceConfig.from_dict(record))
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid source configuration at sources.{index}: {e}") from e

    ids = [s.id for s in sources]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate source ids: {', '.join(duplicates)}")
    return sources


def load_profile_file(path: Path) -> FocusProfile:
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid profile configuration in {path}")
    try:
        return FocusProfile.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid profile configuration: {e}") from e
