from dataclasses import dataclass, field
from importlib import metadata
from typing import Dict, Optional, Protocol

from config import Settings, settings

class PackageMetadata(Protocol):
    def get_installed_version(self, path: str) -> str: ...

    def get_display_name(self, path: str) -> str: ...

    def get_author(self, path: str) -> str: ...

class DistributionMetadata:
    """Reads name, version and author of an installed distribution."""

    def get_installed_version(self, path: str) -> str:
        try:
            return metadata.version(path)
        except metadata.PackageNotFoundError:
            return ""

    def get_display_name(self, path: str) -> str:
        return self._field(path, "Name") or path

    def get_author(self, path: str) -> str:
        return self._field(path, "Author") or self._field(path, "Author-email")

    def _field(self, path: str, name: str) -> str:
        try:
            return metadata.metadata(path).get(name) or ""
        except metadata.PackageNotFoundError:
            return ""

@dataclass
class Plugin:
    """The licensed product."""
    id: str
    slug: str = ""
    distribution: str = ""
    public_key: str = ""
    is_premium: bool = False
    has_addons: bool = False
    package_metadata: PackageMetadata = field(default_factory=DistributionMetadata)
    _data: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_settings(cls, config: Settings = settings, package_metadata: Optional[PackageMetadata] = None) -> "Plugin":
        return cls(
            id=config.PLUGIN_ID,
            slug=config.PLUGIN_SLUG,
            distribution=config.PLUGIN_DISTRIBUTION or config.PLUGIN_SLUG,
            public_key=config.PLUGIN_PUBLIC_KEY,
            is_premium=config.PLUGIN_IS_PREMIUM,
            has_addons=config.PLUGIN_HAS_ADDONS,
            package_metadata=package_metadata or DistributionMetadata(),
        )

    def get_data(self) -> Dict[str, str]:
        if not self._data:
            self._data = {
                "Name": self.package_metadata.get_display_name(self.distribution),
                "Version": self.package_metadata.get_installed_version(self.distribution),
                "Author": self.package_metadata.get_author(self.distribution),
            }
        return self._data
