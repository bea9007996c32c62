import hashlib
import logging
import platform
import uuid
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from config import Settings, settings
from storage import OptionStore

logger = logging.getLogger(__name__)

INSTANCE_ID_OPTION = "instance_id"

def get_site_uid(site_url: str, instance_id: str) -> str:
    """
    Generate a stable fingerprint for this site instance.
    Combines host, instance id and path (when present) into a one-way hash.
    """
    parts = urlparse(site_url)

    data = [parts.hostname or "", str(instance_id)]
    if parts.path:
        data.append(parts.path)

    return hashlib.md5("-".join(data).encode()).hexdigest()

def get_or_create_instance_id(options: OptionStore, config: Settings = settings) -> str:
    """Get or generate the unique id of this installation."""
    if config.SITE_INSTANCE_ID:
        return config.SITE_INSTANCE_ID

    instance_id = options.get(INSTANCE_ID_OPTION)
    if instance_id:
        return str(instance_id)

    # Generate new UUID
    instance_id = str(uuid.uuid4())
    options.set(INSTANCE_ID_OPTION, instance_id)
    logger.info("Generated site instance id")

    return instance_id

@dataclass
class HostEnvironment:
    """Identity and versions of the host this client runs in."""
    site_url: str
    instance_id: str
    platform_version: str
    language_version: str = field(default_factory=platform.python_version)

    @classmethod
    def from_settings(cls, options: OptionStore, config: Settings = settings, language_version: Optional[str] = None) -> "HostEnvironment":
        return cls(
            site_url=config.SITE_URL,
            instance_id=get_or_create_instance_id(options, config),
            platform_version=config.PLATFORM_VERSION,
            language_version=language_version or platform.python_version(),
        )

    def site_uid(self) -> str:
        return get_site_uid(self.site_url, self.instance_id)
