from datetime import datetime
from typing import Callable, List, Optional, Union

import httpx
from sqlalchemy.orm import Session

from addon_client import AddonClient
from config import Settings, settings
from database import utcnow
from errors import LicenseError
from hooks import Hooks
from license_client import LicenseClient
from models import Addon, PluginInfo, UpdateInfo
from plugin import PackageMetadata, Plugin
from site_identity import HostEnvironment
from storage import CacheStore, OptionStore, SqlCacheStore, SqlOptionStore
from update_client import UpdateClient

class Licensing:
    """
    Licensing client of one product.

    Construct one per product and hand it to whatever needs license or
    update state.
    """

    def __init__(
        self,
        plugin: Plugin,
        options: OptionStore,
        cache: CacheStore,
        host: HostEnvironment,
        config: Settings = settings,
        hooks: Optional[Hooks] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.plugin = plugin
        self.host = host

        services = dict(
            plugin=plugin,
            options=options,
            cache=cache,
            host=host,
            config=config,
            hooks=hooks,
            transport=transport,
            clock=clock,
        )
        self.license = LicenseClient(**services)
        self.update = UpdateClient(**services)
        self.addons = AddonClient(**services)

    @classmethod
    def from_settings(
        cls,
        db: Session,
        config: Settings = settings,
        package_metadata: Optional[PackageMetadata] = None,
        **kwargs,
    ) -> "Licensing":
        options = SqlOptionStore(db)
        clock = kwargs.get("clock", utcnow)
        return cls(
            plugin=Plugin.from_settings(config, package_metadata),
            options=options,
            cache=SqlCacheStore(db, clock=clock),
            host=HostEnvironment.from_settings(options, config),
            config=config,
            **kwargs,
        )

    def is_active(self) -> bool:
        return self.license.is_activated()

    async def activate(self, license_key: str) -> Union[bool, LicenseError]:
        return await self.license.activate(license_key)

    async def deactivate(self) -> Union[bool, LicenseError]:
        return await self.license.deactivate()

    async def get_update_info(self, force: bool = False) -> Union[Optional[UpdateInfo], LicenseError]:
        return await self.update.get_update_info(force)

    async def get_marketing_info(self) -> Union[PluginInfo, LicenseError]:
        return await self.update.get_marketing_info()

    async def get_addons(self, force: bool = False) -> List[Addon]:
        return await self.addons.get_addons(force)
