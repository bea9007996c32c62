import logging
from typing import Iterable, Optional, Union

from packaging.version import InvalidVersion, Version

from errors import ErrorKind, LicenseError, is_error
from models import PluginInfo, PluginInformation, UpdateInfo, UpdateOffer
from service import Service

logger = logging.getLogger(__name__)

class UpdateClient(Service):
    """
    Latest release and product info, cached to bound traffic.

    ``update_data`` and ``plugin_info`` are cached for a day. The
    ``update_check`` marker allows one remote update check per throttle
    window, whether it succeeded or not.
    """

    UPDATE_DATA = "update_data"
    PLUGIN_INFO = "plugin_info"
    UPDATE_CHECK = "update_check"

    async def get_update_data(self, force: bool = False) -> Union[UpdateInfo, LicenseError]:
        """
        Get latest version data, from cache when possible.
        """
        if not self.plugin.is_premium:
            return LicenseError.not_applicable()

        # On force-check, delete cache unless a check just happened.
        if force and not self.is_duplicate_request(self.UPDATE_CHECK):
            self.delete_transient(self.UPDATE_DATA)

        cached = self.get_transient(self.UPDATE_DATA)
        if cached is not None:
            logger.debug("Update data for plugin %s served from cache", self.plugin.id)
            return UpdateInfo.model_validate(cached)

        if not self.is_activated():
            return LicenseError.not_active()

        if self.is_duplicate_request(self.UPDATE_CHECK):
            logger.debug("Update check for plugin %s throttled", self.plugin.id)
            return LicenseError.too_many_requests()

        update_data = await self.get_remote_latest()

        # No request was sent.
        if is_error(update_data) and update_data.kind in (ErrorKind.NOT_ACTIVE, ErrorKind.INVALID_ACTIVATION):
            return update_data

        # To prevent multiple requests within the throttle window.
        self.set_request_time(self.UPDATE_CHECK)

        if is_error(update_data):
            return update_data

        # An empty result still means "no update" for a day.
        self.set_transient(self.UPDATE_DATA, update_data.model_dump(by_alias=True), self.config.CACHE_TTL_SECONDS)
        logger.info("Checked for updates of plugin %s (latest %s)", self.plugin.id, update_data.version)

        return update_data

    async def get_update_info(self, force: bool = False) -> Union[Optional[UpdateInfo], LicenseError]:
        """
        Get the latest release only if it is newer and runs on this host.
        """
        update_data = await self.get_update_data(force)
        if is_error(update_data):
            return update_data

        return update_data if self.is_update_available(update_data) else None

    async def get_marketing_info(self) -> Union[PluginInfo, LicenseError]:
        info = self.get_transient(self.PLUGIN_INFO)
        if info is not None:
            return PluginInfo.model_validate(info)

        info = await self.get_public_api().get("info.json", model=PluginInfo)
        if not is_error(info):
            self.set_transient(self.PLUGIN_INFO, info.model_dump(), self.config.CACHE_TTL_SECONDS)

        return info

    def is_update_available(self, update_data: UpdateInfo) -> bool:
        if not update_data.version:
            return False

        try:
            current = Version(self.plugin.get_data()["Version"] or "0")
            remote = Version(update_data.version)
            requires_platform = Version(update_data.requires_platform_version or "0")
            requires_language = Version(update_data.requires_language_version or "0")
            platform_version = Version(self.host.platform_version)
            language_version = Version(self.host.language_version)
        except InvalidVersion as e:
            logger.warning("Cannot compare versions for plugin %s: %s", self.plugin.id, e)
            return False

        return (
            current < remote
            and requires_platform <= platform_version
            and requires_language < language_version
        )

    async def get_update_offer(self) -> Optional[UpdateOffer]:
        """
        Entry for the host's list of available updates.
        """
        if not self.plugin.is_premium or not self.is_activated():
            return None

        update_data = await self.get_update_info()
        if update_data is None or is_error(update_data):
            return None

        return UpdateOffer(
            slug=self.plugin.slug,
            plugin=self.plugin.distribution,
            new_version=update_data.version,
            tested=update_data.requires_platform_version,
            package=update_data.url,
        )

    async def get_plugin_information(self) -> Optional[PluginInformation]:
        """
        Details shown by the host for the latest release.
        """
        if not self.plugin.is_premium or not self.is_activated():
            return None

        update_data = await self.get_update_data()
        if is_error(update_data) or not update_data.version:
            return None

        plugin_info = await self.get_marketing_info()
        if is_error(plugin_info):
            plugin_info = PluginInfo()

        plugin_data = self.plugin.get_data()
        return PluginInformation(
            name=plugin_data["Name"],
            slug=self.plugin.slug,
            author=plugin_data["Author"],
            version=update_data.version,
            last_updated=update_data.updated_at,
            requires=update_data.requires_platform_version,
            requires_language=update_data.requires_language_version,
            tested=update_data.tested_up_to,
            download_link=update_data.url,
            sections={
                "description": plugin_info.description or f"Upgrade {plugin_data['Name']} to latest.",
            },
            banners={
                "high": plugin_info.banner_url or "",
                "low": plugin_info.card_banner_url or "",
            },
        )

    def purge_update_cache(self, action: str, type: str, packages: Iterable[str]) -> bool:
        """
        Clean the cache when a new version of this product is installed.
        """
        if action == "update" and type == "plugin" and self.plugin.distribution in packages:
            self.delete_transient(self.UPDATE_DATA)
            logger.info("Purged update cache of plugin %s", self.plugin.id)
            return True
        return False

    async def get_remote_latest(self) -> Union[UpdateInfo, LicenseError]:
        record = self.get_activation_data()
        if record is None or not record.is_active():
            return LicenseError.not_active()

        public_key = record.install_data.get("install_public_key")
        secret_key = record.install_data.get("install_secret_key")
        if not public_key or not secret_key:
            return LicenseError.invalid_activation("missing_install_credentials", "Install credentials missing.")

        # Get authenticated API instance for the install.
        api = self.get_api(record.install_id, "install", public_key, secret_key)

        return await api.get("updates/latest.json", model=UpdateInfo)
