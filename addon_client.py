import logging
from typing import Any, Dict, List, Union

from errors import LicenseError, is_error
from models import Addon, AddonListResponse
from service import Service

logger = logging.getLogger(__name__)

class AddonClient(Service):
    ADDONS = "addons"
    ADDONS_CHECK = "addons_check"

    async def get_addons(self, force: bool = False) -> List[Addon]:
        """
        Get the product's add-ons, from cache unless forced.
        """
        if not self.plugin.has_addons:
            return []

        if not force:
            cached = self.get_transient(self.ADDONS)
            if cached is not None:
                return [Addon.model_validate(addon) for addon in cached]

        response = await self.get_remote_addons()
        if is_error(response):
            logger.warning("Could not load add-ons of plugin %s: %s", self.plugin.id, response.code)
            return []

        addons = [self.format_addon_data(addon) for addon in response]
        self.set_transient(self.ADDONS, [addon.model_dump() for addon in addons], self.config.CACHE_TTL_SECONDS)

        return addons

    async def get_remote_addons(self) -> Union[List[Dict[str, Any]], LicenseError]:
        if self.is_duplicate_request(self.ADDONS_CHECK):
            return LicenseError.too_many_requests()

        response = await self.get_public_api().get(
            "addons.json",
            {
                "enriched": True,
                "show_pending": False,
            },
            model=AddonListResponse,
        )

        self.set_request_time(self.ADDONS_CHECK)

        if is_error(response):
            return response

        return response.plugins

    def format_addon_data(self, addon: Dict[str, Any]) -> Addon:
        formatted = Addon.model_validate(addon)
        formatted.link = f"{self.config.CHECKOUT_URL.rstrip('/')}/plugin/{formatted.id}"
        formatted.is_premium = formatted.is_pricing_visible
        return self.hooks.format_addon(formatted, self)
