import logging
from typing import Optional, Union

from errors import LicenseError, is_error
from models import (
    ActivationParams,
    ActivationRecord,
    ActivationResponse,
    ActivationStatus,
    DeactivationResponse,
)
from service import Service

logger = logging.getLogger(__name__)

class LicenseClient(Service):
    """
    Activation lifecycle of a product on this site.

    A record is never deleted: deactivation flips its status and blanks the
    stored license key, keeping the install id for re-activation.
    """

    def get_license_key(self) -> str:
        record = self.get_activation_data()
        if record and record.activation_params.license_key:
            return record.activation_params.license_key
        return ""

    def get_plan_name(self) -> str:
        if self.is_activated():
            record = self.get_activation_data()
            return str(record.install_data.get("license_plan_name") or "")
        return ""

    def is_plan(self, plan: str, matching: bool = True) -> bool:
        is_match = self.get_plan_name() == plan
        return is_match if matching else not is_match

    async def activate(self, license_key: str) -> Union[bool, LicenseError]:
        """
        Activate license with the licensing service.
        """
        license_key = (license_key or "").strip()
        if not license_key:
            return LicenseError.empty_input()

        params = ActivationParams(
            license_key=license_key,
            uid=self.host.site_uid(),
            url=self.host.site_url,
            version=self.plugin.get_data()["Version"],
        )

        # Reuse an existing install id so the service updates instead of duplicating.
        record = self.get_activation_data()
        if record and record.install_id:
            params.install_id = record.install_id
        else:
            record = ActivationRecord()

        api = self.get_api(self.plugin.id)
        response = await api.post("activate.json", params.model_dump(exclude_none=True), model=ActivationResponse)

        if is_error(response):
            logger.warning("Activation failed for plugin %s: %s", self.plugin.id, response.code)
            return response

        record.activation_params = params
        record.install_id = response.install_id
        record.date = self.clock()
        record.status = ActivationStatus.ACTIVATED
        record.install_data = response.model_dump()

        self.set_activation_data(record)
        logger.info("License activated for plugin %s (install %s)", self.plugin.id, record.install_id)

        return True

    async def deactivate(self) -> Union[bool, LicenseError]:
        """
        Deactivate the license of this site.
        """
        record = self.get_activation_data()
        if not self.can_deactivate(record):
            return LicenseError.invalid_activation()

        args = {
            "uid": record.activation_params.uid,
            "install_id": record.install_id,
            "license_key": record.activation_params.license_key,
            "url": self.host.site_url,
        }

        api = self.get_api(self.plugin.id)
        response = await api.post("deactivate.json", args, model=DeactivationResponse)

        if is_error(response):
            logger.warning("Deactivation failed for plugin %s: %s", self.plugin.id, response.code)
            return response

        record.status = ActivationStatus.DEACTIVATED

        # Do not keep the license key around once it is no longer in use.
        record.activation_params.license_key = ""

        self.set_activation_data(record)
        logger.info("License deactivated for plugin %s (install %s)", self.plugin.id, record.install_id)

        return True

    async def sync_install(self) -> Union[bool, LicenseError]:
        """
        Refresh install data by deactivating and re-activating with the stored key.
        """
        if not self.is_activated():
            return LicenseError.not_active()

        license_key = self.get_license_key()
        if not license_key:
            return LicenseError.empty_input("empty_license", "Invalid or empty license key.")

        deactivated = await self.deactivate()
        if is_error(deactivated):
            return deactivated

        return await self.activate(license_key)

    def can_deactivate(self, record: Optional[ActivationRecord]) -> bool:
        if record is None:
            return False

        if not record.install_id or not record.activation_params.uid or not record.activation_params.license_key:
            return False

        # Activation must belong to this exact site instance.
        if record.activation_params.uid != self.host.site_uid():
            logger.warning("Activation of plugin %s belongs to another site", self.plugin.id)
            return False

        return True
