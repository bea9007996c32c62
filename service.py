import calendar
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from api import ApiClient
from config import Settings, settings
from database import utcnow
from hooks import Hooks, default_hooks
from models import ActivationRecord
from plugin import Plugin
from site_identity import HostEnvironment
from storage import CacheStore, OptionStore

logger = logging.getLogger(__name__)

class Service:
    """
    Shared state access for the licensing services.

    Activation records of every product live in one option, keyed by
    product id. Transients are namespaced as ``{prefix}_{product id}_{name}``.
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
        self.options = options
        self.cache = cache
        self.host = host
        self.config = config
        self.hooks = hooks or default_hooks
        self.transport = transport
        self.clock = clock

    def get_api(self, entity_id: str, scope: str = "plugin", public_key: str = "", secret_key: str = "") -> ApiClient:
        return ApiClient(
            entity_id,
            scope,
            public_key,
            secret_key,
            config=self.config,
            hooks=self.hooks,
            transport=self.transport,
        )

    def get_public_api(self) -> ApiClient:
        # Public key doubles as secret key for public key hash auth.
        return self.get_api(self.plugin.id, "plugin", self.plugin.public_key, self.plugin.public_key)

    def get_activation_data(self) -> Optional[ActivationRecord]:
        activation_data = self.options.get(self.config.OPTION_KEY, {}) or {}
        data = activation_data.get(str(self.plugin.id))
        if not data:
            return None

        try:
            return ActivationRecord.model_validate(data)
        except ValidationError:
            logger.warning("Ignoring malformed activation record for plugin %s", self.plugin.id)
            return None

    def set_activation_data(self, record: ActivationRecord) -> bool:
        # Get existing activation data.
        activation_data = dict(self.options.get(self.config.OPTION_KEY, {}) or {})

        # Update the plugin's data.
        activation_data[str(self.plugin.id)] = record.model_dump(mode="json")

        return self.options.set(self.config.OPTION_KEY, activation_data, autoload=False)

    def is_activated(self) -> bool:
        record = self.get_activation_data()
        return record is not None and record.is_active()

    def get_transient_key(self, key: str) -> str:
        return f"{self.config.CACHE_PREFIX}_{self.plugin.id}_{key}"

    def get_transient(self, key: str) -> Optional[Any]:
        return self.cache.get(self.get_transient_key(key))

    def set_transient(self, key: str, value: Any, ttl: int = 0) -> bool:
        return self.cache.set(self.get_transient_key(key), value, ttl)

    def delete_transient(self, key: str) -> bool:
        return self.cache.delete(self.get_transient_key(key))

    def is_duplicate_request(self, key: str) -> bool:
        """Whether a request of this kind was made within the throttle window."""
        return self.get_transient(key) is not None

    def set_request_time(self, key: str) -> bool:
        timestamp = calendar.timegm(self.clock().utctimetuple())
        return self.set_transient(key, timestamp, self.config.REQUEST_THROTTLE_SECONDS)
