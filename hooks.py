from typing import Any, Dict, Mapping, Optional

class Hooks:
    """
    Extension points invoked by the licensing client.

    Subclass and override what you need; every default leaves its input
    untouched.
    """

    def request_args(self, args: Dict[str, Any], method: str, url: str, data: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        """Adjust the arguments of an outgoing API request."""
        return args

    def pre_request(self, args: Dict[str, Any]) -> Optional[Mapping[str, Any]]:
        """Return a response mapping to short-circuit the HTTP call."""
        return None

    def verify_ssl(self, verify: bool, api: Any) -> bool:
        return verify

    def format_addon(self, addon: Any, client: Any) -> Any:
        return addon

default_hooks = Hooks()
