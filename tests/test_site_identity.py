import hashlib

from config import Settings
from site_identity import INSTANCE_ID_OPTION, HostEnvironment, get_or_create_instance_id, get_site_uid

def test_site_uid_without_path():
    assert get_site_uid("http://example.com", "1") == hashlib.md5(b"example.com-1").hexdigest()

def test_site_uid_includes_path():
    assert get_site_uid("https://example.com/blog", "1") == hashlib.md5(b"example.com-1-/blog").hexdigest()

def test_site_uid_differs_per_instance_and_host():
    uid = get_site_uid("http://example.com", "1")
    assert get_site_uid("http://example.com", "2") != uid
    assert get_site_uid("http://staging.example.com", "1") != uid

def test_configured_instance_id_wins(options):
    config = Settings(SITE_INSTANCE_ID="42")
    assert get_or_create_instance_id(options, config) == "42"
    assert options.get(INSTANCE_ID_OPTION) is None

def test_instance_id_is_generated_once(options):
    config = Settings(SITE_INSTANCE_ID="")

    first = get_or_create_instance_id(options, config)
    second = get_or_create_instance_id(options, config)

    assert first
    assert first == second
    assert options.get(INSTANCE_ID_OPTION) == first

def test_host_environment_from_settings(options):
    config = Settings(SITE_URL="http://example.com", SITE_INSTANCE_ID="1", PLATFORM_VERSION="6.4")

    host = HostEnvironment.from_settings(options, config, language_version="3.12.1")

    assert host.platform_version == "6.4"
    assert host.language_version == "3.12.1"
    assert host.site_uid() == get_site_uid("http://example.com", "1")
