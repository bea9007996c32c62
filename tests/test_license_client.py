import hashlib

import httpx

from errors import ErrorKind
from models import ActivationRecord, ActivationStatus
from site_identity import HostEnvironment

SITE_UID = hashlib.md5(b"example.com-1").hexdigest()

def stored_record(options, config):
    return ActivationRecord.model_validate(options.get(config.OPTION_KEY)["1234"])

async def test_activate_and_deactivate_scenario(licensing, server, options, config):
    assert await licensing.activate("ABCD-1234") is True

    record = stored_record(options, config)
    assert record.status == ActivationStatus.ACTIVATED
    assert record.install_id == "77"
    assert record.activation_params.license_key == "ABCD-1234"
    assert record.activation_params.uid == SITE_UID
    assert licensing.is_active() is True

    assert await licensing.deactivate() is True

    record = stored_record(options, config)
    assert record.status == ActivationStatus.DEACTIVATED
    assert record.activation_params.license_key == ""
    assert record.install_id == "77"
    assert licensing.is_active() is False

async def test_activate_sends_site_details(licensing, server):
    await licensing.activate("ABCD-1234")

    request = server.calls("/v1/plugins/1234/activate.json")[0]
    assert server.body(request) == {
        "license_key": "ABCD-1234",
        "uid": SITE_UID,
        "url": "http://example.com",
        "version": "1.0.0",
    }
    assert "Authorization" not in request.headers

async def test_activate_stores_install_data(licensing, options, config, clock):
    await licensing.activate("ABCD-1234")

    record = stored_record(options, config)
    assert record.install_data["install_secret_key"] == "sk_77"
    assert record.install_data["license_plan_name"] == "pro"
    assert record.date == clock()

async def test_activate_empty_key(licensing, server):
    for key in ("", "   "):
        error = await licensing.activate(key)
        assert error.kind == ErrorKind.EMPTY_INPUT

    assert server.requests == []

async def test_reactivation_reuses_install_id(licensing, server, options, config):
    def echo(request):
        body = server.body(request)
        return httpx.Response(200, json=dict(install_id=body.get("install_id", "77"), install_public_key="pk_77", install_secret_key="sk_77"))

    server.route("POST", "/v1/plugins/1234/activate.json", echo)

    await licensing.activate("ABCD-1234")
    await licensing.activate("ABCD-1234")

    second = server.calls("/v1/plugins/1234/activate.json")[1]
    assert server.body(second)["install_id"] == "77"
    assert stored_record(options, config).install_id == "77"

async def test_reactivation_after_deactivation(active_licensing, server, options, config):
    await active_licensing.deactivate()

    assert await active_licensing.activate("ABCD-1234") is True

    activation = server.calls("/v1/plugins/1234/activate.json")[0]
    assert server.body(activation)["install_id"] == "77"
    assert stored_record(options, config).status == ActivationStatus.ACTIVATED

async def test_activate_without_install_id_is_unknown_error(licensing, server, options, config):
    server.respond("POST", "/v1/plugins/1234/activate.json", {"status": "ok"})

    error = await licensing.activate("ABCD-1234")

    assert error.kind == ErrorKind.UNKNOWN
    assert options.get(config.OPTION_KEY) is None

async def test_failed_activation_keeps_previous_status(active_licensing, server, options, config):
    await active_licensing.deactivate()
    server.respond("POST", "/v1/plugins/1234/activate.json", {"error": {"code": "license_expired", "message": "Expired."}}, status=403)

    error = await active_licensing.activate("ABCD-1234")

    assert error.kind == ErrorKind.REMOTE
    assert error.code == "license_expired"
    assert stored_record(options, config).status == ActivationStatus.DEACTIVATED

async def test_deactivate_sends_install_details(active_licensing, server):
    await active_licensing.deactivate()

    request = server.calls("/v1/plugins/1234/deactivate.json")[0]
    assert server.body(request) == {
        "uid": SITE_UID,
        "install_id": "77",
        "license_key": "ABCD-1234",
        "url": "http://example.com",
    }

async def test_deactivate_from_another_site(active_licensing, make_licensing, server):
    staging = make_licensing(HostEnvironment("http://staging.example.com", "1", "6.4", "3.11.4"))

    error = await staging.deactivate()

    assert error.kind == ErrorKind.INVALID_ACTIVATION
    assert server.requests == []

async def test_deactivate_without_record(licensing, server):
    error = await licensing.deactivate()

    assert error.kind == ErrorKind.INVALID_ACTIVATION
    assert server.requests == []

async def test_deactivate_twice(active_licensing, server):
    assert await active_licensing.deactivate() is True

    error = await active_licensing.deactivate()

    assert error.kind == ErrorKind.INVALID_ACTIVATION
    assert len(server.calls("/v1/plugins/1234/deactivate.json")) == 1

async def test_failed_deactivation_keeps_record(active_licensing, server, options, config):
    server.respond("POST", "/v1/plugins/1234/deactivate.json", {"error": {"code": "install_not_found", "message": "Not found."}}, status=404)

    error = await active_licensing.deactivate()

    assert error.code == "install_not_found"
    record = stored_record(options, config)
    assert record.status == ActivationStatus.ACTIVATED
    assert record.activation_params.license_key == "ABCD-1234"

async def test_deactivate_without_id_is_unknown_error(active_licensing, server, options, config):
    server.respond("POST", "/v1/plugins/1234/deactivate.json", {})

    error = await active_licensing.deactivate()

    assert error.kind == ErrorKind.UNKNOWN
    assert stored_record(options, config).status == ActivationStatus.ACTIVATED

async def test_inactive_when_a_field_is_missing(licensing, options, config):
    record = ActivationRecord(status=ActivationStatus.ACTIVATED, install_id="77")
    record.activation_params.uid = SITE_UID
    options.set(config.OPTION_KEY, {"1234": record.model_dump(mode="json")})

    assert licensing.is_active() is False

async def test_records_of_other_products_are_kept(active_licensing, options, config):
    raw = options.get(config.OPTION_KEY)
    raw["999"] = {"status": "activated", "install_id": "5"}
    options.set(config.OPTION_KEY, raw)

    await active_licensing.deactivate()

    assert options.get(config.OPTION_KEY)["999"] == {"status": "activated", "install_id": "5"}

async def test_sync_install(active_licensing, server, options, config):
    server.respond("POST", "/v1/plugins/1234/activate.json", dict(install_id="77", license_plan_name="business"))

    assert await active_licensing.license.sync_install() is True

    assert [r.url.path for r in server.requests] == [
        "/v1/plugins/1234/deactivate.json",
        "/v1/plugins/1234/activate.json",
    ]
    assert active_licensing.license.get_plan_name() == "business"
    assert active_licensing.license.get_license_key() == "ABCD-1234"

async def test_sync_install_stops_after_failed_deactivation(active_licensing, server):
    server.respond("POST", "/v1/plugins/1234/deactivate.json", {"error": {"code": "down", "message": "Down."}}, status=503)

    error = await active_licensing.license.sync_install()

    assert error.code == "down"
    assert server.calls("/v1/plugins/1234/activate.json") == []

async def test_sync_install_requires_active_license(licensing, server):
    error = await licensing.license.sync_install()

    assert error.kind == ErrorKind.NOT_ACTIVE
    assert server.requests == []

async def test_plan_helpers(active_licensing):
    license = active_licensing.license

    assert license.get_plan_name() == "pro"
    assert license.is_plan("pro") is True
    assert license.is_plan("business") is False
    assert license.is_plan("business", matching=False) is True

    await license.deactivate()

    assert license.get_plan_name() == ""
    assert license.get_license_key() == ""
