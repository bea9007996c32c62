import json
from datetime import datetime, timedelta

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import Settings
from database import Base
from licensing import Licensing
from plugin import Plugin
from site_identity import HostEnvironment
from storage import SqlCacheStore, SqlOptionStore

INSTALL = {
    "install_id": "77",
    "install_public_key": "pk_77",
    "install_secret_key": "sk_77",
    "license_plan_name": "pro",
}

class FakeClock:
    def __init__(self, now: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

class StaticMetadata:
    def __init__(self, version="1.0.0", name="Acme Pro", author="Acme Ltd"):
        self.version = version
        self.name = name
        self.author = author

    def get_installed_version(self, path):
        return self.version

    def get_display_name(self, path):
        return self.name

    def get_author(self, path):
        return self.author

class FakeLicensingService:
    """Answers API calls per (method, path) and records every request."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def respond(self, method, path, payload=None, status=200):
        self.routes[(method, path)] = lambda request: httpx.Response(status, json=payload if payload is not None else {})

    def route(self, method, path, handler):
        self.routes[(method, path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": {"code": "not_found", "message": "Not found."}})
        return route(request)

    def calls(self, path=None):
        return [r for r in self.requests if path is None or r.url.path == path]

    def body(self, request):
        return json.loads(request.content)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

@pytest.fixture
def config():
    return Settings(
        LICENSE_API_URL="https://api.example.test",
        PLUGIN_ID="1234",
        PLUGIN_SLUG="acme-pro",
        PLUGIN_DISTRIBUTION="acme-pro",
        PLUGIN_PUBLIC_KEY="pk_plugin",
        PLUGIN_HAS_ADDONS=True,
        SITE_URL="http://example.com",
        SITE_INSTANCE_ID="1",
        PLATFORM_VERSION="6.4",
    )

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def options(db):
    return SqlOptionStore(db)

@pytest.fixture
def cache(db, clock):
    return SqlCacheStore(db, clock=clock)

@pytest.fixture
def host():
    return HostEnvironment(
        site_url="http://example.com",
        instance_id="1",
        platform_version="6.4",
        language_version="3.11.4",
    )

@pytest.fixture
def metadata():
    return StaticMetadata()

@pytest.fixture
def plugin(metadata):
    return Plugin(
        id="1234",
        slug="acme-pro",
        distribution="acme-pro",
        public_key="pk_plugin",
        is_premium=True,
        has_addons=True,
        package_metadata=metadata,
    )

@pytest.fixture
def server():
    service = FakeLicensingService()
    service.respond("POST", "/v1/plugins/1234/activate.json", INSTALL)
    service.respond("POST", "/v1/plugins/1234/deactivate.json", {"id": 77})
    return service

@pytest.fixture
def make_licensing(plugin, options, cache, config, server, clock):
    def factory(host, **kwargs):
        params = dict(
            plugin=plugin,
            options=options,
            cache=cache,
            host=host,
            config=config,
            transport=server.transport,
            clock=clock,
        )
        params.update(kwargs)
        return Licensing(**params)
    return factory

@pytest.fixture
def licensing(make_licensing, host):
    return make_licensing(host)

@pytest.fixture
async def active_licensing(licensing, server):
    assert await licensing.activate("ABCD-1234") is True
    server.requests.clear()
    return licensing
