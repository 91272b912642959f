# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: one isolated in-memory database per test."""

import os

# The app module builds its default engine at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from main import app
from tracker.core.database import build_engine, init_schema
from tracker.core.dependencies import ServiceContainer, get_container


@pytest.fixture
def container():
    test_engine = build_engine("sqlite://")
    init_schema(test_engine)
    services = ServiceContainer(test_engine)
    services.registry.seed_defaults()
    yield services
    test_engine.dispose()


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def projects(container):
    return container.project_service


@pytest.fixture
def registry(container):
    return container.registry


@pytest.fixture
def admin_function(registry):
    return registry.default_admin()


@pytest.fixture
def member_function(registry):
    return registry.default_non_admin()


@pytest.fixture
def alice(container):
    return container.user_service.create_user("alice")


@pytest.fixture
def bob(container):
    return container.user_service.create_user("bob")


@pytest.fixture
def root(container):
    return container.user_service.create_user("root", global_admin=True)


@pytest.fixture
def project(projects, alice):
    return projects.create({"name": "Tracker", "description": "Issue tracking"}, alice)
