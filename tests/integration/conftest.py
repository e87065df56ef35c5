"""Fixtures for integration tests against a real MongoDB (testcontainers)."""

import pytest

from ems_database_mongo import DatabaseConfig, create_mongo_component


@pytest.fixture(scope="module")
def mongo_container():
    """Create a MongoDB container using testcontainers."""
    pytest.importorskip("testcontainers")

    from testcontainers.mongodb import MongoDbContainer

    container = MongoDbContainer("mongo:7.0")
    try:
        container.start()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"MongoDB container unavailable: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
def real_mongo_config(mongo_container) -> DatabaseConfig:
    return DatabaseConfig(
        host=mongo_container.get_container_host_ip(),
        port=int(mongo_container.get_exposed_port(27017)),
        database="test_db",
    )


@pytest.fixture
async def real_component(mongo_container, real_mongo_config):
    """
    Connected component over the container's MongoDB.

    Function scope avoids "Event loop is closed" when tests run in different loops.
    """
    component = create_mongo_component(
        real_mongo_config,
        client_options={
            "username": mongo_container.username,
            "password": mongo_container.password,
            "authSource": "admin",
        },
    )
    await component.connect()
    yield component
    await component.disconnect()
