import pytest
from aioresponses import aioresponses
from faker import Faker

from tests.utils import FakeCatalog


@pytest.fixture(scope="session")
def faker() -> Faker:
    """Sets up and yields a basic Faker object for fake data"""
    return Faker()


@pytest.fixture
def requests_mock():
    """Yields an :py:class:`aioresponses` object to mock HTTP responses with"""
    with aioresponses() as m:
        yield m


@pytest.fixture
def catalog() -> FakeCatalog:
    """Yields an empty in-memory catalog"""
    return FakeCatalog()
