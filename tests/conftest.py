import copy
import dataclasses
import logging
import os

import yaml
import pytest

import aiocommittee.log
from aiocommittee import SpecDocument
from aiocommittee.loader import YAML12Loader

LOADED_FILES = {}
URLBASE = "/"


@pytest.fixture(autouse=True)
def skip_env(request):
    if request.node.get_closest_marker("skip_env"):
        m = set(request.node.get_closest_marker("skip_env").args) & set(os.environ.keys())
        if m:
            pytest.skip(f"skipped due to env : {sorted(m)}")


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "skip_env(env): skip test if the environment variable is set",
    )


@pytest.fixture
def reset_logging():
    handlers = aiocommittee.log.handlers
    loggers = [logging.getLogger(name) for name in ("aiocommittee", "httpx")]
    state = [(i.level, i.propagate, list(i.handlers)) for i in loggers]
    yield
    aiocommittee.log.handlers = handlers
    for logger, (level, propagate, handlers_) in zip(loggers, state):
        logger.setLevel(level)
        logger.propagate = propagate
        logger.handlers[:] = handlers_


@dataclasses.dataclass
class _Version:
    major: int
    minor: int
    patch: int

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}"

    def __repr__(self):
        return f"{self.major}.{self.minor}.{self.patch}"


@pytest.fixture(scope="session", params=[_Version(3, 0, 3), _Version(3, 1, 0)])
def openapi_version(request):
    return request.param


def _get_parsed_yaml(filename, version=None):
    """
    Returns a python dict that is a parsed yaml file from the tests/fixtures
    directory.

    :param filename: The filename to load.  Must exist in tests/fixtures and
                     include extension.
    :type filename: str
    """
    if filename not in LOADED_FILES:
        with open("tests/fixtures/" + filename) as f:
            raw = f.read()
        LOADED_FILES[filename] = yaml.load(raw, Loader=YAML12Loader)

    data = copy.deepcopy(LOADED_FILES[filename])
    if version:
        data["openapi"] = str(version)
    return data


@pytest.fixture
def cities(openapi_version):
    """
    Provides the cities.yaml description document
    """
    yield _get_parsed_yaml("cities.yaml", openapi_version)


@pytest.fixture
def cities_document(openapi_version):
    """
    Provides the SpecDocument of cities.yaml
    """
    yield SpecDocument(URLBASE, _get_parsed_yaml("cities.yaml", openapi_version))


@pytest.fixture
def with_schema_recursive(openapi_version):
    yield _get_parsed_yaml("schema-recursive.yaml", openapi_version)


@pytest.fixture
def with_schema_ref_broken(openapi_version):
    """
    Provides a description document with a reference to a missing Schema
    """
    yield _get_parsed_yaml("schema-ref-broken.yaml", openapi_version)


@pytest.fixture
def with_schema_ref_external():
    yield _get_parsed_yaml("schema-ref-external.yaml")


@pytest.fixture
def with_paths_status_invalid(openapi_version):
    """
    Provides a description document using an invalid status code
    """
    yield _get_parsed_yaml("paths-status-invalid.yaml", openapi_version)


@pytest.fixture
def with_paths_ambiguous(openapi_version):
    """
    Provides a description document with two path templates matching the same paths
    """
    yield _get_parsed_yaml("paths-ambiguous.yaml", openapi_version)
