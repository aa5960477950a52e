"""Shared fixtures: an in-memory registry and ELM_HOME builders."""

import json

import pytest

from elmsolve.constants import Constants
from elmsolve.registry.base import DependencyProvider


class InMemoryProvider(DependencyProvider):
    """Provider over ``{package: {version: {dep: constraint}}}``; records every call.

    Versions are listed in insertion order, which is the preference order.
    """

    def __init__(self, packages, fail_fetch=None, fail_list=None):
        self.packages = packages
        self.fail_fetch = fail_fetch or {}
        self.fail_list = fail_list or {}
        self.fetch_calls = []
        self.list_calls = []
        self.pulled = []

    def fetch_elm_json(self, package, version):
        self.fetch_calls.append((package, version))
        if (package, version) in self.fail_fetch:
            raise self.fail_fetch[(package, version)]
        deps = self.packages[package][version]
        return json.dumps(
            {
                "type": "package",
                "name": package,
                "version": version,
                "summary": "",
                "license": "BSD-3-Clause",
                "exposed-modules": [],
                "elm-version": "0.19.0 <= v < 0.20.0",
                "dependencies": deps,
                "test-dependencies": {},
            }
        )

    def list_available_versions(self, package):
        self.list_calls.append(package)
        if package in self.fail_list:
            raise self.fail_list[package]

        def generate():
            for version in self.packages.get(package, {}):
                self.pulled.append((package, version))
                yield version

        return generate()


def package_project(dependencies, test_dependencies=None, name="test/root", version="1.0.0"):
    """elm.json text of a package project."""
    return json.dumps(
        {
            "type": "package",
            "name": name,
            "summary": "",
            "license": "BSD-3-Clause",
            "version": version,
            "exposed-modules": [],
            "elm-version": "0.19.0 <= v < 0.20.0",
            "dependencies": dependencies,
            "test-dependencies": test_dependencies or {},
        }
    )


def application_project(direct, indirect=None, test_direct=None, test_indirect=None):
    """elm.json text of an application project."""
    return json.dumps(
        {
            "type": "application",
            "source-directories": ["src"],
            "elm-version": "0.19.1",
            "dependencies": {"direct": direct, "indirect": indirect or {}},
            "test-dependencies": {"direct": test_direct or {}, "indirect": test_indirect or {}},
        }
    )


def install_package(home, package, version, dependencies=None):
    """Write an installed package elm.json under an ELM_HOME tree."""
    author, name = package.split("/")
    path = home / "0.19.1" / "packages" / author / name / version
    path.mkdir(parents=True, exist_ok=True)
    (path / "elm.json").write_text(
        json.dumps(
            {
                "type": "package",
                "name": package,
                "version": version,
                "dependencies": dependencies or {},
                "test-dependencies": {},
            }
        ),
        encoding="utf-8",
    )
    return path / "elm.json"


@pytest.fixture
def make_provider():
    """Factory for recording in-memory providers."""
    return InMemoryProvider


@pytest.fixture
def elm_home(tmp_path):
    """An empty ELM_HOME directory."""
    home = tmp_path / "elm-home"
    home.mkdir()
    return home


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo Constants mutations made by config loading or CLI overrides."""
    saved = {key: value for key, value in vars(Constants).items() if key.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
