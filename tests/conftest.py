"""Shared pytest fixtures for dibind tests."""

import pytest

from dibind.container import Container
from dibind.context import ContextRegistry
from dibind.discovery import DependencyFinder

pytest_plugins = ["dibind.integrations.pytest_plugin.plugin"]


@pytest.fixture()
def container(dibind_context: ContextRegistry) -> Container:
    """Empty container registered in an isolated context."""
    return Container("TestContainer", context=dibind_context)


@pytest.fixture()
def dependency_finder() -> DependencyFinder:
    """DependencyFinder instance."""
    return DependencyFinder()
