import pytest

from folio.config.models import AssistantConfig
# Importing the providers registers them.
from folio.core.assistant.providers import dummy
from folio.core.hosting import github
from folio.core.registry import Registry, assistant_registry, hosting_registry


def test_registry_get_component():
    assert assistant_registry.get("dummy") is dummy.DummyAssistant
    assert assistant_registry.get("openai").__name__ == "OpenAIAssistant"
    assert hosting_registry.get("github") is github.GitHubClient


def test_registry_create_component():
    assistant = assistant_registry.create("dummy", config=AssistantConfig(provider="dummy"))
    assert isinstance(assistant, dummy.DummyAssistant)


def test_registry_get_unregistered_component():
    with pytest.raises(KeyError):
        assistant_registry.get("nonexistent")

    with pytest.raises(KeyError):
        hosting_registry.get("nonexistent")


def test_registry_register_duplicate_component():
    with pytest.raises(ValueError):
        @assistant_registry.register("dummy")
        class AnotherDummyAssistant:
            pass


def test_registry_keys():
    assert {"openai", "dummy"} <= set(assistant_registry.keys())
    assert list(hosting_registry.keys()) == ["github"]


def test_new_registry_is_empty():
    registry = Registry("scratch")

    @registry.register("thing")
    class Thing:
        def __init__(self, value=1):
            self.value = value

    assert registry.create("thing", value=3).value == 3
    assert list(registry.keys()) == ["thing"]
