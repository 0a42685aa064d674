import pytest
from pydantic import ValidationError

from procdriver.models import ContainerSpec, ContainerState


def test_spec_requires_image_and_name():
    with pytest.raises(ValidationError):
        ContainerSpec(image="busybox")
    with pytest.raises(ValidationError):
        ContainerSpec(name="web")


def test_spec_defaults_are_empty():
    spec = ContainerSpec(image="busybox", name="a")

    assert spec.links == {}
    assert spec.environment == {}
    assert spec.ports == ()
    assert spec.command == ()
    assert spec.hostname is None
    assert spec.privileged is False and spec.detach is False


def test_spec_is_frozen():
    spec = ContainerSpec(image="busybox", name="web")
    with pytest.raises(ValidationError):
        spec.image = "alpine"


def test_spec_collections_cannot_be_changed_in_place():
    """
    Sequences and mappings given as lists and dicts are stored immutably, so
    neither the spec nor the caller's original objects can alter it later.
    """
    ports = ["1:1"]
    environment = {"A": "1"}
    spec = ContainerSpec(
        image="busybox",
        name="web",
        ports=ports,
        environment=environment,
        links={"db": "postgres"},
        extra_args=["--init"],
    )

    assert spec.ports == ("1:1",)
    with pytest.raises(AttributeError):
        spec.ports.append("2:2")
    with pytest.raises(AttributeError):
        spec.extra_args.append("--rm")
    with pytest.raises(TypeError):
        spec.environment["B"] = "2"
    with pytest.raises(TypeError):
        spec.links["cache"] = "redis"

    ports.append("2:2")
    environment["B"] = "2"
    assert spec.ports == ("1:1",)
    assert dict(spec.environment) == {"A": "1"}


def test_string_command_is_split_like_a_shell_word_list():
    spec = ContainerSpec(image="busybox", name="web", command="sh -c 'echo hi there'")
    assert spec.command == ("sh", "-c", "echo hi there")


def test_list_command_becomes_tuple():
    spec = ContainerSpec(image="busybox", name="web", command=["echo", "hi"])
    assert spec.command == ("echo", "hi")


def test_environment_keeps_insertion_order():
    spec = ContainerSpec(
        image="busybox", name="web", environment={"Z": "1", "A": "2", "M": "3"}
    )
    assert list(spec.environment) == ["Z", "A", "M"]


def test_state_values():
    assert ContainerState.RUNNING.value == "running"
    assert ContainerState.STOPPED.value == "stopped"
    assert ContainerState.NOT_CREATED.value == "not_created"
