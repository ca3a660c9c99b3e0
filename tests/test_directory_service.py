"""Tests for user and patient directory service."""

import pytest

from device_link.domain.errors import NotFoundError, ValidationError
from device_link.services.directory import DirectoryService, parse_pagination
from tests.conftest import InMemoryDirectoryRepository


def test_register_user_generates_hash() -> None:
    service = DirectoryService(InMemoryDirectoryRepository())

    user = service.register_user(name="  Ana  ")

    assert user.name == "Ana"
    assert user.hash is not None
    assert len(user.hash) == 32
    assert service.find_user(user.hash) == user


def test_find_requires_hash() -> None:
    service = DirectoryService(InMemoryDirectoryRepository())

    with pytest.raises(ValidationError):
        service.find_patient("")
    assert service.find_patient("unknown") is None


def test_update_user_requires_fields_and_existing_row() -> None:
    repository = InMemoryDirectoryRepository()
    service = DirectoryService(repository)
    user = repository.create_user("Ana", "h-1")

    with pytest.raises(ValidationError, match="No fields"):
        service.update_user(user.id, {})
    with pytest.raises(NotFoundError):
        service.update_user(999, {"name": "x"})

    updated = service.update_user(str(user.id), {"name": None})

    assert updated.name is None
    assert updated.hash == "h-1"


def test_create_rejects_long_values() -> None:
    service = DirectoryService(InMemoryDirectoryRepository())

    with pytest.raises(ValidationError):
        service.create_patient("x" * 129, None)


def test_delete_and_get_user() -> None:
    repository = InMemoryDirectoryRepository()
    service = DirectoryService(repository)
    user = repository.create_user("Ana", "h-1")

    assert service.get_user(user.id) == user
    service.delete_user(user.id)
    with pytest.raises(NotFoundError):
        service.get_user(user.id)
    with pytest.raises(ValidationError):
        service.delete_user("abc")


def test_parse_pagination() -> None:
    assert parse_pagination(None, None) == (50, 0)
    assert parse_pagination("500", "-5") == (200, 0)
    assert parse_pagination("0", "20") == (1, 20)
    assert parse_pagination("junk", "junk") == (50, 0)
