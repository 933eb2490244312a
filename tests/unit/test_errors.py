# tests/unit/test_errors.py

import pytest

from wishwall.errors import (
    AppError,
    DuplicateKeyError,
    NotFoundError,
    QueryRejectedError,
    is_duplicate_key_error,
)


@pytest.mark.parametrize("message", [
    'duplicate key value violates unique constraint "idx_supports_wish_user"',
    "UNIQUE constraint failed: supports.wish_id, supports.user_id",
    "(1062, \"Duplicate entry 'a-5' for key 'idx_supports_wish_user'\")",
])
def test_duplicate_key_messages_from_each_driver(message):
    assert is_duplicate_key_error(Exception(message))


@pytest.mark.parametrize("message", [
    "connection refused",
    "FOREIGN KEY constraint failed",
    'relation "wishes" does not exist',
])
def test_other_errors_are_not_duplicates(message):
    assert not is_duplicate_key_error(Exception(message))


def test_error_codes():
    assert QueryRejectedError().error_code == "QUERY_REJECTED"
    assert NotFoundError().error_code == "NOT_FOUND"
    assert DuplicateKeyError().error_code == "DUPLICATE_KEY"
    assert isinstance(NotFoundError(), AppError)
    assert AppError("x").details == {}
