import json
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from fintrack.api.dependencies import get_current_user_id, get_reconciler
from fintrack.api.errors import finance_error_handler, status_for
from fintrack.errors import (
    AuthorizationError,
    ConsistencyError,
    FinanceError,
    NotFoundError,
    ValidationError,
)


def _request(path: str = "/api/transactions") -> MagicMock:
    request = MagicMock()
    request.method = "POST"
    request.url.path = path
    return request


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationError("amount must be a positive number"), 400),
        (AuthorizationError("Account 1 belongs to another user"), 403),
        (NotFoundError("Account", 1), 404),
        (ConsistencyError("create transaction failed: storage unavailable"), 503),
        (FinanceError("unclassified"), 500),
    ],
)
def test_status_for(error: FinanceError, status_code: int) -> None:
    assert status_for(error) == status_code


@pytest.mark.anyio
async def test_finance_error_handler_body() -> None:
    response = await finance_error_handler(_request(), NotFoundError("Transaction", 42))

    assert response.status_code == 404
    assert json.loads(response.body) == {"detail": "Transaction 42 not found"}


@pytest.mark.anyio
async def test_finance_error_handler_consistency() -> None:
    error = ConsistencyError("delete account failed: storage unavailable")

    response = await finance_error_handler(_request("/api/accounts/3"), error)

    assert response.status_code == 503
    assert json.loads(response.body) == {"detail": "delete account failed: storage unavailable"}


def test_not_found_error_keeps_entity() -> None:
    error = NotFoundError("Budget", 7)

    assert str(error) == "Budget 7 not found"
    assert (error.entity, error.entity_id) == ("Budget", 7)


def test_current_user_id_parsing() -> None:
    assert get_current_user_id("12") == 12
    for bad in (None, "", "abc", "-3"):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(bad)
        assert exc_info.value.status_code == 401


def test_get_reconciler_requires_initialized_state() -> None:
    request = MagicMock()
    request.app.state = MagicMock(spec=[])

    with pytest.raises(HTTPException) as exc_info:
        get_reconciler(request)
    assert exc_info.value.status_code == 500
