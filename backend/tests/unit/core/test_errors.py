"""Unit tests for the service-error to HTTP translation."""

from __future__ import annotations

from http import HTTPStatus

import pytest

from session_auth.core.errors import from_service_error, status_code_name
from session_auth.services._shared.errors import (
    ConfigurationError,
    DuplicateIdentity,
    InvalidCredentials,
    InvalidToken,
    OperationTimeout,
    PersistenceFailure,
    TokenInactive,
    TokenNotFound,
)


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (InvalidCredentials(), HTTPStatus.UNAUTHORIZED, "invalid_credentials"),
        (DuplicateIdentity("email"), HTTPStatus.CONFLICT, "duplicate_identity"),
        (InvalidToken(), HTTPStatus.UNAUTHORIZED, "invalid_token"),
        (TokenNotFound(), HTTPStatus.UNAUTHORIZED, "invalid_token"),
        (TokenInactive(), HTTPStatus.UNAUTHORIZED, "token_inactive"),
        (PersistenceFailure(), HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable"),
        (OperationTimeout("login.commit"), HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable"),
        (ConfigurationError("x"), HTTPStatus.INTERNAL_SERVER_ERROR, "configuration_error"),
    ],
)
def test_kind_maps_to_status_and_code(error, status, code):
    api_error = from_service_error(error)
    assert api_error.status_code == status
    assert api_error.code == code


def test_duplicate_names_the_field():
    assert from_service_error(DuplicateIdentity("username")).details == {"field": "username"}


def test_configuration_detail_is_hidden():
    api_error = from_service_error(ConfigurationError("JWT_SECRET_KEY is empty"))
    assert "JWT_SECRET_KEY" not in api_error.message


def test_only_storage_failures_are_retryable():
    assert PersistenceFailure().retryable
    assert OperationTimeout("x").retryable
    assert not InvalidCredentials().retryable
    assert not ConfigurationError("x").retryable


@pytest.mark.parametrize(
    ("status", "code"),
    [
        (404, "not_found"),
        (405, "method_not_allowed"),
        (415, "unsupported_media_type"),
        (599, "error"),
    ],
)
def test_status_code_name(status, code):
    assert status_code_name(status) == code
