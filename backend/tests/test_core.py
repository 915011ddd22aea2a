"""
Tests for token verification, the error taxonomy and log context.
"""

from datetime import timedelta

import jwt
import pytest

from signups.core.config import get_settings
from signups.core.exceptions import (
    GameAlreadyExists,
    GameNotFound,
    InvalidInput,
    MembershipConflict,
    StoreUnavailable,
    Unauthenticated,
)
from signups.core.logging import add_service_context
from signups.core.security import create_access_token, resolve_principal

settings = get_settings()


def test_resolve_principal_round_trip():
    assert resolve_principal(create_access_token("erin@example.com")) == "erin@example.com"


def test_resolve_principal_falls_back_to_sub():
    token = jwt.encode({"sub": "frank@example.com"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert resolve_principal(token) == "frank@example.com"


def test_expired_token():
    token = create_access_token("erin@example.com", expires_delta=timedelta(seconds=-5))
    with pytest.raises(Unauthenticated, match="expired"):
        resolve_principal(token)


def test_wrong_signature():
    token = jwt.encode({"sub": "erin@example.com"}, "not-the-secret", algorithm=settings.ALGORITHM)
    with pytest.raises(Unauthenticated):
        resolve_principal(token)


@pytest.mark.parametrize("claims", [{}, {"sub": "   "}, {"sub": 42}])
def test_token_without_principal(claims):
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(Unauthenticated):
        resolve_principal(token)


@pytest.mark.parametrize("error,status_code", [
    (GameNotFound("g1"), 404),
    (GameAlreadyExists("g1"), 409),
    (MembershipConflict("g1", 5), 409),
    (InvalidInput("category is required"), 400),
    (Unauthenticated(), 401),
    (StoreUnavailable(), 503),
])
def test_error_status_codes(error, status_code):
    assert error.status_code == status_code
    assert error.message


def test_service_context_does_not_override_explicit_fields():
    event = add_service_context(None, "info", {"event": "x", "environment": "staging"})
    assert event["service"] == settings.APP_NAME
    assert event["environment"] == "staging"
