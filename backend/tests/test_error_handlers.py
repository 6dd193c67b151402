"""
Tulisin Backend — Error Mapper Tests
=====================================

What we test:
    ✅ Body shapes per error kind
    ✅ Internal messages hidden outside development, stack shown inside it
    ✅ Retry-After header for rate limiting
    ✅ Pydantic errors flattened into field errors
"""

import json

import pytest
from fastapi.exceptions import RequestValidationError

from app.error_handlers import BODY_MESSAGE, error_body, error_response, field_errors_from
from app.exceptions import (
    AuthenticationError,
    ConflictError,
    ErrorCode,
    FieldError,
    InternalError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


class TestErrorBody:
    def test_not_found(self):
        assert error_body(NotFoundError("Note not found")) == {
            "error": "Note not found",
            "code": "NOT_FOUND",
        }

    def test_details_are_included_when_present(self):
        body = error_body(ConflictError("Section still contains notes", details={"notesCount": 2}))
        assert body == {
            "error": "Section still contains notes",
            "code": "CONFLICT",
            "details": {"notesCount": 2},
        }

    def test_context_never_leaks(self):
        error = ConflictError("Email already exists", context={"statement": "INSERT INTO users"})
        assert "INSERT" not in json.dumps(error_body(error, debug=True))

    def test_validation_shape(self):
        error = ValidationError(
            "Validation failed",
            [FieldError("email", "Email must be a valid email address"), FieldError("name", "Too short", "value_error")],
        )
        assert error_body(error) == {
            "error": "Validation failed",
            "details": [
                {"field": "email", "message": "Email must be a valid email address"},
                {"field": "name", "message": "Too short", "code": "value_error"},
            ],
        }

    def test_for_field(self):
        error = ValidationError.for_field("title", "Title cannot be empty")
        assert error_body(error)["details"] == [{"field": "title", "message": "Title cannot be empty"}]

    def test_internal_is_generic_in_production(self):
        error = InternalError("Database table not found", context={"sqlstate": "42P01"})
        assert error_body(error, debug=False) == {
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
        }

    def test_internal_in_development_has_name_and_stack(self):
        try:
            raise KeyError("missing")
        except KeyError as cause:
            error = InternalError("Lookup failed")
            error.__cause__ = cause

        body = error_body(error, debug=True)
        assert body["error"] == "Lookup failed"
        assert body["code"] == ErrorCode.INTERNAL_ERROR.value
        assert body["details"]["name"] == "KeyError"
        assert "KeyError" in body["details"]["stack"]

    def test_status_codes(self):
        assert AuthenticationError().status_code == 401
        assert ConflictError().status_code == 409
        assert RateLimitError().status_code == 429
        assert InternalError().is_server_error
        assert not NotFoundError().is_server_error


class TestErrorResponse:
    def test_retry_after_header(self):
        response = error_response(RateLimitError("Too many requests", retry_after=12))
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert json.loads(response.body) == {
            "error": "Too many requests",
            "code": "RATE_LIMIT",
            "details": {"retryAfter": 12},
        }

    def test_no_retry_after_for_other_errors(self):
        response = error_response(NotFoundError("Section not found"))
        assert response.status_code == 404
        assert "Retry-After" not in response.headers


class TestFieldErrorsFrom:
    def test_strips_location_prefix_and_uses_validator_message(self):
        exc = RequestValidationError([
            {
                "type": "value_error",
                "loc": ("body", "email"),
                "msg": "Value error, Email must be a valid email address",
                "ctx": {"error": ValueError("Email must be a valid email address")},
            },
            {"type": "missing", "loc": ("body", "sectionId"), "msg": "Field required"},
        ])

        errors = field_errors_from(exc)

        assert errors[0] == FieldError("email", "Email must be a valid email address", "value_error")
        assert errors[1] == FieldError("sectionId", "Field required", "missing")

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "json_invalid", "loc": ("body", 12), "msg": "JSON decode error"},
            {"type": "model_attributes_type", "loc": ("body",), "msg": "Input should be an object"},
        ],
    )
    def test_body_level_errors(self, raw):
        errors = field_errors_from(RequestValidationError([raw]))
        assert errors == [FieldError("body", BODY_MESSAGE, raw["type"])]
