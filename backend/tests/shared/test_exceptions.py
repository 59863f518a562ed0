"""Tests for shared/exceptions.py."""

from shared.exceptions import (
    IdSyncError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthorizationError,
    ExternalServiceError,
)


class TestIdSyncError:
    def test_message_and_default_code(self):
        error = IdSyncError("Something broke")
        assert error.message == "Something broke"
        assert error.code == "IdSyncError"
        assert error.details == {}
        assert str(error) == "Something broke"

    def test_custom_code_and_details(self):
        error = IdSyncError("Bad", code="BAD", details={"field": "email"})
        assert error.code == "BAD"
        assert error.details == {"field": "email"}

    def test_to_dict(self):
        error = IdSyncError("Bad", code="BAD", details={"x": 1})
        assert error.to_dict() == {
            "error": "BAD",
            "message": "Bad",
            "details": {"x": 1},
        }


class TestCategories:
    def test_categories_inherit_from_base(self):
        for cls in (NotFoundError, ValidationError, ConflictError,
                    AuthorizationError):
            assert issubclass(cls, IdSyncError)

    def test_subclass_default_code_is_class_name(self):
        assert NotFoundError("missing").code == "NotFoundError"

    def test_external_service_error_records_service(self):
        error = ExternalServiceError("Timeout", service="identity_provider")
        assert error.service == "identity_provider"
        assert error.details["service"] == "identity_provider"
