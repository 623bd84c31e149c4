from typing import Optional, Sequence

from pydantic import ValidationError

from delivery.core.exceptions.error_messages import ErrorKey


class AppException(Exception):
    """
        Custom exception class for handling application-specific exceptions.

        This exception takes an error key and an optional status code, retrieves
        the corresponding error message from the error messages module, and raises
        an exception with a formatted message.

        Attributes:
            error_key (ErrorKey): Key of the user facing message.
            status_code (int): The HTTP status code associated with the error (default: 400).
            error_detail (str): Internal detail, only rendered in debug mode.
            error_variables (list[str]): Values interpolated into the message.

        Example:
            ```python
            raise AppException(ErrorKey.RESTAURANT_NOT_FOUND, 404, error_variables=[str(restaurant_id)])
            ```
        """
    def __init__(self, error_key: ErrorKey, status_code=400, error_detail="",
                 error_variables: Sequence[str] = ()):
        self.error_key: ErrorKey = error_key
        self.status_code = status_code
        self.error_detail = error_detail
        self.error_variables = list(error_variables)
        super().__init__(error_key.value)


class ValidationException(AppException):
    """Input failed declared field constraints; carries field level messages."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(ErrorKey.VALIDATION_FAILED, status_code=422)

    @classmethod
    def with_messages(cls, **messages: str) -> "ValidationException":
        return cls({field: [message] for field, message in messages.items()})

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "ValidationException":
        errors: dict[str, list[str]] = {}
        for item in error.errors():
            field = ".".join(str(part) for part in item["loc"]) or "__root__"
            errors.setdefault(field, []).append(item["msg"])
        return cls(errors)


class TenantNotFoundException(AppException):
    def __init__(self, error_detail: str = ""):
        super().__init__(ErrorKey.TENANT_NOT_FOUND, status_code=404, error_detail=error_detail)


class ProvisioningException(AppException):
    """A provisioning step failed; earlier steps are left in place."""

    def __init__(
        self,
        stage,
        restaurant_name: str,
        database_name: Optional[str],
        cause: Exception,
    ):
        self.stage = stage
        self.restaurant_name = restaurant_name
        self.database_name = database_name
        self.cause = cause
        super().__init__(
            ErrorKey.PROVISIONING_FAILED,
            status_code=500,
            error_detail=str(cause),
            error_variables=[stage.action, restaurant_name, database_name or "-", str(cause)],
        )

    def __str__(self) -> str:
        return (
            f"Failed to {self.stage.action} for tenant {self.restaurant_name} "
            f"({self.database_name}): {self.cause}"
        )
