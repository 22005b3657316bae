from __future__ import annotations


class AppError(Exception):
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Internal server error"

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class UnauthorizedError(AppError):
    kind = "Unauthorized"
    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "Authentication required"


class AccessDeniedError(AppError):
    kind = "AccessDenied"
    status_code = 403

    @classmethod
    def default_message(cls) -> str:
        return "Access denied"


class NotFoundError(AppError):
    kind = "NotFound"
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "Not found"


class ValidationError(AppError):
    kind = "ValidationError"
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "Invalid request"


class InternalError(AppError):
    pass


ERROR_KINDS: dict[str, type[AppError]] = {
    cls.kind: cls
    for cls in (UnauthorizedError, AccessDeniedError, NotFoundError, ValidationError, InternalError)
}
