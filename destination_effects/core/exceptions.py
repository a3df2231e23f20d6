class ApiError(Exception):
    """Failure of a reporting API call, rendered as ``{"code", "message"}``."""

    def __init__(self, message: str, code: str, http_status: int) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_body(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class AuthError(ApiError):
    def __init__(self) -> None:
        super().__init__(
            message="Recording effects requires a valid bearer token",
            code="UNAUTHORIZED",
            http_status=401,
        )


class MalformedInputError(ApiError):
    def __init__(self, message: str, code: str = "INVALID_EFFECT") -> None:
        super().__init__(message=message, code=code, http_status=400)


class ReportUnavailableError(ApiError):
    def __init__(self, message: str = "Effect report log is unavailable") -> None:
        super().__init__(message=message, code="REPORT_UNAVAILABLE", http_status=503)


class InternalError(ApiError):
    def __init__(self, message: str = "Unexpected failure while handling effects") -> None:
        super().__init__(message=message, code="INTERNAL_ERROR", http_status=500)
