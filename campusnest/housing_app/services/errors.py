class ServiceError(Exception):
    """
    Base class for failures reported by the backend services.
    `message` is safe to show to the user; `code` is a short machine tag.
    """

    default_code = "service_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __str__(self):
        return self.message


class AuthError(ServiceError):
    default_code = "auth_error"


class DataError(ServiceError):
    default_code = "data_error"


class UploadError(ServiceError):
    default_code = "upload_error"


class InsightsError(ServiceError):
    default_code = "insights_error"
