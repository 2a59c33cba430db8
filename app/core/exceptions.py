class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class QuizInactiveError(AppError):
    status_code = 403


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 409


class EmailDeliveryError(AppError):
    status_code = 502


class ExternalServiceError(AppError):
    status_code = 502


class ConfigurationError(AppError):
    status_code = 500


class RateLimitError(AppError):
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after
