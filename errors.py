class FitLifeError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(FitLifeError):
    """Bad credentials or missing session."""

    status_code = 401


class AuthorizationError(FitLifeError):
    """Caller is logged in but lacks the required role."""

    status_code = 403


class NotFoundError(FitLifeError):
    status_code = 404


class ConflictError(FitLifeError):
    """Duplicate or capacity violation; surfaced as a bad request."""

    status_code = 400
