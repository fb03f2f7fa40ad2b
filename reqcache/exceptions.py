"""Domain exceptions for request orchestration."""

from typing import Any, Optional


class ReqcacheException(Exception):
    """Base exception for request orchestration."""

    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class ConfigurationError(ReqcacheException):
    """Invalid or unresolvable configuration."""

    pass


class IncorrectPayloadError(ReqcacheException):
    """A request action was dispatched without a usable request descriptor."""

    pass


class DriverNotFoundError(ConfigurationError):
    """An action named a driver that is not configured."""

    def __init__(self, driver_name: str, available: Optional[list] = None):
        super().__init__(f"Driver '{driver_name}' is not configured. Available drivers: {available or []}")
        self.driver_name = driver_name


class DriverError(ReqcacheException):
    """Raw failure of a driver call."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message, correlation_id)
        self.status_code = status_code
        self.response_body = response_body


class HttpStatusError(DriverError):
    """The remote endpoint answered with an error status."""

    pass


class AuthenticationError(HttpStatusError):
    """Authentication or authorization failed."""

    pass


class NotFoundError(HttpStatusError):
    """Remote resource not found."""

    pass


class RateLimitError(HttpStatusError):
    """Remote rate limit exceeded."""

    pass


class ServerError(HttpStatusError):
    """Remote server error."""

    pass


class TransportError(DriverError):
    """The call never produced a response."""

    pass


class TransformError(ReqcacheException):
    """A success-path interceptor or transform raised."""

    def __init__(self, message: str, stage: str, correlation_id: Optional[str] = None):
        super().__init__(message, correlation_id)
        self.stage = stage


class RequestResultError(ReqcacheException):
    """Terminal outcome of a request that did not succeed.

    Carries the dispatched (or, for silent actions, merely built) lifecycle action.
    """

    is_aborted = False

    def __init__(self, message: str, action: Any, error: Any = None, correlation_id: Optional[str] = None):
        super().__init__(message, correlation_id)
        self.action = action
        self.error = error


class RequestFailedError(RequestResultError):
    """The request ended with an error action."""

    pass


class RequestAbortedError(RequestResultError):
    """The request ended with an abort action."""

    is_aborted = True
