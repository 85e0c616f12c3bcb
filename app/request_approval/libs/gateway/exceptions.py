class GatewayError(Exception):
    """Base exception for data source and decision sink operations."""

    def __init__(self, message: str = "Gateway operation failed") -> None:
        super().__init__(message)
        self.message = message


class GatewayTimeoutError(GatewayError):
    """Raised when the remote side does not answer in time."""

    def __init__(self, message: str = "Gateway request timed out") -> None:
        super().__init__(message)


class GatewayConflictError(GatewayError):
    """Raised when the decision sink reports the request was already decided."""

    def __init__(self, message: str = "Product request was already decided") -> None:
        super().__init__(message)


class GatewayConfigurationError(GatewayError):
    """Raised when gateway configuration is invalid."""

    def __init__(self, message: str = "Invalid gateway configuration") -> None:
        super().__init__(message)
