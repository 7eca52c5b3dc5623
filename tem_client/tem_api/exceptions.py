# tem_client/tem_api/exceptions.py
#
#
#######################################################################################################################
#
# Functions:

class TEMAPIError(Exception):
    """Base exception for tem_api errors."""
    pass

class UnavailableError(TEMAPIError):
    """Raised when no host bridge is configured. Never retried."""
    def __init__(self, message: str = "Remote bridge is not available"):
        super().__init__(message)

class APIConnectionError(TEMAPIError):
    """Raised for network or connection issues."""
    pass

class RemoteTimeoutError(TEMAPIError):
    """Raised when a single remote call exceeds its deadline."""
    def __init__(self, operation: str, timeout: float):
        super().__init__(f"Request timeout: '{operation}' did not answer within {timeout:g}s")
        self.operation = operation
        self.timeout = timeout

class APIResponseError(TEMAPIError):
    """Raised for non-2xx responses or issues parsing the response."""
    def __init__(self, status_code: int, message: str, response_data: dict = None):
        super().__init__(f"API Error {status_code}: {message}")
        self.status_code = status_code
        self.response_data = response_data or {}

class RemoteScriptError(TEMAPIError):
    """Raised when the backend script itself threw while handling the call."""
    def __init__(self, operation: str, message: str, error_type: str = None):
        super().__init__(f"Script error in '{operation}': {message}")
        self.operation = operation
        self.error_type = error_type

class RemoteRejectedError(TEMAPIError):
    """Raised when the call succeeded transport-wise but the payload says ok=false."""
    def __init__(self, operation: str, message: str = None, response_data: dict = None):
        super().__init__(message or f"'{operation}' was rejected by the server")
        self.operation = operation
        self.response_data = response_data or {}

#
# End of tem_client/tem_api/exceptions.py
########################################################################################################################
