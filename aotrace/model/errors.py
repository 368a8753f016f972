class AoTraceError(Exception):
    pass

class ConfigError(AoTraceError):
    pass

class MissingSigner(AoTraceError):
    pass

class Timeout(AoTraceError):
    """The primary endpoint did not answer before the deadline."""
    endpoint:str|None = None
    timeout_seconds:float|None = None

    def __init__(self, message:str, endpoint:str|None=None, timeout_seconds:float|None=None):
        super().__init__(message)
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds

class EndpointUnavailable(AoTraceError):
    """Transport or protocol error from a single endpoint."""
    endpoint:str|None = None

    def __init__(self, message:str, endpoint:str|None=None):
        super().__init__(message)
        self.endpoint = endpoint

class AllEndpointsFailed(AoTraceError):
    """Both the primary and the fallback attempt failed. Keeps both errors for diagnostics."""
    primary_error:BaseException
    fallback_error:BaseException

    def __init__(self, message:str, primary_error:BaseException, fallback_error:BaseException):
        super().__init__(message)
        self.primary_error = primary_error
        self.fallback_error = fallback_error

class NotFound(AoTraceError):
    pass

class MalformedIdentifier(AoTraceError, ValueError):
    pass

class IndexQueryError(AoTraceError):
    pass

class TraversalLimitExceeded(AoTraceError):
    limit:str
    value:int

    def __init__(self, message:str, limit:str, value:int):
        super().__init__(message)
        self.limit = limit
        self.value = value
