class SpendWiseError(Exception):
    """Base class for bot errors"""


class ConfigError(SpendWiseError, ValueError):
    """Missing or invalid configuration"""


class BackendError(SpendWiseError):
    """The SpendWise API call failed or returned an error status"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class NoValidExpensesError(SpendWiseError):
    """Raised when no line of a batch could be parsed"""

    def __init__(self, failures=()):
        super().__init__("no valid expenses found")
        self.failures = list(failures)
