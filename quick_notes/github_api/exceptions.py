# quick_notes/github_api/exceptions.py
#
#
#######################################################################################################################
#
# Functions:

class QuickNotesSyncError(Exception):
    """Base exception for remote sync errors."""
    pass

class ConfigurationError(QuickNotesSyncError):
    """Raised for malformed sync settings, e.g. a repo URL that isn't owner/repo shaped."""
    pass

class AuthError(QuickNotesSyncError):
    """Raised when credentials are missing, invalid, expired or denied."""
    pass

class ConflictError(QuickNotesSyncError):
    """Raised when a conditional write carries a stale version token."""
    def __init__(self, message: str, expected_token: str = None):
        super().__init__(message)
        self.expected_token = expected_token

class TransportError(QuickNotesSyncError):
    """Raised for network failures, timeouts, and non-2xx responses other than conflict/not-found."""
    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        if status_code is not None:
            message = f"API Error {status_code}: {message}"
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}

class MergeAmbiguityError(QuickNotesSyncError):
    """Reserved for stricter merge policies. The last-writer-wins merge never raises it."""
    pass

#
# End of quick_notes/github_api/exceptions.py
########################################################################################################################
