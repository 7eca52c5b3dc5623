# tem_client/Sync/exceptions.py
#
# Imports
from typing import List, Optional
#
#######################################################################################################################
#
# Functions:


class TEMClientError(Exception):
    """Base exception for client-side sync and mutation errors."""
    pass

class SyncCancelledError(TEMClientError):
    """Raised at the next check point after the user cancelled. Never retried, never reported as a failure."""
    def __init__(self, message: str = "Sync cancelled by user"):
        super().__init__(message)

class SyncSupersededError(TEMClientError):
    """Raised inside a run that a newer start()/retry() has replaced."""
    pass

class SyncProtocolError(TEMClientError):
    """The backend answered with a payload that breaks the snapshot protocol."""
    pass

class RecordValidationError(TEMClientError):
    """Local input failed the configured constraints. Never sent, never retried."""
    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems

class RecordNotFoundError(TEMClientError, KeyError):
    def __init__(self, key: str):
        super().__init__(f"No local record with key '{key}'")
        self.key = key

    def __str__(self):
        return self.args[0]

class MutationRevertedError(TEMClientError):
    """A remote mutation failed; carries whether local state was rolled back."""
    def __init__(self, operation: str, key: str, title: str, description: str,
                 reverted: bool = True, cause: Optional[BaseException] = None):
        suffix = " (changes reverted)" if reverted else ""
        super().__init__(f"{title}: {description}{suffix}")
        self.operation = operation
        self.key = key
        self.title = title
        self.description = description
        self.reverted = reverted
        self.cause = cause

#
# End of tem_client/Sync/exceptions.py
########################################################################################################################
