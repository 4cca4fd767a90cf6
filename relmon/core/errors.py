"""Exit codes for the relmon CLI.

Values are process exit codes and should remain stable:
- 0: Success
- 1: User error (bad configuration, invalid arguments)
- 2: Environment error (no browser available, unusable terminal)
- 4: Network error (every configured project failed to fetch)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
