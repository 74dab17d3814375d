"""Custom exception hierarchy for the renovate-config test harness.

Exception Hierarchy:
    RenovateConfigError (base)
    ├── ConfigurationError
    ├── CredentialError
    ├── GitOperationError
    └── SnapshotMismatchError (also an AssertionError)

Branch-name parse mismatches are never exceptions: the parsers return None.
Failures of external tools (git, npx, docker, the GitHub API) are not wrapped
either; ``subprocess.CalledProcessError`` and ``github.GithubException``
propagate to the caller unchanged.

Example Usage:
    >>> from renovate_config.exceptions import ConfigurationError
    >>> try:
    ...     settings = HarnessSettings.from_yaml(path)
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class RenovateConfigError(Exception):
    """Base exception for all renovate-config errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(RenovateConfigError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Ruleset file missing from the repository root
    """

    pass


class CredentialError(RenovateConfigError):
    """Raised when no GitHub token can be found.

    Raised before any network call is attempted.

    Attributes:
        message: Human-readable error description
        suggestion: Optional hint for resolving the problem
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            suggestion: Optional suggestion for resolution
        """
        self.suggestion = suggestion

        full_message = message
        if suggestion:
            full_message = f"{message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        self.message = message


class GitOperationError(RenovateConfigError):
    """Local git repository state is not what the harness expects.

    Examples:
        - No enclosing git repository to locate the ruleset file from
    """

    pass


class SnapshotMismatchError(RenovateConfigError, AssertionError):
    """Rendered pull requests or commits differ from the expected snapshot.

    Subclasses AssertionError so pytest reports it as a test failure rather
    than an error.

    Attributes:
        message: Short description
        diff: Unified diff between expected and actual text
    """

    def __init__(self, message: str, diff: str) -> None:
        self.diff = diff
        super().__init__(f"{message}\n{diff}")
        self.message = message
