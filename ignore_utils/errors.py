"""Exceptions raised while configuring an ignore matcher."""


class FastIgnoreError(ValueError):
    """Raised at construction time when a pattern source or setting is unusable."""


class GitconfigParseError(FastIgnoreError):
    """Raised when a git config file cannot be parsed."""

    def __init__(self, message: str, path: str, line: int):
        super().__init__(f"{message} ({path}:{line})")
        self.path = path
        self.line = line
