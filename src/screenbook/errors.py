from __future__ import annotations


class ScreenbookError(RuntimeError):
    pass


class ConfigError(ScreenbookError):
    pass


class RouteParseError(ScreenbookError):
    """Fatal extraction failure for one routes file.

    Raised when the file cannot be read or the source violates the base
    grammar. Unsupported-but-valid constructs never raise; they become
    warnings on the ParseResult instead.
    """

    def __init__(self, file_path: str, reason: str, line: int | None = None) -> None:
        self.file_path = file_path
        self.reason = reason
        self.line = line
        super().__init__(f'Failed to parse routes file "{file_path}": {reason}')
