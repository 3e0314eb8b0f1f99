"""Exception types raised by the BookGenie QA harness."""


class HarnessError(Exception):
    """Base class for harness errors."""


class UIActionError(HarnessError):
    """An interactive UI action did not reach its expected state."""

    def __init__(self, action: str, target: str, attempts: int):
        self.action = action
        self.target = target
        self.attempts = attempts
        super().__init__(f"Failed to {action} after {attempts} attempts: \"{target}\"")


class MalformedVerdictError(HarnessError):
    """The AI judge reply did not contain a usable structured block."""


class ReferenceUnavailableError(HarnessError, FileNotFoundError):
    """A reference spreadsheet or database file is missing."""

    def __init__(self, kind: str, path):
        self.kind = kind
        self.path = path
        super().__init__(f"{kind} file not found at: {path}")


class ReferenceMismatchError(HarnessError):
    """Extracted books do not match the reference spreadsheet.

    ``failures`` holds one (index, title, failed field names) tuple per
    failing book.
    """

    def __init__(self, failures: list[tuple[int, str, list[str]]]):
        self.failures = failures
        details = "; ".join(
            f"#{index + 1} \"{title}\" ({', '.join(fields) or 'missing'})"
            for index, title, fields in failures
        )
        super().__init__(f"Book validation failed for: {details}")
