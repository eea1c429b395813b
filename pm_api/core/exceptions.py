"""Service-level exceptions.

These are raised by the maintenance core and translated to HTTP responses by
the handlers registered in ``pm_api.main``.
"""
from typing import Iterable, List, Union


class ValidationError(Exception):
    """A request failed validation.

    Carries every problem found, not just the first, so a caller can fix the
    whole request in one pass.
    """

    def __init__(self, message: str, errors: Union[str, Iterable[str], None] = None):
        super().__init__(message)
        self.message = message
        if errors is None:
            self.errors: List[str] = []
        elif isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = list(errors)

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        return f"{self.message} {' '.join(self.errors)}"
