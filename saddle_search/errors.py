from dataclasses import dataclass
from typing import Any


@dataclass
class NumericalInstabilityError(Exception):
    """Raised when a NaN appears in the search state.

    `log` is the iteration log gathered up to the failure, left untouched.
    """

    msg: str
    log: Any = None

    def __str__(self):
        return self.msg


@dataclass
class ConfigurationError(Exception):
    msg: str
    obj: Any = None

    def __str__(self):
        return self.msg
