from dataclasses import dataclass
from typing import List
from .errors import ValidationError


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[ValidationError]

    @classmethod
    def success(cls):
        return cls(is_valid=True, errors=[])

    @classmethod
    def failure(cls, errors: List[ValidationError]):
        return cls(is_valid=False, errors=errors)

    @classmethod
    def single(cls, level: str, message: str, object_id: str = ""):
        return cls.failure(
            [ValidationError(level=level, message=message, object_id=object_id)]
        )
