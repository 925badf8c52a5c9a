"""
Service layer exceptions for Code Red tracking.

Exception Hierarchy:
    CodeRedError (base)
    ├── ValidationError   - malformed or missing input, caller-fixable
    ├── NotFoundError     - referenced record does not exist
    └── RangeError        - numeric input outside its legal domain

Routers translate these into HTTP responses (400 / 404 / 400).
"""


class CodeRedError(Exception):
    """Base exception for all service layer errors."""

    pass


class ValidationError(CodeRedError):
    """Raised when input validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class NotFoundError(CodeRedError):
    """Raised when a record cannot be found by ID."""

    def __init__(self, entity: str, record_id):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} with ID {record_id} not found")


class RangeError(CodeRedError):
    """Raised when a numeric value falls outside its allowed range."""

    def __init__(self, field: str, value, low: int, high: int):
        self.field = field
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{field} must be between {low} and {high}, got {value}")
