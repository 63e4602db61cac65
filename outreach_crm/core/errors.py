"""
Error taxonomy shared by the core and the HTTP layer.
"""

from typing import Optional


class CRMError(Exception):
    """Base class for errors surfaced to callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"message": self.message}


class ValidationError(CRMError):
    """Malformed or missing input; carries the offending field when known."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        data = {"message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class IllegalTransitionError(ValidationError):
    """Stage change rejected by the transition table."""

    def __init__(self, from_stage: str, to_stage: str):
        super().__init__(f"Illegal stage transition: {from_stage} -> {to_stage}", field="stage")
        self.from_stage = from_stage
        self.to_stage = to_stage


class NotFoundError(CRMError):
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class UnauthorizedError(CRMError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InternalError(CRMError):
    """Storage or unexpected failure. Never retried."""

    status_code = 500
