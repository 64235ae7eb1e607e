import logging
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CustomBaseModel(BaseModel):
    """Custom base model for response schemas.
    - pre-process the data before init
    - coerce simple types, fall back to the field default if the value is invalid
    - build from ORM objects or store records (from_record)
    """

    def __init__(self, **data: Any) -> None:
        fields = self.__class__.model_fields
        for attr, value in data.items():
            field = fields.get(attr)
            if field is None or value is None:
                continue
            attr_type = field.annotation
            if attr_type not in (int, float, str, bool):
                continue
            try:  # try to convert the value to the type of the attribute
                data[attr] = attr_type(value)
            except (TypeError, ValueError):
                logger.warning("Invalid value for key %s, using default", attr)
                data[attr] = field.default if not field.is_required() else attr_type()
        super().__init__(**data)

    @classmethod
    def from_record(cls, record: Any, **overrides: Any):
        """Build the schema from a dict or an object with matching attributes."""
        if isinstance(record, dict):
            data = dict(record)
        else:
            data = {
                name: getattr(record, name)
                for name in cls.model_fields
                if hasattr(record, name)
            }
        data.update(overrides)
        return cls(**data)


class Message(CustomBaseModel):
    message: str = ""
    status_code: int = 200


class ErrorResponse(BaseModel):
    error: str
