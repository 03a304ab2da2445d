"""
Record model definition for items held in the record store.

A record is a loosely structured row: a bag of named, typed properties plus
the metadata the store maintains (author type, creation and edit times).
Properties are read through typed accessors so that a missing required field
fails loudly while a missing optional field comes back as ``None``.
"""
import math
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.services.exceptions import MissingPropertyError, PropertyTypeError

Scalar = Union[bool, int, float, str]


class PropertyType(str, Enum):
    """
    Categories of record properties.
    """
    TITLE = "title"
    TEXT = "text"
    DATE = "date"
    SELECT = "select"
    NUMBER = "number"
    CHECKBOX = "checkbox"


class CreatorType(str, Enum):
    """
    Author of a record: a human or an automated agent.
    """
    PERSON = "person"
    BOT = "bot"


class PropertyValue(BaseModel):
    """
    A single typed property value. ``value`` is ``None`` when the property
    exists but is cleared (e.g. an empty date).
    """
    model_config = ConfigDict(frozen=True)

    type: PropertyType
    value: Optional[Scalar] = None

    @classmethod
    def title(cls, text: str) -> "PropertyValue":
        return cls(type=PropertyType.TITLE, value=text)

    @classmethod
    def text(cls, text: Optional[str]) -> "PropertyValue":
        return cls(type=PropertyType.TEXT, value=text)

    @classmethod
    def date(cls, day: Optional[Union[date, datetime]]) -> "PropertyValue":
        """Dates are stored as ISO strings; datetimes keep their time and offset."""
        return cls(type=PropertyType.DATE, value=day.isoformat() if day else None)

    @classmethod
    def select(cls, name: Optional[str]) -> "PropertyValue":
        return cls(type=PropertyType.SELECT, value=name or None)

    @classmethod
    def number(cls, number: Optional[Union[int, float]]) -> "PropertyValue":
        """Unset or NaN numbers are written as 0."""
        if number is None or (isinstance(number, float) and math.isnan(number)):
            number = 0
        return cls(type=PropertyType.NUMBER, value=number)

    @classmethod
    def checkbox(cls, checked: bool) -> "PropertyValue":
        return cls(type=PropertyType.CHECKBOX, value=bool(checked))


class Record(BaseModel):
    """
    Represents one stored record with its typed properties.
    """
    id: str
    properties: Dict[str, PropertyValue] = Field(default_factory=dict)
    created_by_type: CreatorType = CreatorType.PERSON
    created_time: datetime
    last_edited_time: datetime

    @property
    def created_by_automation(self) -> bool:
        return self.created_by_type == CreatorType.BOT

    def _get(self, name: str, expected: PropertyType, required: bool) -> Optional[Scalar]:
        prop = self.properties.get(name)
        if prop is None or prop.value is None:
            if required:
                raise MissingPropertyError(self.id, name)
            return None
        if prop.type != expected:
            raise PropertyTypeError(
                f"Property '{name}' of record {self.id} is {prop.type.value}, "
                f"not {expected.value}"
            )
        return prop.value

    def get_title(self, name: str, required: bool = False) -> Optional[str]:
        value = self._get(name, PropertyType.TITLE, required)
        return None if value is None else str(value)

    def get_text(self, name: str, required: bool = False) -> Optional[str]:
        value = self._get(name, PropertyType.TEXT, required)
        return None if value is None else str(value)

    def get_date(self, name: str, required: bool = False) -> Optional[str]:
        """Return the raw ISO string of a date property."""
        value = self._get(name, PropertyType.DATE, required)
        return None if value is None else str(value)

    def get_select(self, name: str, required: bool = False) -> Optional[str]:
        value = self._get(name, PropertyType.SELECT, required)
        return None if value is None else str(value)

    def get_number(self, name: str, required: bool = False) -> Optional[Union[int, float]]:
        value = self._get(name, PropertyType.NUMBER, required)
        if value is None or isinstance(value, bool):
            return None
        return value

    def get_checkbox(self, name: str, required: bool = False) -> Optional[bool]:
        value = self._get(name, PropertyType.CHECKBOX, required)
        return None if value is None else bool(value)
