"""
Example - one synthesized verification assertion.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class Polarity(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class Example(BaseModel):
    """
    A positive or negative assertion derived from one behavior.

    category/variant select the template slot; fields carry the values
    the slot may reference.
    """
    model_config = ConfigDict(frozen=True)

    entity: str
    category: str           # presence, length, relation, column, route, ...
    variant: Optional[str] = None   # maximum/minimum, cardinality, ...
    polarity: Polarity = Polarity.POSITIVE
    description: str
    fields: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_negative(self) -> bool:
        return self.polarity == Polarity.NEGATIVE
