"""
Member Schemas
Pydantic models for sanitized member create/update requests.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]

# Reference fields that are stored as explicit nulls rather than omitted.
NULLABLE_FIELDS = ("colour_hex", "caster_colour", "tower_id")

# Attributes returned by the roster listing.
LISTING_PROJECTION = ("id", "name", "born", "died", "image", "groups")


class MemberCreate(BaseModel):
    """Sanitized create request with defaults applied."""
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    pseudonym: str = ""
    title: str = ""
    descript: str = ""
    owner: str = ""
    born: Optional[Number] = None
    died: Optional[Number] = None
    ethnicity: str = ""
    eyes: str = ""
    hair: str = ""
    height: str = ""
    weight: Number = 0
    hp: Number = 1
    level: Number = 1
    colour_hex: Optional[Any] = None
    caster_colour: Optional[Any] = None
    classes: List[Any] = Field(default_factory=list)
    races: List[Any] = Field(default_factory=list)
    religion: str = ""
    groups: List[Any] = Field(default_factory=list)
    tower_id: Optional[Any] = None
    image: str = ""

    def to_item(self, member_id: str) -> Dict[str, Any]:
        """Build the stored record. Unset optional scalars are omitted."""
        item: Dict[str, Any] = {"id": member_id}
        for key, value in self.model_dump().items():
            if value is None and key not in NULLABLE_FIELDS:
                continue
            item[key] = value
        return item


class MemberUpdate(BaseModel):
    """
    Sanitized partial update.

    Only fields that were present in the request are marked as set;
    ``changes()`` never reports an absent field.
    """
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    pseudonym: Optional[str] = None
    title: Optional[str] = None
    descript: Optional[str] = None
    owner: Optional[str] = None
    born: Optional[Number] = None
    died: Optional[Number] = None
    ethnicity: Optional[str] = None
    eyes: Optional[str] = None
    hair: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[Number] = None
    hp: Optional[Number] = None
    level: Optional[Number] = None
    colour_hex: Optional[Any] = None
    caster_colour: Optional[Any] = None
    classes: Optional[List[Any]] = None
    races: Optional[List[Any]] = None
    religion: Optional[str] = None
    groups: Optional[List[Any]] = None
    tower_id: Optional[Any] = None
    image: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)
