"""
Lookup Repositories
Reference tables resolved by id from a member's associative fields.
"""

from members_api.repositories.base import LookupRepository


class ClassRepository(LookupRepository):
    label = "class"


class RaceRepository(LookupRepository):
    label = "race"


class AuraRepository(LookupRepository):
    label = "aura"


class GroupRepository(LookupRepository):
    label = "group"
