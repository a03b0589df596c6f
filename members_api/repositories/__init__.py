# Repositories package - DynamoDB data access
from members_api.repositories.members import MemberRepository
from members_api.repositories.lookups import (
    AuraRepository,
    ClassRepository,
    GroupRepository,
    RaceRepository,
)

__all__ = [
    "MemberRepository",
    "ClassRepository",
    "RaceRepository",
    "AuraRepository",
    "GroupRepository",
]
