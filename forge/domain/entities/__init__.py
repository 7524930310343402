from .classroom import ClassroomEntity
from .help_request import HelpRequestEntity
from .membership import MembershipEntity
from .ninja import NinjaAssignmentEntity, NinjaDomainEntity
from .person import PersonEntity
from .session import SessionEntity
from .sign_in import SignInEntity

__all__ = [
    "ClassroomEntity",
    "HelpRequestEntity",
    "MembershipEntity",
    "NinjaAssignmentEntity",
    "NinjaDomainEntity",
    "PersonEntity",
    "SessionEntity",
    "SignInEntity",
]
