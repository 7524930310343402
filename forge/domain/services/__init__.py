from .authorization import AuthorizationService
from .base import UseCaseService, use_case
from .classroom import ClassroomService
from .help import HelpService, PublicQueueItem, QueueItem, RequestHelpResult
from .maintenance import MaintenanceService
from .ninja import DomainWithNinjas, NinjaPresence, NinjaService, NinjaWithPerson
from .pins import GenerateAllPinsResult, PinLoginResult, PinService
from .presence import PresenceService
from .roster import ImportResult, ImportRowError, RosterService, StudentImportRow
from .sessions import PublicSession, SessionService

__all__ = [
    "AuthorizationService",
    "ClassroomService",
    "DomainWithNinjas",
    "GenerateAllPinsResult",
    "HelpService",
    "ImportResult",
    "ImportRowError",
    "MaintenanceService",
    "NinjaPresence",
    "NinjaService",
    "NinjaWithPerson",
    "PinLoginResult",
    "PinService",
    "PresenceService",
    "PublicQueueItem",
    "PublicSession",
    "QueueItem",
    "RequestHelpResult",
    "RosterService",
    "SessionService",
    "StudentImportRow",
    "UseCaseService",
    "use_case",
]
