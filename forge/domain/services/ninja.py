"""Ninja domains and the students recognised as helpers in them.

Assignments are plain state (no events): one row per (person, domain), revoked
and reactivated in place.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import NinjaAssignmentEntity, NinjaDomainEntity
from forge.domain.ports.records import (
    NinjaAssignmentRecord,
    NinjaDomainRecord,
    PersonRecord,
    PresentPerson,
)
from forge.domain.services.base import UseCaseService, use_case

logger = structlog.get_logger()

_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class NinjaWithPerson:
    assignment: NinjaAssignmentRecord
    person: PersonRecord


@dataclass(frozen=True, slots=True)
class DomainWithNinjas:
    domain: NinjaDomainRecord
    ninjas: list[NinjaWithPerson] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class NinjaPresence:
    """A signed-in person together with the domains they can help with."""

    person: PresentPerson
    domains: list[NinjaDomainRecord]


class NinjaService(UseCaseService):
    @use_case("list_domains")
    async def list_domains(
        self, *, classroom_id: str, include_inactive: bool = False
    ) -> Result[list[NinjaDomainRecord]]:
        return ok(await self.env.ninja.list_domains(classroom_id, include_inactive=include_inactive))

    @use_case("create_domain")
    async def create_domain(
        self, *, classroom_id: str, name: str, description: str | None = None
    ) -> Result[NinjaDomainRecord]:
        domains = await self.env.ninja.list_domains(classroom_id, include_inactive=True)
        entity = NinjaDomainEntity.create(
            id=self.env.id_generator.generate(),
            classroom_id=classroom_id,
            name=name,
            description=description,
            display_order=max((domain.display_order for domain in domains), default=0) + 1,
        )
        if _find_by_name(domains, entity.name) is not None:
            return err(
                ErrorType.DUPLICATE_NAME, f"Domain '{entity.name}' already exists", name=entity.name
            )

        domain = await self.env.ninja.create_domain(
            classroom_id=classroom_id,
            name=entity.name,
            description=entity.description,
            display_order=entity.display_order,
        )
        await logger.ainfo("ninja_domain_created", domain_id=domain.id, classroom_id=classroom_id)
        return ok(domain)

    @use_case("update_domain")
    async def update_domain(
        self, *, domain_id: str, name: str | None = None, description: str | None = _UNSET
    ) -> Result[NinjaDomainRecord]:
        domain = await self.env.ninja.get_domain_by_id(domain_id)
        if domain is None:
            return err(ErrorType.DOMAIN_NOT_FOUND, "Domain not found", domain_id=domain_id)

        entity = NinjaDomainEntity.from_record(domain)
        updated = entity.rename(
            name if name is not None else entity.name,
            entity.description if description is _UNSET else description,
        )
        if updated.name.casefold() != entity.name.casefold():
            siblings = await self.env.ninja.list_domains(domain.classroom_id, include_inactive=True)
            existing = _find_by_name(siblings, updated.name)
            if existing is not None and existing.id != domain_id:
                return err(
                    ErrorType.DUPLICATE_NAME,
                    f"Domain '{updated.name}' already exists",
                    name=updated.name,
                )

        return ok(
            await self.env.ninja.update_domain(
                domain_id, name=updated.name, description=updated.description
            )
        )

    @use_case("archive_domain")
    async def archive_domain(self, *, domain_id: str) -> Result[int]:
        """Archive a domain and revoke its active assignments; returns how many were revoked."""
        domain = await self.env.ninja.get_domain_by_id(domain_id)
        if domain is None:
            return err(ErrorType.DOMAIN_NOT_FOUND, "Domain not found", domain_id=domain_id)

        archived = NinjaDomainEntity.from_record(domain).archive()
        await self.env.ninja.update_domain(domain_id, is_active=archived.is_active)

        now = self._now()
        revoked = 0
        for assignment in await self.env.ninja.list_assignments_for_domain(domain_id):
            entity = NinjaAssignmentEntity.from_record(assignment).revoke(now)
            await self.env.ninja.update_assignment(
                assignment.id, is_active=entity.is_active, revoked_at=entity.revoked_at
            )
            revoked += 1

        await logger.ainfo("ninja_domain_archived", domain_id=domain_id, revoked=revoked)
        return ok(revoked)

    @use_case("assign_ninja")
    async def assign_ninja(
        self, *, person_id: str, domain_id: str, actor_id: str
    ) -> Result[NinjaAssignmentRecord]:
        domain = await self.env.ninja.get_domain_by_id(domain_id)
        if domain is None or not domain.is_active:
            return err(ErrorType.DOMAIN_NOT_FOUND, "Domain not found", domain_id=domain_id)

        membership = await self.env.classrooms.get_membership(domain.classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(ErrorType.NOT_A_MEMBER, "Person is not a member of this classroom")

        now = self._now()
        existing = await self.env.ninja.get_assignment(person_id, domain_id)
        if existing is not None:
            if existing.is_active:
                return err(ErrorType.ALREADY_ASSIGNED, "Already a ninja for this domain")
            entity = NinjaAssignmentEntity.from_record(existing).reactivate(actor_id, now)
            record = await self.env.ninja.update_assignment(
                existing.id,
                is_active=entity.is_active,
                revoked_at=entity.revoked_at,
                assigned_by_id=entity.assigned_by_id,
                assigned_at=entity.assigned_at,
            )
        else:
            entity = NinjaAssignmentEntity.create(
                id=self.env.id_generator.generate(),
                person_id=person_id,
                ninja_domain_id=domain_id,
                assigned_by_id=actor_id,
                assigned_at=now,
            )
            record = await self.env.ninja.create_assignment(
                person_id=entity.person_id,
                ninja_domain_id=entity.ninja_domain_id,
                assigned_by_id=entity.assigned_by_id,
                assigned_at=entity.assigned_at,
            )

        await logger.ainfo(
            "ninja_assigned", person_id=person_id, domain_id=domain_id, reactivated=existing is not None
        )
        return ok(record)

    @use_case("revoke_ninja")
    async def revoke_ninja(
        self, *, person_id: str, domain_id: str
    ) -> Result[NinjaAssignmentRecord]:
        assignment = await self.env.ninja.get_assignment(person_id, domain_id)
        if assignment is None or not assignment.is_active:
            return err(ErrorType.NOT_ASSIGNED, "Not a ninja for this domain")

        entity = NinjaAssignmentEntity.from_record(assignment).revoke(self._now())
        record = await self.env.ninja.update_assignment(
            assignment.id, is_active=entity.is_active, revoked_at=entity.revoked_at
        )
        await logger.ainfo("ninja_revoked", person_id=person_id, domain_id=domain_id)
        return ok(record)

    @use_case("get_domains_with_ninjas")
    async def get_domains_with_ninjas(
        self, *, classroom_id: str
    ) -> Result[list[DomainWithNinjas]]:
        domains = await self.env.ninja.list_domains(classroom_id)
        assignments = await self.env.ninja.list_assignments_by_classroom(classroom_id)
        people = {
            member.person.id: member.person
            for member in await self.env.classrooms.list_members(classroom_id, active_only=False)
        }

        by_domain: dict[str, list[NinjaWithPerson]] = defaultdict(list)
        for assignment in assignments:
            person = people.get(assignment.person_id)
            if person is not None:
                by_domain[assignment.ninja_domain_id].append(
                    NinjaWithPerson(assignment=assignment, person=person)
                )

        return ok(
            [DomainWithNinjas(domain=domain, ninjas=by_domain[domain.id]) for domain in domains]
        )

    @use_case("get_ninja_presence")
    async def get_ninja_presence(self, *, session_id: str) -> Result[list[NinjaPresence]]:
        """Signed-in people of the session that hold at least one active assignment."""
        present = await self.env.presence.list_present_people(session_id)
        if not present:
            return ok([])

        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return ok([])

        domains = {
            domain.id: domain for domain in await self.env.ninja.list_domains(session.classroom_id)
        }
        domains_by_person: dict[str, list[NinjaDomainRecord]] = defaultdict(list)
        for assignment in await self.env.ninja.list_assignments_by_classroom(session.classroom_id):
            domain = domains.get(assignment.ninja_domain_id)
            if domain is not None:
                domains_by_person[assignment.person_id].append(domain)

        return ok(
            [
                NinjaPresence(person=person, domains=domains_by_person[person.person_id])
                for person in present
                if domains_by_person.get(person.person_id)
            ]
        )


def _find_by_name(domains: list[NinjaDomainRecord], name: str) -> NinjaDomainRecord | None:
    wanted = name.strip().casefold()
    return next((domain for domain in domains if domain.name.casefold() == wanted), None)
