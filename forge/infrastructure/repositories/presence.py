from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.domain.ports.records import PresentPerson, SignInRecord
from forge.infrastructure.db.models import Person, SignIn


def sign_in_to_record(row: SignIn) -> SignInRecord:
    return SignInRecord(
        id=row.id,
        session_id=row.session_id,
        person_id=row.person_id,
        signed_in_at=row.signed_in_at,
        signed_in_by_id=row.signed_in_by_id,
        signed_out_at=row.signed_out_at,
        signed_out_by_id=row.signed_out_by_id,
        signout_type=row.signout_type,
    )


class SqlAlchemyPresenceRepository:
    """Read access to the ``sign_ins`` projection."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_sign_in(self, sign_in_id: str) -> SignInRecord | None:
        async with self._session_factory() as session:
            row = await session.get(SignIn, sign_in_id)
            return sign_in_to_record(row) if row else None

    async def get_active_sign_in(self, session_id: str, person_id: str) -> SignInRecord | None:
        async with self._session_factory() as session:
            row = await session.scalar(
                select(SignIn)
                .where(
                    SignIn.session_id == session_id,
                    SignIn.person_id == person_id,
                    SignIn.signed_out_at.is_(None),
                )
                .order_by(SignIn.signed_in_at.desc())
                .limit(1)
            )
            return sign_in_to_record(row) if row else None

    async def list_present_people(self, session_id: str) -> list[PresentPerson]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(SignIn, Person)
                    .join(Person, Person.id == SignIn.person_id)
                    .where(SignIn.session_id == session_id, SignIn.signed_out_at.is_(None))
                    .order_by(SignIn.signed_in_at)
                )
            ).all()
            return [
                PresentPerson(
                    sign_in=sign_in_to_record(sign_in),
                    person_id=person.id,
                    display_name=person.display_name,
                    legal_name=person.legal_name,
                    ask_me_about=tuple(person.ask_me_about or ()),
                )
                for sign_in, person in rows
            ]

    async def list_sign_ins_for_session(self, session_id: str) -> list[SignInRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(SignIn)
                    .where(SignIn.session_id == session_id)
                    .order_by(SignIn.signed_in_at, SignIn.id)
                )
            ).scalars()
            return [sign_in_to_record(row) for row in rows]
