from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitstudio.assignment.types import ClientRecord, PackageInfo
from fitstudio.models import Client, Package
from fitstudio.repositories.base import Repository


def package_to_info(package: Package | None) -> PackageInfo | None:
    if package is None:
        return None
    return PackageInfo(
        id=str(package.id),
        name=package.name or "",
        diet_plan_access=bool(package.diet_plan_access),
        live_group_training_access=bool(package.live_group_training_access),
        live_sessions_per_month=package.live_sessions_per_month or 0,
        price=package.price or 0.0,
    )


def client_to_record(client: Client) -> ClientRecord:
    return ClientRecord(
        id=str(client.id),
        name=client.name,
        package=package_to_info(client.package),
        email=client.email,
        phone=client.phone,
        allergies=tuple(client.allergies or ()),
        subscription_start=client.subscription_start,
        subscription_end=client.subscription_end,
        is_active=bool(client.is_active),
    )


class ClientRepository(Repository[Client, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Client | None:
        result = await self._session.execute(
            select(Client).options(selectinload(Client.package)).where(Client.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, entity: Client) -> Client:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def list_active(self) -> list[Client]:
        result = await self._session.execute(
            select(Client)
            .options(selectinload(Client.package))
            .where(Client.is_active.is_(True))
            .order_by(Client.id)
        )
        return list(result.scalars().all())

    async def get_many(self, ids: Iterable[int], active_only: bool = False) -> dict[int, Client]:
        ids = list(set(ids))
        if not ids:
            return {}
        query = select(Client).options(selectinload(Client.package)).where(Client.id.in_(ids))
        if active_only:
            query = query.where(Client.is_active.is_(True))
        result = await self._session.execute(query)
        return {client.id: client for client in result.scalars().all()}


class PackageRepository(Repository[Package, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Package | None:
        return await self._session.get(Package, id)

    async def create(self, entity: Package) -> Package:
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def list_all(self) -> list[Package]:
        result = await self._session.execute(select(Package).order_by(Package.id))
        return list(result.scalars().all())
