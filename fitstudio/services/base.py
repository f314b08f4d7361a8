from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.core.exceptions import NotFoundError, ValidationError

T = TypeVar("T")


class BaseService:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_or_404(self, model: type[T], id: int, error_msg: str | None = None) -> T:
        result = await self._session.get(model, id)
        if not result:
            entity_name = model.__name__
            raise NotFoundError(
                entity_name,
                error_msg or f"{entity_name} {id} not found",
                {"id": id},
            )
        return result

    @staticmethod
    def _require_known(field: str, requested: list[int], known: dict[int, object]) -> None:
        missing = [item for item in requested if item not in known]
        if missing:
            raise ValidationError(field, f"unknown or inactive ids {missing}", {"field": field, "missing": missing})
