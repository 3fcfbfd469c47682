from typing import Any, Generic, List, Optional, Type, TypeVar, cast

from sqlalchemy import ColumnExpressionArgument, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.base import ExecutableOption

from franchise_bot.db.base import Base

T = TypeVar("T", bound=Base)


class BaseService(Generic[T]):
    """
    Base service class with the queries shared by all services.

    Services never commit: the transaction belongs to the caller,
    see :func:`franchise_bot.db.context.get_or_create_session`.

    Attributes:
        model: SQLAlchemy model class.
    """

    model: Type[T]
    session: AsyncSession

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the service with an async database session.

        Args:
            session: The SQLAlchemy AsyncSession to use for database operations.

        Raises:
            NotImplementedError: If the service does not define a model.
        """
        self.session = session
        if not hasattr(self, "model"):
            raise NotImplementedError("Service must define a model")

    async def add_model(self, new_instance: T) -> T:
        """
        Add a new model instance and flush it.

        Args:
            new_instance: The model instance to add.

        Returns:
            The added model instance.
        """
        self.session.add(new_instance)
        await self.session.flush()
        return new_instance

    async def find_one_or_none(
        self,
        options: Optional[List[ExecutableOption]] = None,
        **filter_by: Any,
    ) -> Optional[T]:
        """
        Retrieve a single record matching the given filter criteria.

        Args:
            options: Optional list of SQLAlchemy loader options.
            **filter_by: Field-value filters.

        Returns:
            The model instance if found, otherwise None.
        """
        query = select(self.model).filter_by(**filter_by)
        if options:
            query = query.options(*options)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def update_by_model(self, instance: T, **update_data: Any) -> T:
        """
        Update a model instance directly.

        Args:
            instance: The model instance to update.
            **update_data: Field-value pairs to update.

        Returns:
            The updated model instance.
        """
        for key, value in update_data.items():
            setattr(instance, key, value)
        await self.session.flush()
        return instance

    async def delete_where(self, *whereclauses: ColumnExpressionArgument[bool]) -> int:
        """
        Delete records matching the given conditions.

        Args:
            *whereclauses: SQLAlchemy filter expressions.

        Returns:
            Number of deleted rows.
        """
        result = await self.session.execute(delete(self.model).where(*whereclauses))
        return cast("int", getattr(result, "rowcount", 0) or 0)
