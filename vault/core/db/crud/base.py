from typing import (
    Any,
    TypeVar,
    Generic,
    Type,
    Sequence,
    Callable,
)
from uuid import UUID

from sqlalchemy import (
    SQLColumnExpression,
    and_,
    func,
    update as sa_update,
    delete as sa_delete,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Select, Delete, Update

from vault.core.exceptions.types import DatabaseException

T = TypeVar("T")


class BaseDB(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def get_by_id(
        self, session: AsyncSession, id: UUID, options: list[Any] = []
    ) -> T | None:
        """
        Asynchronously retrieves an instance of the model by its primary key.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            id (UUID): The primary key value of the model instance to retrieve.
            options (list[Any], optional): SQLAlchemy loader options (e.g., selectinload).

        Returns:
            T | None: The model instance if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt: Select = (
                select(self.model)
                .options(*options)
                .where(getattr(self.model, "id") == id)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def get_all(
        self,
        session: AsyncSession,
        filters: list[Any] | None = None,
        order_by: list[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        options: list[Any] = [],
    ) -> Sequence[T]:
        """
        Retrieve filtered, ordered and paginated results from the DB.

        Args:
            session: Async SQLAlchemy session.
            filters: list of filter expressions to apply.
            order_by: list of columns/expressions to order by.
            limit: Max number of records to return.
            offset: Number of records to skip.
            options: list of SQLAlchemy loader options (e.g., selectinload).

        Returns:
            A sequence of model instances.
        """
        try:
            stmt = select(self.model).options(*options)

            if filters:
                stmt = stmt.filter(*filters)
            if order_by:
                stmt = stmt.order_by(*order_by)
            if offset:
                stmt = stmt.offset(offset)
            if limit:
                stmt = stmt.limit(limit)

            result = await session.execute(stmt)
            return result.scalars().all()

        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving all {self.model.__name__} records: {str(e)}"
            ) from e

    async def get_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        options: list[Any] = [],
    ) -> Sequence[T]:
        """
        Asynchronously retrieves records of the model that match the given conditions.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (list[SQLColumnExpression]): SQLAlchemy expressions to filter the query.
            options (list[Any], optional): SQLAlchemy loader options.

        Returns:
            Sequence[T]: Instances of the model that match the conditions.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model).options(*options).where(and_(*conditions))
            result = await session.execute(stmt)
            return result.scalars().all()
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error retrieving {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def get_one_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        order_by: list[Any] | None = None,
        options: list[Any] = [],
    ) -> T | None:
        """
        Asynchronously retrieves the first record that matches the given conditions.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (list[SQLColumnExpression]): SQLAlchemy expressions to filter the query.
            order_by (list[Any] | None, optional): Ordering that decides which match is first.
            options (list[Any], optional): SQLAlchemy loader options.

        Returns:
            T | None: An instance of the model if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model).options(*options).where(and_(*conditions))
            if order_by:
                stmt = stmt.order_by(*order_by)
            result = await session.execute(stmt.limit(1))
            return result.scalars().first()
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error retrieving one {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def count(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression] = (),
    ) -> int:
        """Count the records matching ``conditions``."""
        try:
            stmt = select(func.count()).select_from(self.model)
            if conditions:
                stmt = stmt.where(and_(*conditions))
            result = await session.execute(stmt)
            return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error counting {self.model.__name__} records: {str(e)}"
            ) from e

    async def create(
        self,
        session: AsyncSession,
        data: dict,
        validate: Callable[[dict], dict] | None = None,
        commit_self: bool = True,
    ) -> T:
        """
        Asynchronously creates and persists a new instance of the model.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session.
            data (dict): Fields and values to initialize the model instance.
            validate (Callable[[dict], dict] | None, optional): Optional callable to validate or transform the input data.
            commit_self (bool, optional): If True, commits the transaction; otherwise only flushes. Defaults to True.

        Returns:
            T: The newly created and persisted model instance.

        Raises:
            DatabaseException: If an error occurs while creating the instance or committing.
        """
        try:
            if validate:
                data = validate(data)

            obj = self.model(**data)
            session.add(obj)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            await session.refresh(obj)
            return obj
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error creating {self.model.__name__}: {str(e)}"
            ) from e

    async def update(
        self, session: AsyncSession, id: UUID, updates: dict, commit_self: bool = True
    ) -> T | None:
        """
        Asynchronously updates the record with the given ID.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session.
            id (UUID): The unique identifier of the record to update.
            updates (dict): Fields and their new values.
            commit_self (bool, optional): If True, commits; otherwise flushes. Defaults to True.

        Returns:
            T | None: The updated record, or None if no record has the given ID.

        Raises:
            DatabaseException: If an error occurs while updating the record.
        """
        try:
            obj = await session.get(self.model, id)
            if obj is None:
                return None

            for field, value in updates.items():
                setattr(obj, field, value)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            await session.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error updating {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def update_by_conditions(
        self,
        session: AsyncSession,
        conditions: list[SQLColumnExpression],
        updates: dict,
        commit_self: bool = True,
    ) -> int:
        """
        Asynchronously updates records that match the given conditions.

        The statement runs as a single UPDATE, so the conditions double as a
        compare-and-set guard.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session.
            conditions (list[SQLColumnExpression]): Expressions selecting the records to update.
            updates (dict): Fields and their new values.
            commit_self (bool, optional): If True, commits; otherwise flushes. Defaults to True.

        Returns:
            int: The number of records updated.

        Raises:
            DatabaseException: If an error occurs while updating the records.
        """
        try:
            stmt: Update = (
                sa_update(self.model)
                .where(and_(*conditions))
                .values(**updates)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error updating {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def delete(
        self, session: AsyncSession, id: UUID, commit_self: bool = True
    ) -> bool:
        """
        Asynchronously deletes a record by its UUID.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session.
            id (UUID): The unique identifier of the record to delete.
            commit_self (bool, optional): If True, commits; otherwise flushes. Defaults to True.

        Returns:
            bool: True if a row was deleted.

        Raises:
            DatabaseException: If an error occurs while deleting the record.
        """
        try:
            stmt: Delete = (
                sa_delete(self.model)
                .where(self.model.id == id)  # type: ignore[attr-defined]
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount > 0  # type: ignore[attr-defined]
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error deleting {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def delete_by_conditions(
        self,
        session: AsyncSession,
        conditions: list[SQLColumnExpression],
        commit_self: bool = True,
    ) -> int:
        """
        Asynchronously deletes records that match the given conditions.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session.
            conditions (list[SQLColumnExpression]): Expressions selecting the records to delete.
            commit_self (bool, optional): If True, commits; otherwise flushes. Defaults to True.

        Returns:
            int: The number of records deleted.

        Raises:
            DatabaseException: If an error occurs while deleting the records.
        """
        try:
            stmt: Delete = (
                sa_delete(self.model)
                .where(and_(*conditions))
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error deleting {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e
