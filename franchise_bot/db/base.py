from typing import Any

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.inspection import inspect
from sqlalchemy.orm import DeclarativeBase

from franchise_bot.db.meta import meta


class Base(AsyncAttrs, DeclarativeBase):
    """Base for all models."""

    __abstract__ = True
    metadata = meta

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the loaded column values of the model to a dictionary.

        Returns:
            The dictionary.
        """
        state = inspect(self)
        return {
            attr.key: attr.loaded_value
            for attr in state.attrs
            if attr.key in state.mapper.columns
        }

    def __repr__(self) -> str:
        """
        Return a pretty representation of the model.

        Returns:
            The representation.
        """
        self_dict = self.to_dict()
        items = list(self_dict.items())[:2]
        params = ", ".join([f"{key}={value!r}" for key, value in items])
        if len(items) < len(self_dict):
            params += ", ..."
        return f"{self.__class__.__name__}({params})"
