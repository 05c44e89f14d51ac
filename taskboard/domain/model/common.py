"""Base model for domain entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base class for domain entities.

    Entities are frozen; state changes go through ``model_copy(update=...)``
    and are persisted explicitly by a repository.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
