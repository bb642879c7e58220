"""Common Pydantic schemas."""

from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model speaking the backend's camelCase JSON while exposing snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self, **kwargs) -> dict:
        """Dump to a JSON-compatible dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class Money(CamelModel):
    """Money representation in major units."""

    amount: Decimal = Field(..., ge=0, description="Amount in major units")
    currency: str = Field(..., min_length=3, max_length=3, pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")


class Page(CamelModel, Generic[T]):
    """Page of results in the backend's Spring Data layout."""

    content: List[T] = Field(default_factory=list, description="Items on this page")
    total_elements: int = Field(0, ge=0, description="Total items across pages")
    total_pages: int = Field(0, ge=0, description="Total number of pages")
    number: int = Field(0, ge=0, description="Zero-based page index")
    size: int = Field(0, ge=0, description="Requested page size")


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Error category")
    redirect_to: Optional[str] = Field(None, description="Step or page the client should move to")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")
