"""
Pydantic models validating mutation input before it reaches the data source.
Kept separate from the GraphQL input types so transport stays decoupled from
the rules on what a storable record looks like.
"""
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from storefront.exceptions import InputValidationError


# ──────────────────────────── Products ────────────────────────────────────

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    # Optional in the GraphQL input, but the products table requires them
    price: float = Field(..., ge=0)
    image: str = Field(..., min_length=1, max_length=500)
    description: str


# ──────────────────────────── Posts ───────────────────────────────────────

class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None


class PostAuthor(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


# ──────────────────────────── Pagination ──────────────────────────────────

class Page(BaseModel):
    # None = no offset / no limit; 0 is honoured as a real value
    skip: Optional[int] = Field(None, ge=0)
    take: Optional[int] = Field(None, ge=0)


def validate(model: type, **values):
    """Build ``model`` from ``values``, dropping None so defaults apply."""
    try:
        return model(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        invalid = {
            ".".join(str(part) for part in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        fields = ", ".join(sorted(invalid))
        raise InputValidationError(f"Invalid input: {fields}", invalid) from exc
