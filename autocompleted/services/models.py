from typing import Optional

from pydantic import BaseModel, ConfigDict


class Tag(BaseModel):
    """A tag row as returned to autocomplete clients. Read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    post_count: int
    category: int
    antecedent_name: Optional[str] = None
