from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    short_description: str
    price: Decimal
    duration_minutes: int
    image_url: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Service id is required")
        if not isinstance(self.price, Decimal):
            object.__setattr__(self, "price", Decimal(str(self.price)))
        if self.price < 0:
            raise ValueError("Service price must be >= 0")
        if self.duration_minutes <= 0:
            raise ValueError("Service duration_minutes must be > 0")
