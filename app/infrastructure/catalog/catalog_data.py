from __future__ import annotations

from decimal import Decimal

from app.domain.entities.service import Service

SERVICE_CATALOG: list[Service] = [
    Service(
        id="1",
        name="Relaxing Massage",
        short_description="Full body massage with gentle pressure to release tension.",
        price=Decimal("35000"),
        duration_minutes=60,
    ),
    Service(
        id="2",
        name="Deep Tissue Massage",
        short_description="Firm pressure focused on chronic muscle knots.",
        price=Decimal("42000"),
        duration_minutes=60,
    ),
    Service(
        id="3",
        name="Sports Massage",
        short_description="Recovery session for athletes, before or after training.",
        price=Decimal("40000"),
        duration_minutes=45,
    ),
    Service(
        id="4",
        name="Hot Stone Therapy",
        short_description="Heated basalt stones combined with relaxing strokes.",
        price=Decimal("48000"),
        duration_minutes=90,
    ),
    Service(
        id="5",
        name="Reflexology",
        short_description="Pressure point work on feet and hands.",
        price=Decimal("28000"),
        duration_minutes=30,
    ),
]
