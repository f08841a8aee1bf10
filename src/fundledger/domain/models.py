from __future__ import annotations

from dataclasses import dataclass

from fundledger.domain.rules import ValidationError


@dataclass(frozen=True)
class Principal:
    """Opaque caller identity, compared by its canonical text."""

    text: str

    def __post_init__(self) -> None:
        text = self.text.strip() if isinstance(self.text, str) else ""
        if text == "":
            raise ValidationError("caller is required.")
        object.__setattr__(self, "text", text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Campaign:
    campaign_id: str
    title: str
    description: str
    goal_amount: int
    current_amount: int
    start_date: int
    end_date: int
    owner: Principal


@dataclass(frozen=True)
class Contribution:
    contributor: Principal
    amount: int
    timestamp: int
