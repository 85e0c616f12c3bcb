from decimal import Decimal

from pydantic import BaseModel, Field


class Markup(BaseModel):
    """
    Pricing markup configured for a brand.

    Attributes:
        id (str): Source document id.
        brand (str): Brand the markup applies to.
        main_category (str): Top-level category.
        sub_category (str): Sub category.
        description (str): Free-text description.
        rrp_markup (Decimal | None): Retail markup multiplier.
    """

    id: str = ""
    brand: str = ""
    main_category: str = ""
    sub_category: str = ""
    description: str = ""
    rrp_markup: Decimal | None = None


class MarkupSearchResult(BaseModel):
    """Markups matched per search term, in term order."""

    terms: list[str] = Field(default_factory=list)
    matches: dict[str, list[Markup]] = Field(default_factory=dict)

    @property
    def total_matches(self) -> int:
        return sum(len(markups) for markups in self.matches.values())
