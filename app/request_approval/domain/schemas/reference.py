from pydantic import BaseModel, Field


class CategoryOption(BaseModel):
    """A catalogue category as offered in the row's category select."""

    id: str
    name: str = ""


class ReferenceLists(BaseModel):
    """
    The catalogue's brands, suppliers and categories.

    They feed the brand, supplier and category selects of each row, and edits
    of those fields are checked against them. An empty list means the
    catalogue did not provide one, and the field is not checked.

    Attributes:
        brands (list[str]): Brand names.
        suppliers (list[str]): Supplier ids.
        categories (list[CategoryOption]): Category ids with their display names.
    """

    brands: list[str] = Field(default_factory=list)
    suppliers: list[str] = Field(default_factory=list)
    categories: list[CategoryOption] = Field(default_factory=list)

    def resolve_category(self, value: str) -> str | None:
        """Return the category id for `value`, given as an id or a name."""
        for category in self.categories:
            if value == category.id:
                return category.id
        for category in self.categories:
            if value.casefold() == category.name.casefold():
                return category.id
        return None
