from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Ingredient:
    name: str = ""
    type: str = ""
    id: Optional[int] = None


@dataclass
class CookingUnit:
    name: str = ""
    id: Optional[int] = None


@dataclass
class Recipe:
    """A recipe as seen by callers: steps are plain text in order, ingredients
    are shared references resolved to full records on read."""

    name: str = ""
    description: str = ""
    ingredients: List[Ingredient] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    id: Optional[int] = None
