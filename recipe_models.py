"""
Structured recipe records produced by the export parser.

ParsedRecipe values are immutable: translation and review edits build new
values with dataclasses.replace() instead of mutating the parsed original.
JSON shape (to_dict/from_dict) uses the keys the review UI already speaks:
``ingredientIndices`` and ``isHeader`` are camelCase, everything else is
snake_case.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Ingredient:
    """One ingredient row. Header rows carry a section name and no quantity."""
    name: str
    amount: str = ""
    unit: str = ""
    is_header: bool = False
    amount2: Optional[str] = None  # Secondary measurement or second variant amount
    unit2: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.name,
            'amount': self.amount,
            'unit': self.unit,
        }
        if self.is_header:
            data['isHeader'] = True
        if self.amount2 is not None:
            data['amount2'] = self.amount2
        if self.unit2 is not None:
            data['unit2'] = self.unit2
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Ingredient":
        """Build from a dict, or from a plain string line (legacy exports)."""
        if not isinstance(data, dict):
            return cls(name=str(data or "").strip())
        return cls(
            name=str(data.get('name') or '').strip(),
            amount=str(data.get('amount') or '').strip(),
            unit=str(data.get('unit') or '').strip(),
            is_header=bool(data.get('isHeader', data.get('is_header', False))),
            amount2=_opt_str(data.get('amount2')),
            unit2=_opt_str(data.get('unit2')),
        )


@dataclass(frozen=True)
class Instruction:
    """One step. ingredient_indices point into the owning recipe's ingredients."""
    text: str
    ingredient_indices: FrozenSet[int] = frozenset()

    def __post_init__(self):
        if not isinstance(self.ingredient_indices, frozenset):
            object.__setattr__(self, 'ingredient_indices', frozenset(self.ingredient_indices))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'ingredientIndices': sorted(self.ingredient_indices),
        }

    @classmethod
    def from_dict(cls, data: Any, ingredient_count: Optional[int] = None) -> "Instruction":
        """
        Build from a dict or plain string.

        When ingredient_count is given, indices outside [0, ingredient_count)
        are dropped so the owning recipe stays valid.
        """
        if not isinstance(data, dict):
            return cls(text=str(data or "").strip())
        raw_indices = data.get('ingredientIndices', data.get('ingredient_indices')) or []
        if not isinstance(raw_indices, (list, tuple, set, frozenset)):
            raw_indices = []
        indices = set()
        for raw in raw_indices:
            index = _opt_int(raw)
            if index is None or index < 0:
                continue
            if ingredient_count is not None and index >= ingredient_count:
                continue
            indices.add(index)
        return cls(text=str(data.get('text') or '').strip(), ingredient_indices=frozenset(indices))


@dataclass(frozen=True)
class ParsedRecipe:
    """One recipe extracted from an export document."""
    title: str
    description: Optional[str] = None
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    local_image_path: Optional[str] = None  # Key into the side-channel image set
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    servings: Optional[int] = None
    servings_text: Optional[str] = None  # Original yield text, e.g. "10 pancakes"
    tags: Tuple[str, ...] = ()
    ingredients: Tuple[Ingredient, ...] = ()
    instructions: Tuple[Instruction, ...] = ()
    notes: Optional[str] = None
    rating: Optional[int] = None  # 1-3 scale
    made_it: bool = False
    variant_1_label: Optional[str] = None
    variant_2_label: Optional[str] = None

    def __post_init__(self):
        # Accept lists from callers, store tuples
        for name in ('tags', 'ingredients', 'instructions'):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

        count = len(self.ingredients)
        for step, instruction in enumerate(self.instructions):
            bad = [i for i in instruction.ingredient_indices if i < 0 or i >= count]
            if bad:
                raise ValueError(
                    f"Instruction {step} references ingredients {sorted(bad)} "
                    f"but recipe has {count} ingredients"
                )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            'title': self.title,
            'description': self.description,
            'source_url': self.source_url,
            'image_url': self.image_url,
            'local_image_path': self.local_image_path,
            'prep_time_minutes': self.prep_time_minutes,
            'cook_time_minutes': self.cook_time_minutes,
            'servings': self.servings,
            'servings_text': self.servings_text,
            'tags': list(self.tags),
            'ingredients': [ing.to_dict() for ing in self.ingredients],
            'instructions': [inst.to_dict() for inst in self.instructions],
            'notes': self.notes,
            'rating': self.rating,
            'made_it': self.made_it,
            'variant_1_label': self.variant_1_label,
            'variant_2_label': self.variant_2_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedRecipe":
        """
        Deserialize from a dict (stored session document or client payload).

        Unknown keys are ignored. Instruction indices that do not point at an
        ingredient of this recipe are dropped.

        Raises:
            ValueError: If data is not a mapping
        """
        if not isinstance(data, dict):
            raise ValueError(f"Recipe must be an object, got {type(data).__name__}")

        ingredients = [Ingredient.from_dict(i) for i in _as_list(data.get('ingredients'))]
        instructions = [
            Instruction.from_dict(i, ingredient_count=len(ingredients))
            for i in _as_list(data.get('instructions'))
        ]
        rating = _opt_int(data.get('rating'))

        return cls(
            title=str(data.get('title') or '').strip(),
            description=_opt_str(data.get('description')),
            source_url=_opt_str(data.get('source_url')),
            image_url=_opt_str(data.get('image_url')),
            local_image_path=_opt_str(data.get('local_image_path')),
            prep_time_minutes=_opt_int(data.get('prep_time_minutes')),
            cook_time_minutes=_opt_int(data.get('cook_time_minutes')),
            servings=_opt_int(data.get('servings')),
            servings_text=_opt_str(data.get('servings_text')),
            tags=[str(t).strip() for t in _as_list(data.get('tags')) if str(t).strip()],
            ingredients=ingredients,
            instructions=instructions,
            notes=_opt_str(data.get('notes')),
            rating=rating if rating in (1, 2, 3) else None,
            made_it=bool(data.get('made_it', False)),
            variant_1_label=_opt_str(data.get('variant_1_label')),
            variant_2_label=_opt_str(data.get('variant_2_label')),
        )


def local_image_paths(recipes: Iterable[ParsedRecipe]) -> List[str]:
    """Side-channel image paths a caller must supply bytes for."""
    return [r.local_image_path for r in recipes if r.local_image_path]
