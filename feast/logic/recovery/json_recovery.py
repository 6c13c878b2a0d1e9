"""Recovery of structured values from untrusted generative text.

``recover(raw_text)`` walks an ordered ladder of strategies and returns the
first value that parses as a JSON object or array, or ``None``:

1. ``parse_direct``   - the text is already JSON.
2. ``parse_sliced``   - strip a fenced code block, slice from the first ``[``/``{``.
3. ``parse_repaired`` - insert missing separators between adjacent objects,
   drop trailing commas and whole-line ``//`` comments.
4. ``salvage_objects`` - parse every standalone object literal independently
   and keep the survivors; the first one is annotated as partial.

``normalize_meal_batch`` post-processes a recovered meal list: dedupe by name,
diet filter, placeholder backfill up to the requested count.
"""
import json
import logging
import re
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from feast.domain.MealCandidate import MealCandidate, SourceTier, meal_key
from feast.utilities.constants import DEFAULT_DIET, MEAL_TYPES, PARTIAL_RESULTS_NOTE
from feast.utilities.errors import UnusableResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)(?:```|$)")
_MISSING_SEPARATOR_RE = re.compile(r"\}(\s*)\{")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")
_LINE_COMMENT_RE = re.compile(r"^\s*//.*$", re.MULTILINE)
_FLAT_OBJECT_RE = re.compile(r"\{[^{}]*\}")


def _loads(text: str) -> Optional[Any]:
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, (dict, list)) else None


def _from_first_opener(raw_text: str) -> Optional[str]:
    """Text from the first ``[`` or ``{``, inside the fenced code block when there is one."""
    text = raw_text
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)
    starts = [i for i in (text.find("["), text.find("{")) if i >= 0]
    if not starts:
        return None
    return text[min(starts):]


def _slice(raw_text: str) -> Optional[str]:
    text = _from_first_opener(raw_text)
    if text is None:
        return None
    end = text.rfind("]" if text[0] == "[" else "}")
    # Truncated output has no closer; keep the tail for the later strategies
    return text[:end + 1] if end > 0 else text


def parse_direct(raw_text: str) -> Optional[Any]:
    return _loads(raw_text)


def parse_sliced(raw_text: str) -> Optional[Any]:
    sliced = _slice(raw_text)
    return _loads(sliced) if sliced else None


def parse_repaired(raw_text: str) -> Optional[Any]:
    sliced = _slice(raw_text)
    if not sliced:
        return None
    repaired = _LINE_COMMENT_RE.sub("", sliced)
    repaired = _MISSING_SEPARATOR_RE.sub(r"},\1{", repaired)
    repaired = _TRAILING_COMMA_RE.sub(r"\1", repaired).strip()
    value = _loads(repaired)
    if value is None and repaired.startswith("{"):
        # Several objects with no enclosing array
        value = _loads(f"[{repaired}]")
    return value


def _balanced_objects(text: str) -> Iterable[str]:
    """Outermost ``{...}`` spans, skipping braces inside string literals."""
    depth, start, in_string, escaped = 0, -1, False, False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]


def salvage_objects(raw_text: str) -> Optional[List[Any]]:
    """Parse each object literal on its own; None when none survive.

    Outermost balanced objects are tried first so nested meals survive whole;
    single-level brace spans are the last resort.
    """
    body = _from_first_opener(raw_text) or raw_text
    survivors = [v for v in (_loads(span) for span in _balanced_objects(body)) if isinstance(v, dict)]
    if not survivors and body.startswith("{"):
        # A truncated wrapper object never closes; look at what it holds
        survivors = [v for v in (_loads(span) for span in _balanced_objects(body[1:])) if isinstance(v, dict)]
    if not survivors:
        survivors = [v for v in (_loads(m) for m in _FLAT_OBJECT_RE.findall(body)) if isinstance(v, dict)]
    if not survivors:
        return None
    first = survivors[0]
    first["description"] = str(first.get("description") or "") + PARTIAL_RESULTS_NOTE
    return survivors


RECOVERY_STRATEGIES: Sequence[Tuple[str, Callable[[str], Optional[Any]]]] = (
    ("direct", parse_direct),
    ("sliced", parse_sliced),
    ("repaired", parse_repaired),
    ("salvaged", salvage_objects),
)


def recover(raw_text: str, strategies=RECOVERY_STRATEGIES) -> Optional[Any]:
    """Best-effort JSON object/array from ``raw_text``; None when every strategy fails."""
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None
    for name, strategy in strategies:
        value = strategy(raw_text)
        if value is not None:
            if name != "direct":
                logger.info("Recovered generative output via %s strategy", name)
            return value
    logger.warning("Could not recover any JSON from generative output (%d chars)", len(raw_text))
    return None


# --- Meal batches -------------------------------------------------------------

def _as_meal_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for key in ("meals", "suggestions", "recipes", "data"):
            if isinstance(value.get(key), list):
                return value[key]
        return [value]
    return []


def looks_like_ingredient_list(items: List[Any]) -> bool:
    """True when the model answered with ingredients instead of meals."""
    if not items or not isinstance(items[0], dict):
        return False
    first = items[0]
    return "ingredients" not in first and "name" in first and "quantity" in first


def placeholder_meal(index: int, cuisine: str, diet: str, meal_type: str, people: int = 1) -> MealCandidate:
    """Synthesized low-fidelity meal named "{cuisine} {meal_type} {index}"."""
    base = (index - 1) * 3
    return MealCandidate.from_dict({
        "name": f"{cuisine or 'Balanced'} {meal_type} {index}",
        "type": meal_type,
        "cuisine": cuisine or DEFAULT_DIET,
        "dietTag": diet or DEFAULT_DIET,
        "ingredients": [f"100 g ingredient {base + 1}", f"50 g ingredient {base + 2}", f"30 g ingredient {base + 3}"],
        "instructions": ["Step 1", "Step 2", "Step 3"],
        "nutrition": {"calories": 180, "protein": 8, "carbs": 35, "fat": 3.5},
        "estimatedCostUSD": 5.00,
        "servings": people,
        "description": f"Fallback {meal_type} meal",
    }, source_tier=SourceTier.FALLBACK)


def normalize_meal_batch(recovered: Any, *, count: int, cuisine: str = "", diet: Optional[str] = None,
                         meal_type: Optional[str] = None, people: int = 1,
                         allergies: Iterable[str] = (), taken: Iterable[str] = ()) -> List[MealCandidate]:
    """Turn a recovered value into exactly ``count`` unique meals.

    Args:
        recovered: output of ``recover`` (list, dict or None).
        count: number of meals wanted; the result never exceeds it.
        cuisine: stamped on meals that omit it; also names placeholders.
        diet: when given, meals whose diet tag differs are dropped.
        meal_type: fixed type for every meal; otherwise types cycle breakfast/lunch/dinner.
        people: servings stamped on every meal.
        allergies: meals mentioning any of these in an ingredient name are dropped.
        taken: names already used elsewhere; they count as duplicates.

    Raises:
        UnusableResponseError: the value is an ingredient list, not meals.
    """
    items = _as_meal_list(recovered)
    if looks_like_ingredient_list(items):
        raise UnusableResponseError("response is an ingredient list, not meals")

    wanted_diet = diet.lower() if diet else None
    seen = {meal_key(n) for n in taken}
    meals: List[MealCandidate] = []
    for i, item in enumerate(items):
        if len(meals) >= count:
            break
        default_type = meal_type or MEAL_TYPES[i % len(MEAL_TYPES)]
        try:
            meal = MealCandidate.from_dict(item, source_tier=SourceTier.GENERATIVE, default_type=default_type,
                                           default_cuisine=cuisine, default_diet=wanted_diet or DEFAULT_DIET)
        except ValueError as e:
            logger.debug("Dropping unusable generated meal: %s", e)
            continue
        if meal.key in seen:
            continue
        if meal.contains_allergen(allergies):
            logger.debug("Dropping %s: contains an allergen", meal.name)
            continue
        if wanted_diet and meal.diet_tag != wanted_diet:
            logger.debug("Dropping %s: diet %s, wanted %s", meal.name, meal.diet_tag, wanted_diet)
            continue
        if meal_type:
            meal.type = meal_type
        meal.servings = people
        seen.add(meal.key)
        meals.append(meal)

    index, generated = 0, len(meals)
    while len(meals) < count:
        placeholder = placeholder_meal(index + 1, cuisine, wanted_diet or DEFAULT_DIET,
                                       meal_type or MEAL_TYPES[index % len(MEAL_TYPES)], people)
        index += 1
        if placeholder.key in seen:
            continue
        seen.add(placeholder.key)
        meals.append(placeholder)
    if len(meals) > generated:
        logger.info("Backfilled %d placeholder meals (%s, %s)", len(meals) - generated, cuisine, wanted_diet)
    return meals


__all__ = [
    'recover', 'RECOVERY_STRATEGIES', 'parse_direct', 'parse_sliced', 'parse_repaired', 'salvage_objects',
    'normalize_meal_batch', 'placeholder_meal', 'looks_like_ingredient_list',
]
