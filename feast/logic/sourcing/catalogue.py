"""Fallback catalogue: realistic meals used when both live sourcing tiers fail.

Costs are per serving in USD; the orchestrator scales them by the number of people.
"""
import logging
import random
from typing import Any, Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

FALLBACK_MEALS: Sequence[Dict[str, Any]] = (
    {
        "name": "Grilled Chicken Salad",
        "type": "lunch",
        "cuisine": "american",
        "dietTag": "high-protein",
        "ingredients": ["1 pound chicken breast", "2 cups mixed greens", "1 cup cherry tomatoes", "1 cucumber",
                        "1 tablespoon olive oil", "1 tablespoon balsamic vinegar"],
        "instructions": ["Season chicken with salt and pepper", "Grill for 6-8 minutes per side",
                         "Chop vegetables", "Combine and drizzle with dressing"],
        "nutrition": {"calories": 350, "protein": 35, "carbs": 8, "fat": 18},
        "costPerServing": 4.25,
    },
    {
        "name": "Vegetarian Pasta Primavera",
        "type": "dinner",
        "cuisine": "italian",
        "dietTag": "vegetarian",
        "ingredients": ["8 ounces whole wheat pasta", "1 head broccoli", "1 bell pepper", "1 zucchini",
                        "1 cup cherry tomatoes", "2 tablespoons parmesan cheese"],
        "instructions": ["Cook pasta according to package", "Saute vegetables", "Combine with pasta",
                         "Top with parmesan"],
        "nutrition": {"calories": 420, "protein": 15, "carbs": 65, "fat": 12},
        "costPerServing": 3.35,
    },
    {
        "name": "Quinoa Buddha Bowl",
        "type": "lunch",
        "cuisine": "mediterranean",
        "dietTag": "vegan",
        "ingredients": ["1 cup quinoa", "1 can chickpeas", "1 bunch kale", "1 sweet potato", "1 avocado",
                        "2 tablespoons tahini dressing"],
        "instructions": ["Cook quinoa", "Roast sweet potato", "Massage kale", "Assemble bowl", "Drizzle with tahini"],
        "nutrition": {"calories": 480, "protein": 18, "carbs": 55, "fat": 22},
        "costPerServing": 3.50,
    },
    {
        "name": "Salmon with Roasted Vegetables",
        "type": "dinner",
        "cuisine": "mediterranean",
        "dietTag": "balanced",
        "ingredients": ["1 pound salmon fillet", "1 bunch asparagus", "1 cup cherry tomatoes", "1 lemon",
                        "2 cloves garlic", "1 tablespoon olive oil"],
        "instructions": ["Season salmon", "Roast vegetables", "Bake salmon", "Serve with lemon"],
        "nutrition": {"calories": 520, "protein": 42, "carbs": 12, "fat": 28},
        "costPerServing": 6.25,
    },
    {
        "name": "Overnight Oats with Berries",
        "type": "breakfast",
        "cuisine": "american",
        "dietTag": "vegetarian",
        "ingredients": ["1 cup rolled oats", "1 cup almond milk", "1 tablespoon honey", "1 cup mixed berries",
                        "1 tablespoon chia seeds", "1 teaspoon vanilla extract"],
        "instructions": ["Mix oats with milk", "Add honey and vanilla", "Refrigerate overnight", "Top with berries"],
        "nutrition": {"calories": 320, "protein": 12, "carbs": 45, "fat": 14},
        "costPerServing": 2.10,
    },
    {
        "name": "Mexican Street Tacos",
        "type": "dinner",
        "cuisine": "mexican",
        "dietTag": "balanced",
        "ingredients": ["6 corn tortillas", "1 pound grilled chicken", "1 onion", "1 bunch cilantro", "1 lime",
                        "1 cup salsa"],
        "instructions": ["Grill chicken", "Warm tortillas", "Chop vegetables", "Assemble tacos"],
        "nutrition": {"calories": 380, "protein": 28, "carbs": 35, "fat": 16},
        "costPerServing": 4.40,
    },
    {
        "name": "Greek Yogurt Parfait",
        "type": "breakfast",
        "cuisine": "mediterranean",
        "dietTag": "high-protein",
        "ingredients": ["1 cup greek yogurt", "1 cup granola", "1 tablespoon honey", "1 cup mixed berries",
                        "2 tablespoons almonds"],
        "instructions": ["Layer yogurt", "Add granola", "Top with berries", "Drizzle honey"],
        "nutrition": {"calories": 290, "protein": 22, "carbs": 28, "fat": 12},
        "costPerServing": 2.75,
    },
    {
        "name": "Stir-Fried Vegetable Rice",
        "type": "lunch",
        "cuisine": "chinese",
        "dietTag": "vegan",
        "ingredients": ["1 cup brown rice", "1 head broccoli", "2 carrots", "1 bell pepper",
                        "2 tablespoons soy sauce", "1 teaspoon ginger"],
        "instructions": ["Cook rice", "Stir-fry vegetables", "Combine with rice", "Season with soy sauce"],
        "nutrition": {"calories": 340, "protein": 8, "carbs": 58, "fat": 10},
        "costPerServing": 2.60,
    },
    {
        "name": "Caprese Panini",
        "type": "lunch",
        "cuisine": "italian",
        "dietTag": "vegetarian",
        "ingredients": ["2 slices bread", "4 ounces mozzarella cheese", "2 tomatoes", "1 bunch basil",
                        "1 teaspoon olive oil"],
        "instructions": ["Layer mozzarella, tomato and basil on bread", "Brush with olive oil",
                         "Press in a hot pan until golden"],
        "nutrition": {"calories": 410, "protein": 19, "carbs": 38, "fat": 20},
        "costPerServing": 3.20,
    },
    {
        "name": "Spinach and Ricotta Frittata",
        "type": "breakfast",
        "cuisine": "italian",
        "dietTag": "vegetarian",
        "ingredients": ["4 eggs", "1 bunch spinach", "1/2 cup ricotta cheese", "1 onion", "1 teaspoon olive oil"],
        "instructions": ["Wilt spinach with onion", "Whisk eggs with ricotta", "Pour over vegetables",
                         "Bake until set"],
        "nutrition": {"calories": 310, "protein": 21, "carbs": 9, "fat": 20},
        "costPerServing": 2.40,
    },
    {
        "name": "Lentil Minestrone",
        "type": "dinner",
        "cuisine": "italian",
        "dietTag": "vegan",
        "ingredients": ["1 cup lentils", "2 carrots", "1 onion", "1 can tomato sauce", "1 cup pasta",
                        "2 cloves garlic"],
        "instructions": ["Saute onion, carrot and garlic", "Add lentils, tomato and water",
                         "Simmer 25 minutes", "Add pasta and cook until tender"],
        "nutrition": {"calories": 390, "protein": 20, "carbs": 62, "fat": 6},
        "costPerServing": 2.30,
    },
    {
        "name": "Black Bean Burrito Bowl",
        "type": "lunch",
        "cuisine": "mexican",
        "dietTag": "vegetarian",
        "ingredients": ["1 can black beans", "1 cup rice", "1 cup corn", "1/2 cup salsa", "1/4 cup cheddar cheese",
                        "1 lime"],
        "instructions": ["Cook rice with lime", "Warm beans and corn", "Assemble bowl", "Top with salsa and cheese"],
        "nutrition": {"calories": 450, "protein": 17, "carbs": 72, "fat": 10},
        "costPerServing": 2.90,
    },
    {
        "name": "Chana Masala with Rice",
        "type": "dinner",
        "cuisine": "indian",
        "dietTag": "vegan",
        "ingredients": ["1 can chickpeas", "1 can tomato sauce", "1 onion", "1 teaspoon cumin", "1 teaspoon turmeric",
                        "1 cup rice"],
        "instructions": ["Fry onion with spices", "Add tomato and chickpeas", "Simmer 20 minutes", "Serve over rice"],
        "nutrition": {"calories": 430, "protein": 15, "carbs": 70, "fat": 9},
        "costPerServing": 2.50,
    },
    {
        "name": "Masala Omelette",
        "type": "breakfast",
        "cuisine": "indian",
        "dietTag": "vegetarian",
        "ingredients": ["3 eggs", "1 onion", "1 tomato", "1 green chili", "1 pinch turmeric"],
        "instructions": ["Chop vegetables", "Whisk eggs with spices", "Cook in a hot pan", "Fold and serve"],
        "nutrition": {"calories": 280, "protein": 19, "carbs": 7, "fat": 19},
        "costPerServing": 1.90,
    },
    {
        "name": "Chicken Teriyaki Rice Bowl",
        "type": "dinner",
        "cuisine": "japanese",
        "dietTag": "balanced",
        "ingredients": ["1 pound chicken breast", "1 cup rice", "3 tablespoons teriyaki sauce", "1 head broccoli",
                        "1 teaspoon sesame seeds"],
        "instructions": ["Cook rice", "Sear chicken", "Glaze with teriyaki sauce", "Serve with steamed broccoli"],
        "nutrition": {"calories": 510, "protein": 38, "carbs": 60, "fat": 11},
        "costPerServing": 4.10,
    },
    {
        "name": "Avocado Toast with Egg",
        "type": "breakfast",
        "cuisine": "american",
        "dietTag": "vegetarian",
        "ingredients": ["2 slices bread", "1 avocado", "1 egg", "1 pinch salt", "1 pinch black pepper"],
        "instructions": ["Toast bread", "Mash avocado", "Fry egg", "Assemble and season"],
        "nutrition": {"calories": 360, "protein": 13, "carbs": 30, "fat": 22},
        "costPerServing": 2.60,
    },
)


def _mentions_allergen(meal: Dict[str, Any], allergies: Iterable[str]) -> bool:
    tokens = [a.strip().lower() for a in allergies if a and a.strip()]
    return any(t in ing.lower() for ing in meal["ingredients"] for t in tokens)


class FallbackCatalogue:
    """Random picks from a fixed meal list, narrowed by diet, meal type and allergies."""

    def __init__(self, meals: Sequence[Dict[str, Any]] = FALLBACK_MEALS, rng: Optional[random.Random] = None):
        if not meals:
            raise ValueError("Fallback catalogue cannot be empty")
        self.meals = tuple(meals)
        self.rng = rng or random.Random()

    def __len__(self):
        return len(self.meals)

    def candidates(self, meal_type: str, diet: Optional[str] = None, allergies: Iterable[str] = ()) -> List[Dict[str, Any]]:
        """Best available subset; meal type is relaxed first, then diet.

        Allergies are only ignored when every entry violates them.
        """
        allergies = list(allergies)
        safe = [m for m in self.meals if not _mentions_allergen(m, allergies)] or list(self.meals)
        wanted_diet = (diet or "").lower()
        tiers = (
            [m for m in safe if m["type"] == meal_type and m["dietTag"] == wanted_diet],
            [m for m in safe if m["dietTag"] == wanted_diet],
            [m for m in safe if m["type"] == meal_type],
            safe,
        )
        for pool in tiers:
            if pool:
                return pool
        return list(self.meals)

    def pick(self, meal_type: str, diet: Optional[str] = None, allergies: Iterable[str] = ()) -> Dict[str, Any]:
        pool = self.candidates(meal_type, diet, allergies)
        meal = self.rng.choice(pool)
        logger.debug("Fallback pick for %s/%s: %s (pool of %d)", meal_type, diet, meal["name"], len(pool))
        return dict(meal)
