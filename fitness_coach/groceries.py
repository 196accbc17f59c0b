from typing import Dict, List

from .models import GroceryItem, MealPlan


def build_grocery_list(plan: MealPlan) -> List[GroceryItem]:
    """Ingredients of a meal plan, de-duplicated case-insensitively and sorted.

    The first spelling seen is kept; each item lists the meal types using it.
    """
    items: Dict[str, GroceryItem] = {}
    for meal in plan.meals:
        for ingredient in meal.ingredients:
            name = ingredient.strip()
            if not name:
                continue
            item = items.setdefault(name.lower(), GroceryItem(name=name))
            if meal.meal_type not in item.meal_types:
                item.meal_types.append(meal.meal_type)
    return sorted(items.values(), key=lambda i: i.name.lower())
