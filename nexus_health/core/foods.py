"""Food Catalogue - Quick-search over common foods.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Mapping

from .models import FoodItem


SEARCH_LIMIT = 8
FAVORITES_LIMIT = 3


def _food(id: str, name: str, name_cn: str, kcal: int, serving: str) -> FoodItem:
    return FoodItem(id=id, name=name, name_cn=name_cn, kcal=kcal, serving=serving)


FOOD_CATALOGUE: tuple[FoodItem, ...] = (
    _food("chicken_breast", "Chicken Breast", "鸡胸肉", 165, "100g"),
    _food("salmon_fillet", "Salmon Fillet", "三文鱼", 208, "100g"),
    _food("brown_rice", "Brown Rice", "糙米饭", 215, "1 cup cooked"),
    _food("white_rice", "White Rice", "白米饭", 240, "1 cup cooked"),
    _food("egg", "Egg (whole)", "鸡蛋", 78, "1 large"),
    _food("avocado_toast", "Avocado Toast", "牛油果吐司", 290, "1 slice"),
    _food("latte", "Latte", "拿铁咖啡", 190, "16oz / grande"),
    _food("americano", "Americano", "美式咖啡", 15, "16oz"),
    _food("oatmeal", "Oatmeal", "燕麦粥", 150, "1 cup cooked"),
    _food("banana", "Banana", "香蕉", 105, "1 medium"),
    _food("apple", "Apple", "苹果", 95, "1 medium"),
    _food("greek_yogurt", "Greek Yogurt", "希腊酸奶", 130, "170g"),
    _food("protein_shake", "Protein Shake", "蛋白粉奶昔", 160, "1 scoop + water"),
    _food("salad_bowl", "Salad Bowl", "沙拉碗", 350, "1 bowl"),
    _food("steak", "Beef Steak", "牛排", 271, "100g"),
    _food("pasta", "Pasta (cooked)", "意面", 220, "1 cup cooked"),
    _food("bread_slice", "Bread", "面包片", 79, "1 slice"),
    _food("sweet_potato", "Sweet Potato", "红薯", 103, "1 medium"),
    _food("tofu", "Tofu", "豆腐", 144, "1/2 block"),
    _food("milk", "Whole Milk", "全脂牛奶", 149, "1 cup / 240ml"),
    _food("almonds", "Almonds", "杏仁", 164, "28g / handful"),
    _food("fried_rice", "Fried Rice", "炒饭", 390, "1 plate"),
    _food("dumplings", "Dumplings", "饺子", 280, "8 pcs"),
    _food("bubble_tea", "Bubble Tea", "奶茶", 350, "1 cup / 500ml"),
    _food("ramen", "Ramen", "拉面", 450, "1 bowl"),
)

_BY_ID: dict[str, FoodItem] = {f.id: f for f in FOOD_CATALOGUE}


def search_food(query: str) -> list[FoodItem]:
    """Search the catalogue.

    Case-insensitive substring match on the English name, the Chinese
    name or the id.

    Args:
        query: Search text; blank returns the whole catalogue

    Returns:
        Matching foods in catalogue order, at most 8 for a non-blank query
    """
    q = query.strip().lower()
    if not q:
        return list(FOOD_CATALOGUE)

    matches = [
        f for f in FOOD_CATALOGUE
        if q in f.name.lower() or q in f.name_cn or q in f.id
    ]
    return matches[:SEARCH_LIMIT]


def find_food(food_id: str) -> FoodItem | None:
    """Look up a catalogue food by id."""
    return _BY_ID.get(food_id)


def top_foods(frequency: Mapping[str, int], limit: int = FAVORITES_LIMIT) -> list[FoodItem]:
    """Most frequently logged foods, most used first.

    Ids no longer in the catalogue are skipped. Equal counts keep
    catalogue order.

    Args:
        frequency: Times each food id was logged
        limit: Maximum number of foods returned

    Returns:
        Up to `limit` catalogue foods
    """
    known = [f for f in FOOD_CATALOGUE if frequency.get(f.id, 0) > 0]
    known.sort(key=lambda f: -frequency[f.id])
    return known[:limit]
