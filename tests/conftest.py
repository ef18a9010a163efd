import pytest

from recipe_recognizer.recipes import RecipeIndex, RecipeRecord


@pytest.fixture
def records():
    return [
        RecipeRecord(
            class_name="Pizza",
            name="Margherita",
            image_url="https://example.com/pizza.jpg",
            ingredients=("dough", "tomato", "mozzarella"),
            method=("stretch dough", "add toppings", "bake"),
        ),
        RecipeRecord(
            class_name="  Sushi ",
            name="Nigiri",
            image_url="https://example.com/sushi.jpg",
            ingredients=("rice", "salmon"),
            method=("season rice", "shape", "top with fish"),
        ),
        RecipeRecord(
            class_name="Pasta",
            name="Carbonara",
            ingredients=("spaghetti", "eggs"),
            method=("boil", "toss"),
        ),
        RecipeRecord(
            class_name="pasta",
            name="Pomodoro",
            ingredients=("spaghetti", "tomatoes"),
            method=("simmer sauce", "toss"),
        ),
    ]


@pytest.fixture
def index(records):
    return RecipeIndex.build(records)
