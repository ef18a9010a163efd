from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from recipe_recognizer.main import app, food_classifier, recipe_index
from recipe_recognizer.recipes import Prediction


class StubClassifier:
    """Returns canned predictions and records the image it was given."""

    def __init__(self, predictions):
        self.predictions = predictions
        self.images = []

    def classify(self, image):
        self.images.append(image)
        if self.predictions is None:
            return None
        return list(self.predictions)


class FailingClassifier:
    def __init__(self, error):
        self.error = error

    def classify(self, image):
        raise self.error


def _png_bytes(size=(64, 48)):
    buf = BytesIO()
    Image.new("RGB", size, (200, 120, 40)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def stub_classifier():
    return StubClassifier(
        [
            Prediction("Pizza", 0.9),
            Prediction("Sushi", 0.95),
            Prediction("Tofu", 0.1),
            Prediction("pasta", 0.3),
        ]
    )


@pytest.fixture
def client(index, stub_classifier):
    app.dependency_overrides[recipe_index] = lambda: index
    app.dependency_overrides[food_classifier] = lambda: stub_classifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def _recognize(client, params=None, content_type="image/png", data=None):
    files = {"image": ("dish.png", data if data is not None else _png_bytes(), content_type)}
    return client.post("/recognize", files=files, params=params or {})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_recognize_returns_ranked_recipes(client, stub_classifier):
    response = _recognize(client, params={"threshold": 0.2})
    assert response.status_code == 200

    data = response.json()
    assert [(r["label"], r["recipe_name"]) for r in data["results"]] == [
        ("Sushi", "Nigiri"),
        ("Pizza", "Margherita"),
        ("pasta", "Carbonara"),
        ("pasta", "Pomodoro"),
    ]
    assert data["results"][1]["ingredients"] == ["dough", "tomato", "mozzarella"]
    assert data["results"][1]["method"] == ["stretch dough", "add toppings", "bake"]
    assert len(data["predictions"]) == 4
    assert "total_ms" in data["processing_times"]

    # Image reached the classifier as an RGB array
    assert stub_classifier.images[0].shape == (48, 64, 3)


def test_recognize_first_match_and_max_results(client):
    response = _recognize(client, params={"policy": "first_match", "max_results": 3})
    names = [r["recipe_name"] for r in response.json()["results"]]
    assert names == ["Nigiri", "Margherita", "Carbonara"]


def test_recognize_with_no_matches_is_empty_not_error(client, stub_classifier):
    stub_classifier.predictions = [Prediction("Tofu", 0.8)]
    response = _recognize(client)
    assert response.status_code == 200
    assert response.json()["results"] == []


def test_recognize_rejects_unsupported_format(client):
    response = _recognize(client, content_type="image/gif")
    assert response.status_code == 422


def test_recognize_rejects_undecodable_image(client):
    response = _recognize(client, data=b"definitely not a png")
    assert response.status_code == 422


def test_recognize_requires_image(client):
    assert client.post("/recognize").status_code == 422


def test_recognize_rejects_unknown_policy(client):
    response = _recognize(client, params={"policy": "best_match"})
    assert response.status_code == 422


def test_recognize_without_classifier_is_unavailable(index, monkeypatch):
    from recipe_recognizer import main

    monkeypatch.setattr(main, "get_classifier", lambda: None)
    app.dependency_overrides[recipe_index] = lambda: index
    try:
        response = _recognize(TestClient(app))
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503


def test_get_recipes_by_label(client):
    response = client.get("/recipes/PASTA")
    assert response.status_code == 200
    assert [r["recipe_name"] for r in response.json()["recipes"]] == ["Carbonara", "Pomodoro"]


def test_get_recipes_unknown_label(client):
    assert client.get("/recipes/tofu").status_code == 404


def test_missing_dataset_is_unavailable(stub_classifier, monkeypatch):
    from recipe_recognizer import main

    def _missing():
        raise FileNotFoundError("assets/recipes.json")

    monkeypatch.setattr(main, "get_recipe_index", _missing)
    app.dependency_overrides[food_classifier] = lambda: stub_classifier
    try:
        response = TestClient(app).get("/recipes/pizza")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503


def test_recognize_with_null_classifier_result(client, stub_classifier):
    stub_classifier.predictions = None
    response = _recognize(client)
    assert response.status_code == 200
    assert response.json()["results"] == []
    assert response.json()["predictions"] == []


def test_recognize_accepts_mapping_predictions(client, stub_classifier):
    stub_classifier.predictions = [
        {"label": "Pizza", "confidence": 0.9},
        {"label": "Sushi", "confidence": "0.95"},
    ]
    response = _recognize(client)
    assert response.status_code == 200
    data = response.json()
    assert [r["recipe_name"] for r in data["results"]] == ["Nigiri", "Margherita"]
    assert data["predictions"] == [
        {"label": "Pizza", "confidence": 0.9},
        {"label": "Sushi", "confidence": 0.95},
    ]


def test_recognize_with_malformed_classifier_output(client, stub_classifier):
    stub_classifier.predictions = [{"label": "Pizza", "confidence": "n/a"}]
    assert _recognize(client).status_code == 422


@pytest.mark.parametrize(
    "error, status",
    [
        (RuntimeError("Classifier session is closed"), 503),
        (ValueError("Empty image passed to classifier"), 422),
    ],
)
def test_recognize_maps_classifier_failures(index, error, status):
    app.dependency_overrides[recipe_index] = lambda: index
    app.dependency_overrides[food_classifier] = lambda: FailingClassifier(error)
    try:
        response = _recognize(TestClient(app))
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == status


def test_recognize_max_results_zero_means_unlimited(client):
    response = _recognize(client, params={"max_results": 0})
    assert response.status_code == 200
    assert len(response.json()["results"]) == 4

    capped = _recognize(client, params={"max_results": 1})
    assert [r["label"] for r in capped.json()["results"]] == ["Sushi"]
