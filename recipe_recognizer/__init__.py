"""
Recipe recognizer service:
- image_preprocess: decode uploaded photos into RGB arrays
- classifier: ONNX Runtime dish classifier
- recipes: recipe index and prediction-to-recipe resolution
- main: FastAPI application
"""
