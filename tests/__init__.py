"""
Garment Classifier - Test Suite

- tests/unit/: Pipeline tests against tiny generated ONNX models and a
  mocked MinIO client
- tests/integration/: Provisioning against a live MinIO (pytest -m integration)
"""
