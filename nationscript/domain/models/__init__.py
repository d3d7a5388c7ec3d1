"""Value objects and request/response models."""
