"""Persistence-boundary normalization."""

from payplan.validation.normalizer import RecordNormalizer

__all__ = ["RecordNormalizer"]
