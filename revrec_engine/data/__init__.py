"""Normalization of raw contract, obligation and adjustment payloads."""

from .normalizer import CandidateNormalizer, NormalizationResult

__all__ = ["CandidateNormalizer", "NormalizationResult"]
