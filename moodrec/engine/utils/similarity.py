"""
Similarity utilities — cosine similarity for semantic matching.
"""

from typing import List, Optional

import numpy as np


def cosine_similarity(v1: List[float], v2: List[float]) -> float:
    """Compute cosine similarity between two vectors."""
    if not v1 or not v2:
        return 0.0
    v1 = np.array(v1)
    v2 = np.array(v2)
    if v1.shape != v2.shape:
        raise ValueError(f"Dimension mismatch: {v1.shape[0]} vs {v2.shape[0]}")
    dot_product = np.dot(v1, v2)
    norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
    return float(dot_product / norm_product) if norm_product > 0 else 0.0


def clamp_similarity(score: float) -> float:
    """Clamp to cosine space [-1, 1] (float error can push exact matches past 1.0)."""
    return max(-1.0, min(1.0, float(score)))


def round_similarity(score: Optional[float], decimals: int = 2) -> Optional[float]:
    if score is None:
        return None
    return round(clamp_similarity(score), decimals)
