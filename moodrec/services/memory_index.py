"""
In-memory vector index for local runs and tests.

Brute-force cosine similarity over all stored vectors, with the subset of
Pinecone's metadata filter language the pipeline uses ($eq, $ne, $in, $nin,
$gt, $gte, $lt, $lte, $and, $or, and bare equality).
"""

from typing import Any, Dict, List, Optional

import numpy as np

from ..engine.models.vector import VectorMatch, VectorRecord

_COMPARATORS = {
    "$eq": lambda a, b: a == b,
    "$ne": lambda a, b: a != b,
    "$gt": lambda a, b: a is not None and a > b,
    "$gte": lambda a, b: a is not None and a >= b,
    "$lt": lambda a, b: a is not None and a < b,
    "$lte": lambda a, b: a is not None and a <= b,
}


def _match_value(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        condition = {"$eq": condition}
    for op, expected in condition.items():
        if op == "$in":
            if isinstance(value, list):
                if not any(v in expected for v in value):
                    return False
            elif value not in expected:
                return False
        elif op == "$nin":
            if isinstance(value, list):
                if any(v in expected for v in value):
                    return False
            elif value in expected:
                return False
        elif op in _COMPARATORS:
            if isinstance(value, list) and op == "$eq":
                if expected not in value:
                    return False
            elif not _COMPARATORS[op](value, expected):
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


def matches_filter(metadata: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    """Evaluate a Pinecone-style metadata filter against one record's metadata."""
    if not filter:
        return True
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches_filter(metadata, f) for f in condition):
                return False
        elif key == "$or":
            if not any(matches_filter(metadata, f) for f in condition):
                return False
        elif not _match_value(metadata.get(key), condition):
            return False
    return True


class InMemoryVectorIndex:
    """
    Process-local VectorIndex. Insertion order is kept, so equal scores come
    back in the order records were first written.
    """

    def __init__(self, dimension: Optional[int] = None):
        self._dimension = dimension
        self._records: Dict[str, VectorRecord] = {}

    @property
    def is_available(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._records)

    async def upsert(self, records: List[VectorRecord]) -> None:
        for record in records:
            if self._dimension is not None and len(record.vector) != self._dimension:
                raise ValueError(
                    f"Vector dimension {len(record.vector)} does not match index dimension {self._dimension}"
                )
            self._records[record.id] = record

    async def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        candidates = [r for r in self._records.values() if matches_filter(r.metadata, filter)]
        if not candidates or not vector:
            return []
        q = np.array(vector, dtype=float)
        q_norm = np.linalg.norm(q)
        matrix = np.array([r.vector for r in candidates], dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * q_norm
        dots = matrix @ q
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
        order = sorted(range(len(candidates)), key=lambda i: scores[i], reverse=True)
        return [
            VectorMatch(
                id=candidates[i].id,
                score=float(max(-1.0, min(1.0, scores[i]))),
                metadata=dict(candidates[i].metadata),
            )
            for i in order[:top_k]
        ]

    async def fetch(self, ids: List[str]) -> Dict[str, VectorRecord]:
        return {i: self._records[i] for i in ids if i in self._records}

    async def delete(self, ids: List[str]) -> None:
        for i in ids:
            self._records.pop(i, None)
