from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field


ScoreMap = Dict[int, float]


class FusionMode(str, Enum):
    """Which similarity signals contribute to the ranking."""
    HYBRID = "hybrid"
    VECTOR_ONLY = "vector_only"
    LEXICAL_ONLY = "lexical_only"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FusionMode":
        """Resolve a request value; ``mlt_only`` is accepted for older callers."""
        if value is None or not str(value).strip():
            return cls.HYBRID
        normalized = str(value).strip().lower()
        if normalized == "mlt_only":
            return cls.LEXICAL_ONLY
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"unknown fusion mode '{value}'") from None

    @property
    def uses_vector(self) -> bool:
        return self in (FusionMode.HYBRID, FusionMode.VECTOR_ONLY)

    @property
    def uses_lexical(self) -> bool:
        return self in (FusionMode.HYBRID, FusionMode.LEXICAL_ONLY)

    def effective_weights(self, vector_weight: float, lexical_weight: float) -> Tuple[float, float]:
        if self is FusionMode.VECTOR_ONLY:
            return 1.0, 0.0
        if self is FusionMode.LEXICAL_ONLY:
            return 0.0, 1.0
        return float(vector_weight), float(lexical_weight)


@dataclass(frozen=True)
class DocumentRef:
    external_id: str
    internal_id: int


@dataclass(frozen=True)
class ScoredCandidate:
    internal_id: int
    score: float
    vector_score: float = 0.0
    lexical_score: float = 0.0


@dataclass(frozen=True)
class RequestConfig:
    """Resolved parameters for one SMLT invocation."""

    source_id: str
    count: int
    mode: FusionMode
    vector_weight: float
    lexical_weight: float
    vector_field: str
    lexical_fields: Tuple[str, ...]
    return_fields: Tuple[str, ...]
    filter_queries: Tuple[str, ...] = field(default_factory=tuple)
    id_field: str = "id"

    @classmethod
    def create(
        cls,
        *,
        source_id: str,
        count: int = 10,
        mode: FusionMode = FusionMode.HYBRID,
        vector_weight: float = 0.7,
        lexical_weight: float = 0.3,
        vector_field: str = "content_vector",
        lexical_fields: Sequence[str] = ("title", "content"),
        return_fields: Sequence[str] = ("id",),
        filter_queries: Sequence[str] = (),
        id_field: str = "id",
    ) -> "RequestConfig":
        if not source_id:
            raise ValueError("source_id must not be empty")
        lexical = tuple(name.strip() for name in lexical_fields if name and name.strip())
        if not lexical:
            raise ValueError("at least one lexical field is required")

        returned: List[str] = []
        for name in return_fields:
            name = (name or "").strip()
            if name and name not in returned:
                returned.append(name)
        if id_field not in returned:
            returned.insert(0, id_field)

        return cls(
            source_id=source_id,
            count=max(0, int(count)),
            mode=mode,
            vector_weight=float(vector_weight),
            lexical_weight=float(lexical_weight),
            vector_field=vector_field,
            lexical_fields=lexical,
            return_fields=tuple(returned),
            filter_queries=tuple(q for q in filter_queries if q is not None),
            id_field=id_field,
        )

    @property
    def candidate_count(self) -> int:
        # One extra slot absorbs the source document matching itself.
        return self.count + 1


class SmltResult(BaseModel):
    """The ``semanticMoreLikeThis`` record returned to callers."""
    source_id: str = Field(alias="sourceId")
    mode: str
    num_found: int = Field(alias="numFound")
    docs: List[Dict[str, Any]] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @classmethod
    def empty(cls, source_id: str, mode: FusionMode) -> "SmltResult":
        return cls(sourceId=source_id, mode=mode.value, numFound=0, docs=[])

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
