"""
Pydantic Models

Declarative descriptions of lazy pipelines: the operations to chain, how to
collect the result, and pagination / chunking requests over a source.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from enum import Enum

from protocols import CollectionKind


class OperationType(str, Enum):
    """Adaptor names accepted in a pipeline description"""
    MAP = "map"
    FILTER = "filter"
    SKIP = "skip"
    TAKE = "take"
    STEP_BY = "step_by"
    SKIP_WHILE = "skip_while"
    TAKE_WHILE = "take_while"
    CHUNK = "chunk"
    ENUMERATE = "enumerate"
    CONCAT = "concat"
    CYCLE = "cycle"
    SCAN = "scan"
    ZIP = "zip"
    FLATTEN = "flatten"
    FLAT_MAP = "flat_map"
    JOIN = "join"
    JOIN_WITH = "join_with"
    EACH = "each"


# Arguments each operation cannot do without
REQUIRED_ARGUMENTS: Dict[OperationType, Tuple[str, ...]] = {
    OperationType.MAP: ("fn",),
    OperationType.FILTER: ("fn",),
    OperationType.SKIP: ("count",),
    OperationType.TAKE: ("count",),
    OperationType.STEP_BY: ("size",),
    OperationType.SKIP_WHILE: ("fn",),
    OperationType.TAKE_WHILE: ("fn",),
    OperationType.CHUNK: ("size",),
    OperationType.ENUMERATE: (),
    OperationType.CONCAT: ("others",),
    OperationType.CYCLE: (),
    OperationType.SCAN: ("fn",),
    OperationType.ZIP: ("others",),
    OperationType.FLATTEN: (),
    OperationType.FLAT_MAP: ("fn",),
    OperationType.JOIN: ("value",),
    OperationType.JOIN_WITH: ("others",),
    OperationType.EACH: ("fn",),
}


class OperationStep(BaseModel):
    """One adaptor in a pipeline"""
    type: OperationType = Field(
        ...,
        description="Adaptor to apply"
    )
    fn: Optional[Callable[..., Any]] = Field(
        None,
        description="Mapping function, predicate or reducer"
    )
    count: Optional[int] = Field(
        None,
        description="Amount for skip / take; negative values act as 0"
    )
    size: Optional[int] = Field(
        None,
        description="Chunk size or step interval",
        ge=1
    )
    depth: Optional[float] = Field(
        None,
        description="Flatten depth; infinity flattens completely",
        ge=0
    )
    value: Any = Field(
        None,
        description="Join value, or scan seed when given"
    )
    others: Optional[List[Any]] = Field(
        None,
        description="Extra sequences for concat / zip; join_with uses the first"
    )

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "type": "take",
                "count": 5
            }
        }
    )

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        """Accept 'flatMap' and 'FLAT_MAP' style names as well as 'flat_map'"""
        if isinstance(v, str):
            v = v.strip()
            if "_" in v or v.isupper():
                return v.lower()
            snake = "".join(f"_{c.lower()}" if c.isupper() else c for c in v)
            return snake.lstrip("_")
        return v

    @model_validator(mode='after')
    def check_required_arguments(self):
        """Every operation must carry the arguments it needs"""
        missing = [
            name for name in REQUIRED_ARGUMENTS[self.type]
            if name not in self.model_fields_set or getattr(self, name) is None
        ]
        if self.type is OperationType.JOIN and "value" in self.model_fields_set:
            missing = [name for name in missing if name != "value"]
        if missing:
            raise ValueError(f"Operation '{self.type.value}' requires: {', '.join(missing)}")
        if self.type is OperationType.JOIN_WITH and len(self.others) != 1:
            raise ValueError("Operation 'join_with' takes exactly one separator sequence")
        return self

    @property
    def has_seed(self) -> bool:
        return "value" in self.model_fields_set


class PipelineConfig(BaseModel):
    """Ordered adaptors plus the collection shape of the result"""
    operations: List[OperationStep] = Field(
        default_factory=list,
        description="Adaptors applied in order"
    )
    collect_as: CollectionKind = Field(
        CollectionKind.LIST,
        description="Accumulator shape for the result"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class PaginationRequest(BaseModel):
    """Request for one page of a pipeline's output"""
    page_number: int = Field(
        1,
        description="Page to fetch (1-indexed)",
        ge=1
    )
    page_size: int = Field(
        10,
        description="Elements per page",
        ge=1
    )
    operations: List[OperationStep] = Field(
        default_factory=list,
        description="Adaptors applied before paginating"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ChunkingRequest(BaseModel):
    """Request for fixed-size chunks of a pipeline's output"""
    chunk_size: int = Field(
        ...,
        description="Elements per chunk",
        ge=1
    )
    max_chunks: Optional[int] = Field(
        None,
        description="Stop after this many chunks",
        ge=1
    )
    operations: List[OperationStep] = Field(
        default_factory=list,
        description="Adaptors applied before chunking"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)
