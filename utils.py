"""
Utility functions for lazy pipelines

Builds LazyIterator chains from declarative operation lists and measures
the time and peak memory of running them.
"""

import time
import gc
import logging
import math
import tracemalloc
from typing import List, Dict, Any, Optional, Tuple, Union

from errors import InvalidOperationError
from lazy import LazyIterator
from models import (
    OperationStep, OperationType, PipelineConfig, PaginationRequest, ChunkingRequest
)
from protocols import get_protocol

logger = logging.getLogger(__name__)


# Global performance tracking
_performance_metrics = {
    "operations": [],
    "total_time_ms": 0.0,
    "total_memory_mb": 0.0,
    "operation_count": 0
}


def _record(performance_info: Dict[str, Any]) -> None:
    _performance_metrics["operations"].append(performance_info)
    _performance_metrics["total_time_ms"] += performance_info["execution_time_ms"]
    _performance_metrics["total_memory_mb"] += performance_info["memory_usage_mb"]
    _performance_metrics["operation_count"] += 1


def measure_performance(operation_name: str, func, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
    """
    Run func with timing and peak-memory tracking.

    Returns (result, performance_info). Only the size of the result is
    recorded in the global metrics; errors are recorded and re-raised.
    """
    tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
        _record({
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": False,
            "error": str(e),
            "timestamp": time.time()
        })
        logger.error(f"Error in {operation_name} after {execution_time_ms:.2f}ms: {e}")
        raise
    else:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
        performance_info = {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": True,
            "result_size": len(result) if hasattr(result, "__len__") else None,
            "timestamp": time.time()
        }
        _record(performance_info)
        return result, performance_info
    finally:
        tracemalloc.stop()


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    count = _performance_metrics["operation_count"]
    if count == 0:
        return {
            "total_operations": 0,
            "total_time_ms": 0.0,
            "total_memory_mb": 0.0,
            "avg_time_ms": 0.0,
            "avg_memory_mb": 0.0
        }

    return {
        "total_operations": count,
        "total_time_ms": _performance_metrics["total_time_ms"],
        "total_memory_mb": _performance_metrics["total_memory_mb"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count,
        "avg_memory_mb": _performance_metrics["total_memory_mb"] / count
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = {
        "operations": [],
        "total_time_ms": 0.0,
        "total_memory_mb": 0.0,
        "operation_count": 0
    }


# --------- pipeline construction ----------

OperationInput = Union[OperationStep, Dict[str, Any]]


def _to_steps(operations: Optional[List[OperationInput]]) -> List[OperationStep]:
    return [
        op if isinstance(op, OperationStep) else OperationStep.model_validate(op)
        for op in (operations or [])
    ]


def apply_operation(lazy_it: LazyIterator, op: OperationStep) -> LazyIterator:
    """Chain a single declared operation onto lazy_it"""
    op_type = op.type

    if op_type == OperationType.MAP:
        return lazy_it.map(op.fn)
    elif op_type == OperationType.FILTER:
        return lazy_it.filter(op.fn)
    elif op_type == OperationType.SKIP:
        return lazy_it.skip(op.count)
    elif op_type == OperationType.TAKE:
        return lazy_it.take(op.count)
    elif op_type == OperationType.STEP_BY:
        return lazy_it.step_by(op.size)
    elif op_type == OperationType.SKIP_WHILE:
        return lazy_it.skip_while(op.fn)
    elif op_type == OperationType.TAKE_WHILE:
        return lazy_it.take_while(op.fn)
    elif op_type == OperationType.CHUNK:
        return lazy_it.chunk(op.size)
    elif op_type == OperationType.ENUMERATE:
        return lazy_it.enumerate()
    elif op_type == OperationType.CONCAT:
        return lazy_it.concat(*op.others)
    elif op_type == OperationType.CYCLE:
        return lazy_it.cycle()
    elif op_type == OperationType.SCAN:
        if op.has_seed:
            return lazy_it.scan(op.fn, op.value)
        return lazy_it.scan(op.fn)
    elif op_type == OperationType.ZIP:
        return lazy_it.zip(*op.others)
    elif op_type == OperationType.FLATTEN:
        return lazy_it.flatten(1 if op.depth is None else _depth(op.depth))
    elif op_type == OperationType.FLAT_MAP:
        return lazy_it.flat_map(op.fn)
    elif op_type == OperationType.JOIN:
        return lazy_it.join(op.value)
    elif op_type == OperationType.JOIN_WITH:
        return lazy_it.join_with(op.others[0])
    elif op_type == OperationType.EACH:
        return lazy_it.each(op.fn)

    raise InvalidOperationError(f"Unknown op: {op_type}")


def _depth(depth: float):
    return depth if math.isinf(depth) else int(depth)


def build_pipeline(source, operations: Optional[List[OperationInput]] = None) -> LazyIterator:
    """Wrap source and chain each declared operation onto it, without pulling anything"""
    lazy_it = LazyIterator.from_(source)
    steps = _to_steps(operations)
    for op in steps:
        lazy_it = apply_operation(lazy_it, op)
    logger.debug(f"Built pipeline: {[op.type.value for op in steps]}")
    return lazy_it


def run_pipeline(source, pipeline: Union[PipelineConfig, Dict[str, Any]]):
    """Build the described pipeline and collect it into its collection kind"""
    if not isinstance(pipeline, PipelineConfig):
        pipeline = PipelineConfig.model_validate(pipeline)
    protocol = get_protocol(pipeline.collect_as)
    return build_pipeline(source, pipeline.operations).collect(protocol.create, protocol.extend)


# --------- measured drivers ----------

def process_lazy_operations(source_data, operations: List[OperationInput],
                            collect_as: str = "list") -> Dict[str, Any]:
    """Run a declared pipeline over source_data and report the result with its cost"""
    pipeline = PipelineConfig(operations=_to_steps(operations), collect_as=collect_as)
    result, performance = measure_performance("lazy_chain", run_pipeline, source_data, pipeline)

    return {
        "result": result,
        "operations_applied": [op.type.value for op in pipeline.operations],
        "performance": {
            "processing_time_ms": performance["execution_time_ms"],
            "memory_usage_mb": performance["memory_usage_mb"],
            "output_size": performance["result_size"],
            "lazy_evaluation": True,
            "operation": "lazy_chain"
        }
    }


def process_pagination(source_data,
                       request: Union[PaginationRequest, Dict[str, Any]]) -> Dict[str, Any]:
    """Fetch one page of a pipeline's output; the following page is detected by peeking"""
    if not isinstance(request, PaginationRequest):
        request = PaginationRequest.model_validate(request)

    def _fetch_page():
        lazy_it = build_pipeline(source_data, request.operations)
        offset = (request.page_number - 1) * request.page_size
        remaining = lazy_it.skip(offset)
        page_data = remaining.take(request.page_size).collect()
        return page_data, not remaining.peek().done

    (page_data, has_next_page), performance = measure_performance(
        f"pagination_page_{request.page_number}_size_{request.page_size}", _fetch_page
    )

    return {
        "page_data": page_data,
        "current_page": request.page_number,
        "page_size": request.page_size,
        "has_next_page": has_next_page,
        "has_previous_page": request.page_number > 1,
        "operations_applied": [op.type.value for op in request.operations],
        "performance": {
            "processing_time_ms": performance["execution_time_ms"],
            "memory_usage_mb": performance["memory_usage_mb"],
            "output_size": len(page_data),
            "operation": performance["operation"]
        }
    }


def process_chunking(source_data,
                     request: Union[ChunkingRequest, Dict[str, Any]]) -> Dict[str, Any]:
    """Split a pipeline's output into fixed-size chunks, optionally capped"""
    if not isinstance(request, ChunkingRequest):
        request = ChunkingRequest.model_validate(request)

    def _fetch_chunks():
        chunked = build_pipeline(source_data, request.operations).chunk(request.chunk_size)
        if request.max_chunks:
            chunked = chunked.take(request.max_chunks)
        return chunked.collect()

    chunks, performance = measure_performance(f"chunking_size_{request.chunk_size}", _fetch_chunks)
    total_items = sum(len(chunk) for chunk in chunks)

    return {
        "chunks": chunks,
        "total_chunks": len(chunks),
        "total_items": total_items,
        "chunk_size": request.chunk_size,
        "max_chunks": request.max_chunks,
        "operations_applied": [op.type.value for op in request.operations],
        "performance": {
            "processing_time_ms": performance["execution_time_ms"],
            "memory_usage_mb": performance["memory_usage_mb"],
            "output_size": total_items,
            "operation": performance["operation"]
        }
    }
