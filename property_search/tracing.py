import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def start_trace(query: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "trace_id": str(uuid.uuid4()),
        "ts": int(time.time() * 1000),
        "query": query,
        "attributes": attributes,
        "steps": [],
        "_t0": time.monotonic(),
    }


def add_step(trace: Dict[str, Any], step: Dict[str, Any]):
    trace.setdefault("steps", []).append(step)


def finish_trace(trace: Dict[str, Any], result: Dict[str, Any], path: Optional[str] = None) -> Dict[str, Any]:
    """Close the trace and, when ``path`` is set, append it to that JSONL file."""
    t0 = trace.pop("_t0", None)
    if t0 is not None:
        trace["elapsed_ms"] = round((time.monotonic() - t0) * 1000, 1)
    trace["result"] = result
    if path:
        try:
            directory = os.path.dirname(os.path.abspath(path))
            os.makedirs(directory, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(trace, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.warning("Could not write search trace to %s: %s", path, exc)
    return trace
