"""
Batch scanner: runs the usage locator over every component and enum.

Elements are processed one at a time with a fixed pause between them to
stay under the content API's rate limits. Progress is reported after each
element; the callback may return False to stop. A stopped or interrupted
scan returns the summaries gathered so far with ``interrupted`` set.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from config import SCAN_DELAY
from containment import build_element_index
from loader import GraphQLTransport
from locator import UsageLocator
from models import (
    EntryRef,
    HygraphSchema,
    ScanProgress,
    ScanResult,
    SchemaElement,
    UsageResult,
    UsageSummary,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], Optional[bool]]


def scannable_elements(schema: HygraphSchema) -> List[SchemaElement]:
    """Non-system components and enums, in index order."""
    return [e for e in build_element_index(schema) if e.kind in ("component", "enum")]


def summarize(element: SchemaElement, result: UsageResult) -> UsageSummary:
    models: List[str] = []
    for usage in result.usages:
        if usage.model_name not in models:
            models.append(usage.model_name)
    return UsageSummary(
        name=element.name,
        kind=element.kind,
        count=result.total_usages,
        models=models,
        entries=[
            EntryRef(id=u.entry_id, model=u.model_name, title=u.entry_title)
            for u in result.usages
        ],
        partial=result.is_partial,
    )


def scan_all(
    transport: GraphQLTransport,
    schema: HygraphSchema,
    on_progress: Optional[ProgressCallback] = None,
    delay: float = SCAN_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    locator: Optional[UsageLocator] = None,
    **options: Any,
) -> ScanResult:
    """
    Find usages of every scannable element.

    Args:
        transport: GraphQL transport
        schema: classified schema
        on_progress: called after each element; returning False stops the scan
        delay: seconds to pause between elements
        sleep: sleep function, swappable in tests
        locator: preconfigured locator; built from ``options`` otherwise

    Returns:
        ScanResult, possibly partial. Elements that raised are listed in
        ``errors`` and have no summary.
    """
    locator = locator or UsageLocator(transport, schema, **options)
    elements = scannable_elements(schema)
    result = ScanResult(total=len(elements))

    try:
        for i, element in enumerate(elements):
            if i and delay > 0:
                sleep(delay)

            try:
                usage = locator.find_usage(element.name, element.kind)
            except Exception as e:
                logger.warning("Error scanning %s: %s", element.name, e)
                result.errors[element.name] = str(e)
            else:
                result.summaries[element.name] = summarize(element, usage)
            result.processed = i + 1

            if on_progress is not None:
                keep_going = on_progress(ScanProgress(i + 1, len(elements), element.name))
                if keep_going is False and i + 1 < len(elements):
                    result.interrupted = True
                    break
    except KeyboardInterrupt:
        logger.warning("Scan interrupted after %d of %d elements", result.processed, result.total)
        result.interrupted = True

    return result


def usage_statistics(result: ScanResult, top: int = 10) -> Dict[str, Any]:
    """
    Aggregate counts over a scan.

    ``unused`` lists elements with no usages in the models that could be
    queried; elements whose search was partial are kept apart in
    ``unverified`` rather than reported as unused.
    """
    summaries = list(result.summaries.values())
    used = [s for s in summaries if s.count > 0]
    unused = [s.name for s in summaries if s.count == 0 and not s.partial]
    unverified = [s.name for s in summaries if s.count == 0 and s.partial]
    ranked = sorted(used, key=lambda s: (-s.count, s.name))

    return {
        "scanned": result.processed,
        "total": result.total,
        "complete": result.complete,
        "used": len(used),
        "unused": sorted(unused),
        "unverified": sorted(unverified),
        "failed": sorted(result.errors),
        "total_usages": sum(s.count for s in summaries),
        "top": [{"name": s.name, "kind": s.kind, "count": s.count} for s in ranked[:top]],
    }
