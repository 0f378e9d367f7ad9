"""
Multi-file upload scheduling.

Two modes:
- sequential: one file at a time, in input order
- concurrent (default): inputs are cut into consecutive chunks of
  max_concurrent; a chunk is launched together and the next chunk only
  starts once every upload in the current one has settled

Chunking caps in-flight uploads at max_concurrent but leaves slots idle
while a chunk waits for its slowest upload. That behavior is kept as is;
a rolling pool would change when uploads start.

Results always come back in input order, one per input, tagged with the
file name. A failing or raising upload never stops its siblings.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Awaitable, Callable, Iterator, Optional

from .models import DEFAULT_MAX_CONCURRENT, BatchOptions, OperationResult, source_name

logger = logging.getLogger(__name__)

UploadOne = Callable[[Any], Awaitable[OperationResult]]

NO_FILES_MESSAGE = "no files provided"


def chunked(items: Sequence[Any], size: int) -> Iterator[list[Any]]:
    """Yield consecutive slices of at most size items."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def _is_batch(sources: Any) -> bool:
    return isinstance(sources, Sequence) and not isinstance(sources, (str, bytes, bytearray))


def _as_result(outcome: Any, name: str) -> OperationResult:
    if isinstance(outcome, OperationResult):
        return outcome.with_file_name(name)
    # anything else is an exception raised by the upload
    logger.error("Upload raised", extra={"file_name": name, "error": str(outcome)})
    return OperationResult.fail(f"upload failed: {outcome}").with_file_name(name)


async def upload_batch(
    sources: Any,
    upload_one: UploadOne,
    options: Optional[BatchOptions] = None,
) -> list[OperationResult]:
    """
    Upload every source with upload_one and collect the results.

    Bad input (not a list, empty list, max_concurrent below 1) gives a
    single failed result rather than an empty list.
    """
    options = options or BatchOptions()
    max_concurrent = options.max_concurrent
    if max_concurrent is None:
        max_concurrent = DEFAULT_MAX_CONCURRENT

    if not _is_batch(sources) or len(sources) == 0:
        return [OperationResult.fail(NO_FILES_MESSAGE)]
    if max_concurrent < 1:
        return [OperationResult.fail("max_concurrent must be at least 1")]

    logger.info(
        "Starting batch upload",
        extra={
            "count": len(sources),
            "concurrent": options.concurrent,
            "max_concurrent": max_concurrent,
        },
    )

    if options.concurrent:
        results = await _upload_chunked(sources, upload_one, max_concurrent)
    else:
        results = await _upload_sequential(sources, upload_one)

    succeeded = sum(1 for r in results if r.success)
    logger.info(
        "Finished batch upload",
        extra={"count": len(results), "succeeded": succeeded, "failed": len(results) - succeeded},
    )
    return results


async def _upload_sequential(
    sources: Sequence[Any],
    upload_one: UploadOne,
) -> list[OperationResult]:
    results = []
    for source in sources:
        name = source_name(source)
        try:
            outcome: Any = await upload_one(source)
        except Exception as e:
            outcome = e
        results.append(_as_result(outcome, name))
    return results


async def _upload_chunked(
    sources: Sequence[Any],
    upload_one: UploadOne,
    max_concurrent: int,
) -> list[OperationResult]:
    results = []
    for index, chunk in enumerate(chunked(sources, max_concurrent)):
        logger.debug("Uploading chunk", extra={"chunk": index, "size": len(chunk)})
        outcomes = await asyncio.gather(
            *(upload_one(source) for source in chunk),
            return_exceptions=True,
        )
        for source, outcome in zip(chunk, outcomes):
            results.append(_as_result(outcome, source_name(source)))
    return results
