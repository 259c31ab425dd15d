import json
import logging
import threading
from typing import Callable, Dict, Iterator

from fastapi import Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from sales_service.errors import Cancelled

log = logging.getLogger(__name__)

RowProducer = Callable[[Session, Callable[[], bool]], Iterator[Dict]]


def ndjson_response(request: Request, session_factory, produce_rows: RowProducer) -> StreamingResponse:
    """
    Stream ``produce_rows`` as newline-delimited JSON.

    The rows are produced in the threadpool on a session of their own, since
    the request-scoped session is closed once the handler returns. The
    client connection is checked before every row is sent; a disconnect
    stops the producer and releases the session.
    """
    stopped = threading.Event()

    def lines() -> Iterator[str]:
        db = session_factory()
        try:
            for row in produce_rows(db, stopped.is_set):
                yield json.dumps(row) + "\n"
        except Cancelled:
            log.info("stream stopped: client went away")
        finally:
            db.close()

    async def body():
        source = lines()
        try:
            async for chunk in iterate_in_threadpool(source):
                if await request.is_disconnected():
                    stopped.set()
                    break
                yield chunk
        finally:
            stopped.set()
            await run_in_threadpool(source.close)

    return StreamingResponse(body(), media_type="application/x-ndjson")
