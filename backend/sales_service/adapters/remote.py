import json
import logging
from typing import Dict, Iterator, Optional

import requests

from sales_service.context import CallerContext
from sales_service.errors import (
    AlreadyExists,
    FailedPrecondition,
    Internal,
    InvalidArgument,
    NotFound,
    PermissionDenied,
    Unauthenticated,
)

log = logging.getLogger(__name__)

# remote statuses that keep their meaning for our caller; anything else is Internal
_STATUS_ERRORS = {
    400: InvalidArgument,
    401: Unauthenticated,
    403: PermissionDenied,
    404: NotFound,
    409: AlreadyExists,
    412: FailedPrecondition,
}


class RemoteServiceClient:
    """
    Base for the synchronous HTTP clients of the identity, catalog and
    logistics services.

    Single resources come back as JSON objects; collections are streamed as
    newline-delimited JSON and yielded one object at a time. The caller's
    metadata is forwarded on every call. There is no retry: failures
    propagate to the service layer.
    """

    service_name = "remote"

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _raise_for_status(self, resp: requests.Response):
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
            detail = body.get("detail") if isinstance(body, dict) else body
        except ValueError:
            detail = resp.text
        error_cls = _STATUS_ERRORS.get(resp.status_code, Internal)
        raise error_cls(f"Error when calling {self.service_name} service: {detail}")

    def _get(self, ctx: CallerContext, path: str, params: Optional[Dict] = None) -> Dict:
        url = self._url(path)
        log.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(url, params=params, headers=ctx.as_headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise Internal(f"Error when calling {self.service_name} service: {exc}") from exc
        self._raise_for_status(resp)
        try:
            return resp.json()
        except ValueError as exc:
            raise Internal(f"invalid response from {self.service_name} service") from exc

    def _stream(self, ctx: CallerContext, path: str, params: Optional[Dict] = None) -> Iterator[Dict]:
        url = self._url(path)
        log.debug("GET (stream) %s params=%s", url, params)
        try:
            resp = self.session.get(
                url, params=params, headers=ctx.as_headers(), timeout=self.timeout, stream=True
            )
        except requests.RequestException as exc:
            raise Internal(f"Error when calling {self.service_name} service: {exc}") from exc

        with resp:
            self._raise_for_status(resp)
            try:
                for line in resp.iter_lines():
                    if not line:
                        continue
                    yield json.loads(line)
            except requests.RequestException as exc:
                raise Internal(f"cannot receive from {self.service_name} service: {exc}") from exc
            except ValueError as exc:
                raise Internal(f"invalid stream item from {self.service_name} service") from exc
