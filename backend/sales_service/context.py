from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CallerContext:
    """
    Identity of the caller of one request.

    Built once per request from the transport metadata and passed explicitly
    into every service call. ``branch_id``/``region_id`` are only set when the
    transport already knows the caller's assignment; otherwise the identity
    service is asked.
    """

    tenant_id: str
    caller_id: str
    branch_id: Optional[str] = None
    region_id: Optional[str] = None

    def as_headers(self) -> Dict[str, str]:
        headers = {"X-Tenant-Id": self.tenant_id, "X-User-Id": self.caller_id}
        if self.branch_id:
            headers["X-Branch-Id"] = self.branch_id
        if self.region_id:
            headers["X-Region-Id"] = self.region_id
        return headers
