"""
Default KODO service hosts per storage zone.

Zone 0 is East China, zone 1 is North China. Management (rs) and listing
(rsf) hosts are shared; upload hosts are zone specific. Downloads go through
the configured base URL, so no download host is needed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

__all__ = ["ZoneHosts", "ZONES"]


@dataclass(frozen=True)
class ZoneHosts:
    rs_host: str
    rsf_host: str
    up_hosts: Tuple[str, ...]


ZONES: Dict[int, ZoneHosts] = {
    0: ZoneHosts(
        rs_host="http://rs.qbox.me",
        rsf_host="http://rsf.qbox.me",
        up_hosts=("http://up.qiniu.com", "http://upload.qiniu.com"),
    ),
    1: ZoneHosts(
        rs_host="http://rs.qbox.me",
        rsf_host="http://rsf.qbox.me",
        up_hosts=("http://up-z1.qiniu.com", "http://upload-z1.qiniu.com"),
    ),
}
