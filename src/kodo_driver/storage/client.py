"""
HTTP client for the KODO object storage services.

Implements the ObjectStore protocol over httpx against KODO's management (rs),
listing (rsf), upload (up) and download (bound domain) services. Tokens and
signed URLs come from the Qiniu SDK's Auth; requests go through one httpx
client. No retries are performed here: failures surface as KodoError and the
caller decides what to do.
"""
from __future__ import annotations

import io
import json
import logging
import os
import posixpath
from typing import Any, BinaryIO, Dict, List, Optional, Sequence
from urllib.parse import quote, urlencode

import httpx
from qiniu import Auth
from qiniu.utils import entry

from ..errors import KodoError
from ..settings import Settings
from .base import ListPage, ObjectInfo
from .parts import LocalBytes, Part, RemoteRange

__all__ = ["KodoClient", "ResponseStream"]

logger = logging.getLogger(__name__)

USER_AGENT = "kodo-storage-driver/0.1.0"
FORM_MIME = "application/x-www-form-urlencoded"


class ResponseStream(io.RawIOBase):
    """
    Readable stream over a streaming httpx response.

    The first skip bytes of the body are discarded. Closing the stream closes
    the response and releases its connection.
    """

    def __init__(self, response: httpx.Response, skip: int = 0):
        self._response = response
        self._chunks = response.iter_bytes()
        self._buffer = b""
        self._skip = skip

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer:
            chunk = next(self._chunks, None)
            if chunk is None:
                return 0
            if self._skip:
                dropped = min(self._skip, len(chunk))
                self._skip -= dropped
                chunk = chunk[dropped:]
            self._buffer = chunk
        n = min(len(b), len(self._buffer))
        b[:n] = self._buffer[:n]
        self._buffer = self._buffer[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class _BoundedReader:
    """Reads at most length bytes from source, starting at its current position."""

    def __init__(self, source: BinaryIO, length: int):
        self._source = source
        self._remaining = length

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b""
        if size < 0 or size > self._remaining:
            size = self._remaining
        chunk = self._source.read(size)
        self._remaining -= len(chunk)
        return chunk


class KodoClient:
    """
    KODO ObjectStore implementation over httpx.

    One client is bound to one bucket. Management and listing requests are
    signed with a QBox token, uploads with an upload token scoped to the
    target key, and downloads go through signed private URLs under the
    configured base URL.
    """

    def __init__(self, settings: Settings, *, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize KODO client.

        Args:
            settings: Driver settings (bucket, credentials, hosts, timeouts)
            transport: Optional httpx transport, used by tests to stub the services
        """
        self._settings = settings
        self.bucket = settings.bucket
        self.hosts = settings.hosts
        self.auth = Auth(settings.access_key, settings.secret_key)

        self.client = httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s, connect=5.0),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

        logger.debug(
            f"KODO client for bucket {self.bucket}: rs={self.hosts.rs_host} rsf={self.hosts.rsf_host} "
            f"up={self.hosts.up_hosts[0]}"
        )

    def stat(self, key: str) -> ObjectInfo:
        """
        Get object metadata without downloading content.

        Raises:
            KodoError: code 612 if the key does not exist
        """
        url = f"{self.hosts.rs_host}/stat/{entry(self.bucket, key)}"
        data = self._call(url)
        return ObjectInfo(
            key=key,
            size=int(data.get("fsize", 0)),
            put_time=int(data.get("putTime", 0)),
            hash=data.get("hash", ""),
            mime_type=data.get("mimeType", ""),
        )

    def list(self, prefix: str, *, delimiter: str = "", marker: str = "", limit: int = 1000) -> ListPage:
        """
        List one page of keys under prefix.

        Returns:
            ListPage with items, common prefixes and the marker for the next
            page ("" when the listing is complete)
        """
        query: Dict[str, Any] = {"bucket": self.bucket, "limit": limit}
        if marker:
            query["marker"] = marker
        if prefix:
            query["prefix"] = prefix
        if delimiter:
            query["delimiter"] = delimiter

        url = f"{self.hosts.rsf_host}/list?{urlencode(query)}"
        data = self._call(url)

        items = [
            ObjectInfo(
                key=item["key"],
                size=int(item.get("fsize", 0)),
                put_time=int(item.get("putTime", 0)),
                hash=item.get("hash", ""),
                mime_type=item.get("mimeType", ""),
            )
            for item in data.get("items") or []
        ]
        return ListPage(
            items=items,
            prefixes=list(data.get("commonPrefixes") or []),
            marker=data.get("marker") or "",
        )

    def delete(self, key: str) -> None:
        url = f"{self.hosts.rs_host}/delete/{entry(self.bucket, key)}"
        self._call(url)

    def move(self, source_key: str, dest_key: str, *, force: bool = False) -> None:
        """Server-side rename within the bucket."""
        url = (
            f"{self.hosts.rs_host}/move/{entry(self.bucket, source_key)}"
            f"/{entry(self.bucket, dest_key)}"
        )
        if force:
            url += "/force/true"
        self._call(url)

    def private_url(self, key: str, expires_in: int) -> str:
        base_url = self._settings.base_url + quote(key, safe="/~")
        return self.auth.private_download_url(base_url, expires=expires_in)

    def open(self, key: str, offset: int = 0) -> BinaryIO:
        """
        Download key starting at offset.

        Returns:
            ResponseStream over the response body; the caller must close it

        Raises:
            KodoError: code 404 if the download service has no such object,
                or any other failure status
        """
        url = self.private_url(key, self._settings.default_expiry_s)
        headers = {}
        if offset > 0:
            headers["Range"] = f"bytes={offset}-"

        request = self.client.build_request("GET", url, headers=headers)
        try:
            response = self.client.send(request, stream=True)
        except httpx.RequestError as e:
            raise KodoError(0, f"Network error downloading {key}: {e}") from e

        if not response.is_success:
            try:
                response.read()
                _raise_for_status(response)
            finally:
                response.close()

        if offset > 0 and response.status_code != 206:
            # Range ignored: the body starts at byte 0
            logger.debug(f"Download of {key} ignored Range, skipping {offset} bytes")
            return ResponseStream(response, skip=offset)
        return ResponseStream(response)

    def put(self, key: str, data: BinaryIO, size: int) -> None:
        """Form-upload size bytes from data as the whole object at key."""
        logger.debug(f"Uploading {key} ({size} bytes)")
        token = self.auth.upload_token(self.bucket, key)
        self._upload(
            "/",
            fields={"token": token, "key": key},
            files={"file": (posixpath.basename(key) or "file", _BoundedReader(data, size), "application/octet-stream")},
        )

    def put_file(self, key: str, filename: str) -> None:
        size = os.path.getsize(filename)
        with open(filename, "rb") as f:
            self.put(key, f, size)

    def put_parts(self, key: str, parts: Sequence[Part]) -> None:
        """
        Replace key with the concatenation of parts in one upload request.

        The request is a multipart form posted to "<up>/putparts" with:
        - token: upload token scoped to key
        - key: the target key
        - parts: JSON list, one entry per part in order; remote ranges are
          {"key", "from", "to"} with "to" exclusive and -1 meaning end of
          object, local parts are {"file": "<field name>", "size": <length>}
        - one file field per local part carrying its bytes
        """
        manifest: List[Dict[str, Any]] = []
        files: Dict[str, Any] = {}
        for i, part in enumerate(parts):
            if isinstance(part, RemoteRange):
                manifest.append({"key": part.key, "from": part.start, "to": part.end})
            elif isinstance(part, LocalBytes):
                field = f"part{i}"
                manifest.append({"file": field, "size": part.length})
                files[field] = (field, _BoundedReader(part.source, part.length), "application/octet-stream")
            else:
                raise TypeError(f"Unsupported part type: {type(part).__name__}")

        logger.debug(f"Composing {key} from {len(manifest)} parts")
        token = self.auth.upload_token(self.bucket, key)
        self._upload(
            "/putparts",
            fields={"token": token, "key": key, "parts": json.dumps(manifest)},
            files=files,
        )

    def _call(self, url: str) -> Dict[str, Any]:
        """POST a signed management request and return its decoded JSON body."""
        token = self.auth.token_of_request(url, content_type=FORM_MIME)
        headers = {
            "Authorization": f"QBox {token}",
            "Content-Type": FORM_MIME,
        }
        response = self._send("POST", url, headers=headers)
        if not response.content:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise KodoError(response.status_code, f"Invalid JSON response: {e}") from e

    def _upload(self, path: str, *, fields: Dict[str, str], files: Dict[str, Any]) -> None:
        url = self.hosts.up_hosts[0].rstrip("/") + path
        self._send("POST", url, data=fields, files=files)

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise KodoError(0, f"Network error for {method} {url}: {e}") from e
        _raise_for_status(response)
        return response

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _raise_for_status(response: httpx.Response) -> None:
    """
    Raise KodoError unless response has a 2xx status.

    KODO uses non-standard status codes (612 for a missing key, 614 for an
    existing one), so httpx's own raise_for_status is not enough.
    """
    if response.is_success:
        return

    message = response.text
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            message = body["error"]
    except (json.JSONDecodeError, UnicodeDecodeError):
        pass

    raise KodoError(response.status_code, message, reqid=response.headers.get("X-Reqid"))
