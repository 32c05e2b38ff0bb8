"""Buffered log stream that ships its contents to an S3 object per epoch."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from .buffer import ChunkBuffer, RollbackSnapshot
from .config import StreamLoggerConfig
from .errors import StreamLoggerError, UploadError
from .metadata import ObjectMetadata
from .naming import object_key
from .scheduler import FlushScheduler, should_flush_now
from .serializer import prepare_payload
from .store import ObjectStore, build_s3_client

logger = logging.getLogger(__name__)

UploadCallback = Callable[[Optional[Exception], Optional[Mapping[str, Any]]], None]
ErrorListener = Callable[[Exception], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class S3StreamLogger:
    """Writable stream that batches writes and uploads them to S3.

    Writes are accepted into memory immediately. A flush is triggered when the
    buffered bytes exceed ``buffer_size`` or ``upload_delay`` has passed since
    the last flush; otherwise a debounced timer flushes after ``upload_delay``
    of quiet. Each flush overwrites the current object with everything
    written during its epoch. The object key rotates after ``rotate_every``,
    once the epoch grows past ``max_file_size``, or on ``flush_file()``.

    Flushes run one at a time on a dedicated worker thread. A failed flush
    keeps its data buffered for the next attempt and is reported to the
    error listeners.
    """

    def __init__(
        self,
        config: StreamLoggerConfig,
        client: Optional[ObjectStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.client = client if client is not None else build_s3_client(config)
        self._clock = clock or _utcnow
        self._name_format = config.resolved_name_format()
        self._metadata = ObjectMetadata.build(config)
        self._lock = threading.RLock()
        self._buffer = ChunkBuffer()
        self._scheduler = FlushScheduler()
        self._lane = ThreadPoolExecutor(max_workers=1, thread_name_prefix="s3-streamlogger")
        self._error_listeners: List[ErrorListener] = []
        self._unwritten = 0
        self._auto_flush_queued = False
        self._closed = False
        self._new_file()

    def __enter__(self) -> "S3StreamLogger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def object_key(self) -> str:
        with self._lock:
            return self._key

    @property
    def file_created_at(self) -> datetime:
        with self._lock:
            return self._file_created_at

    @property
    def unwritten(self) -> int:
        """Bytes written since the last flush attempt began."""
        with self._lock:
            return self._unwritten

    @property
    def buffered_bytes(self) -> int:
        """Size of the current epoch's body, uploaded or not."""
        with self._lock:
            return self._buffer.total_bytes()

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return True

    def add_error_listener(self, listener: ErrorListener) -> None:
        with self._lock:
            self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        with self._lock:
            self._error_listeners.remove(listener)

    def write(self, data: Union[str, bytes, bytearray]) -> int:
        if isinstance(data, str):
            chunk = data.encode(self.config.encoding)
        else:
            chunk = bytes(data)
        with self._lock:
            if self._closed:
                raise ValueError("I/O operation on closed S3StreamLogger")
            self._buffer.append(chunk)
            self._unwritten += len(chunk)
            self._scheduler.cancel()
            if should_flush_now(
                self._clock(),
                self._last_file_written_at,
                self.config.upload_delay_td,
                self._unwritten,
                self.config.buffer_size,
            ):
                self._queue_auto_flush()
            else:
                self._scheduler.arm(self.config.upload_delay / 1000, self._on_timer)
        return len(data)

    def flush(self) -> None:
        """No-op for file-object callers; uploads follow the flush schedule."""

    def upload(
        self,
        force_new_file: bool = False,
        callback: Optional[UploadCallback] = None,
    ) -> "Future[bool]":
        """Queue one flush attempt; the future resolves to whether it succeeded."""
        with self._lock:
            if self._closed:
                raise ValueError("I/O operation on closed S3StreamLogger")
            return self._lane.submit(self._flush, force_new_file, callback)

    def flush_file(self, callback: Optional[UploadCallback] = None) -> "Future[bool]":
        """Upload what is buffered and start a new object afterwards.

        With nothing buffered the store is not called and the current object
        key is kept; rotation only follows an upload.
        """
        return self.upload(True, callback)

    def finalize(self, callback: Optional[UploadCallback] = None) -> "Future[bool]":
        """Queue the last non-rotating flush and refuse further writes."""
        with self._lock:
            if self._closed:
                raise ValueError("S3StreamLogger already finalized")
            self._closed = True
            self._scheduler.cancel()
            future = self._lane.submit(self._flush, False, callback)
        self._lane.shutdown(wait=False)
        return future

    def close(self) -> None:
        if self._closed:
            return
        future = self.finalize()
        future.result()
        self._lane.shutdown(wait=True)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every flush queued so far has finished."""
        with self._lock:
            if self._closed:
                future = None
            else:
                future = self._lane.submit(lambda: None)
        if future is None:
            self._lane.shutdown(wait=True)
            return
        future.result(timeout)

    def _new_file(self) -> str:
        """Start a new epoch. Must hold the lock or be called from __init__."""
        self._file_created_at = self._clock()
        self._last_file_written_at = self._file_created_at
        self._key = object_key(self._file_created_at, self.config.folder, self._name_format)
        return self._key

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # a write may have re-armed or cancelled the timer while it waited
            if not self._scheduler.is_current(generation):
                return
            self._queue_auto_flush()

    def _queue_auto_flush(self) -> None:
        with self._lock:
            if self._closed or self._auto_flush_queued:
                return
            self._auto_flush_queued = True
            self._lane.submit(self._flush, False, None, True)

    def _flush(
        self,
        force_new_file: bool,
        callback: Optional[UploadCallback],
        automatic: bool = False,
    ) -> bool:
        with self._lock:
            if automatic:
                self._auto_flush_queued = False
            self._scheduler.cancel()
            now = self._clock()
            self._last_file_written_at = now
            elapsed = now - self._file_created_at
            rotating = (
                force_new_file
                or elapsed > self.config.rotate_every_td
                or self._buffer.total_bytes() > self.config.max_file_size
            )
            snapshot = RollbackSnapshot(
                unwritten=self._unwritten,
                key=self._key,
                chunks=self._buffer.snapshot(rotating),
            )
            self._unwritten = 0
            pending = snapshot.chunks if rotating else self._buffer.chunks()

        if not pending:
            logger.debug("Nothing buffered for %s; skipping upload", snapshot.key)
            self._notify(callback, None, None)
            return True

        try:
            body = prepare_payload(
                pending,
                save_logs_in_json=self.config.save_logs_in_json,
                compress=self.config.compress,
                encoding=self.config.encoding,
            )
            response = self._put(snapshot.key, body)
        except StreamLoggerError as exc:
            self._rollback(snapshot)
            logger.warning(
                "Flush of %s failed; keeping %s bytes buffered: %s",
                snapshot.key,
                snapshot.unwritten,
                exc,
            )
            self._report_error(exc)
            self._notify(callback, exc, None)
            return False
        except Exception:
            self._rollback(snapshot)
            logger.exception("Unexpected error while flushing %s", snapshot.key)
            raise

        if rotating:
            with self._lock:
                new_key = self._new_file()
            logger.debug("Uploaded %s bytes to %s; rotated to %s", len(body), snapshot.key, new_key)
        else:
            logger.debug("Uploaded %s bytes to %s", len(body), snapshot.key)
        self._notify(callback, None, response)
        return True

    def _put(self, key: str, body: bytes) -> Mapping[str, Any]:
        params = {
            "Bucket": self.config.bucket,
            "Key": key,
            "Body": body,
            **self._metadata.to_params(),
        }
        try:
            return self.client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise UploadError(key, str(exc)) from exc
        except Exception as exc:
            # any store implementation, not only botocore clients
            raise UploadError(key, f"{type(exc).__name__}: {exc}") from exc

    def _rollback(self, snapshot: RollbackSnapshot) -> None:
        with self._lock:
            self._unwritten += snapshot.unwritten
            if snapshot.chunks:
                self._buffer.restore(snapshot.chunks)
                self._key = snapshot.key

    def _report_error(self, error: Exception) -> None:
        with self._lock:
            listeners = list(self._error_listeners)
        for listener in listeners:
            try:
                listener(error)
            except Exception:  # pragma: no cover - listener bugs must not stop the lane
                logger.exception("Error listener %r raised", listener)

    @staticmethod
    def _notify(
        callback: Optional[UploadCallback],
        error: Optional[Exception],
        response: Optional[Mapping[str, Any]],
    ) -> None:
        if callback is None:
            return
        try:
            callback(error, response)
        except Exception:  # pragma: no cover
            logger.exception("Upload callback raised")


__all__ = ["S3StreamLogger"]
