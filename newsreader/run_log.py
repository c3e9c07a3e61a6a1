from __future__ import annotations

import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Protocol, TextIO


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class EventLogger(Protocol):
    def info(self, event: str, *, url: str | None = None, **data: Any) -> None: ...

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None: ...

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None: ...


class NullLogger:
    """Discards every event. Used when a component is built without a logger."""

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        return None

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        return None

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        return None


class _Sink:
    """A JSONL destination shared by every logger bound to it."""

    def __init__(self, path: Path | None, stream: TextIO | None, overwrite: bool) -> None:
        self.path = path
        self.overwrite = overwrite
        self.fp = stream
        self.owns_fp = stream is None
        self.lock = Lock()
        self.opened = stream is not None

    def ensure_open(self) -> None:
        if self.fp is not None or self.path is None:
            return

        with self.lock:
            if self.fp is not None:
                return

            self.path.parent.mkdir(parents=True, exist_ok=True)
            mode = "w" if self.overwrite and not self.opened else "a"

            self.fp = self.path.open(mode, encoding="utf-8", newline="\n")
            self.opened = True

    def write_line(self, line: str) -> None:
        self.ensure_open()
        with self.lock:
            if self.fp is None:
                return
            self.fp.write(line + "\n")
            self.fp.flush()

    def close(self) -> None:
        with self.lock:
            if self.fp is not None and self.owns_fp:
                try:
                    self.fp.flush()
                finally:
                    self.fp.close()
            self.fp = None


class RunLogger:
    """
    JSONL event log for the content core.

    Each line is one JSON object (`ts`, `level`, `event`, `session_id`, optional
    `surface`, `url`, `data`). Writes either to a file it owns or to an already
    open text stream such as stderr.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        stream: TextIO | None = None,
        overwrite: bool = True,
        session_id: str | None = None,
        surface: str | None = None,
    ) -> None:
        if (path is None) == (stream is None):
            raise ValueError("exactly one of path or stream is required")

        self._sink = _Sink(Path(path) if path is not None else None, stream, bool(overwrite))
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._surface = (surface or "").strip() or None

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        overwrite: bool = True,
        session_id: str | None = None,
    ) -> "RunLogger":
        logger = cls(path, overwrite=overwrite, session_id=session_id)
        logger._sink.ensure_open()
        return logger

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def surface(self) -> str | None:
        return self._surface

    def for_surface(self, surface: str) -> "RunLogger":
        """Return a logger sharing this one's sink and session, tagged with a surface name."""
        child = RunLogger.__new__(RunLogger)
        child._sink = self._sink
        child._session_id = self._session_id
        child._surface = (surface or "").strip() or None
        return child

    def close(self) -> None:
        self._sink.close()

    def __enter__(self) -> "RunLogger":
        self._sink.ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("INFO", event, url=url, **data)

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("WARN", event, url=url, **data)

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        self.log("ERROR", event, url=url, **data)

    def exception(
        self,
        event: str,
        *,
        exc: BaseException,
        url: str | None = None,
        **data: Any,
    ) -> None:
        err = {
            "type": type(exc).__name__,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                limit=12000,
            ),
        }
        self.log("ERROR", event, url=url, error=err, **data)

    def log(self, level: str, event: str, *, url: str | None = None, **data: Any) -> None:
        lvl = (level or "").strip().upper() or "INFO"
        ev = (event or "").strip() or "event"

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": lvl,
            "event": ev,
            "session_id": self._session_id,
        }

        if self._surface:
            record["surface"] = self._surface

        u = (url or "").strip()
        if u:
            record["url"] = u

        if data:
            record["data"] = data

        self._sink.write_line(
            json.dumps(
                record,
                ensure_ascii=False,
                sort_keys=True,
                separators=(",", ":"),
                default=str,
            )
        )
