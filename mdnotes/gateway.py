"""
Request gateway — maps named operations to repository calls.

Every call comes back as an ``Envelope``; nothing raised by the data layer
escapes past this module.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from mdnotes.db.article_repo import ArticleRepository
from mdnotes.db.database import CancelToken, Database
from mdnotes.errors import (
    MdNotesError,
    NotFoundError,
    StatementError,
    StoreConnectionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    STATEMENT = "statement"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    UNKNOWN_OPERATION = "unknown_operation"
    INTERNAL = "internal"


_KIND_BY_ERROR: list[tuple[type[MdNotesError], ErrorKind]] = [
    (NotFoundError, ErrorKind.NOT_FOUND),
    (ValidationError, ErrorKind.VALIDATION),
    (StatementError, ErrorKind.STATEMENT),
    (StoreConnectionError, ErrorKind.CONNECTION),
]


@dataclass(frozen=True)
class Envelope:
    """Tagged result: ``success`` with ``data``, or failure with kind + message."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Envelope":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Envelope":
        return cls(success=False, error=message, kind=kind)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error, "kind": self.kind.value if self.kind else None}


# -- payload helpers -------------------------------------------------------------

def _mapping(payload: Any, operation: str) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError(f"{operation} expects an object payload")
    return payload


def _require(payload: dict[str, Any], key: str, operation: str) -> Any:
    if key not in payload:
        raise ValidationError(f"{operation} requires '{key}'")
    return payload[key]


def _scalar(payload: Any, operation: str) -> str:
    if payload is None or isinstance(payload, (dict, list)):
        raise ValidationError(f"{operation} expects a uuid")
    return payload


def _tag_name(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("articles:addTag expects tagName to be a string")
    return value


class Gateway:
    """Dispatch table over an ``ArticleRepository`` with a uniform envelope."""

    def __init__(self, repo: ArticleRepository, timeout: float = DEFAULT_TIMEOUT):
        self._repo = repo
        self._timeout = timeout
        self._handlers: dict[str, Callable[[Any], Any]] = {
            "articles:list": self._list,
            "articles:getByUuid": self._get_by_uuid,
            "articles:create": self._create,
            "articles:update": self._update,
            "articles:delete": self._delete,
            "tags:list": self._list_tags,
            "articles:addTag": self._add_tag,
            "articles:removeTag": self._remove_tag,
            "articles:getTags": self._get_tags,
            "articles:searchByTag": self._search_by_tag,
            "articles:search": self._search,
        }

    @classmethod
    def from_database(cls, db: Database, timeout: Optional[float] = None) -> "Gateway":
        return cls(ArticleRepository(db), timeout=timeout if timeout is not None else db.timeout)

    def operations(self) -> list[str]:
        return list(self._handlers)

    # -- entry points ------------------------------------------------------------

    def dispatch(
        self, operation: str, payload: Any = None, token: Optional[CancelToken] = None
    ) -> Envelope:
        """Run one operation as a single transaction and wrap the outcome."""
        handler = self._handlers.get(operation)
        if handler is None:
            return Envelope.fail(ErrorKind.UNKNOWN_OPERATION, f"Unknown operation: {operation}")
        try:
            with self._repo.db.transaction(token):
                data = handler(payload)
            return Envelope.ok(data)
        except MdNotesError as e:
            kind = next((k for err, k in _KIND_BY_ERROR if isinstance(e, err)), ErrorKind.INTERNAL)
            logger.warning(f"{operation} failed ({kind.value}): {e}")
            return Envelope.fail(kind, str(e))
        except Exception:
            logger.exception(f"{operation} failed unexpectedly")
            return Envelope.fail(ErrorKind.INTERNAL, f"{operation} failed")

    async def invoke(self, operation: str, payload: Any = None) -> Envelope:
        """
        Run ``dispatch`` off the event loop, bounded by the store timeout.

        On timeout the operation is interrupted and rolled back, so a
        ``timeout`` envelope means nothing was written. If it was already
        committing, its real outcome is returned instead.
        """
        token = CancelToken()
        worker = asyncio.ensure_future(
            asyncio.to_thread(self.dispatch, operation, payload, token)
        )
        try:
            return await asyncio.wait_for(asyncio.shield(worker), timeout=self._timeout)
        except asyncio.TimeoutError:
            if not self._repo.db.interrupt(token):
                return await worker
            logger.error(f"{operation} timed out after {self._timeout}s, rolled back")
            return Envelope.fail(
                ErrorKind.TIMEOUT, f"{operation} timed out; no changes were saved"
            )

    # -- handlers ----------------------------------------------------------------

    def _list(self, payload: Any) -> list[dict[str, Any]]:
        opts = _mapping(payload, "articles:list")
        articles = self._repo.list_all(
            sort_by=opts.get("sortBy", "updatedAt"),
            order=opts.get("order", "DESC"),
            limit=opts.get("limit", 100),
            offset=opts.get("offset", 0),
        )
        return [a.to_dict() for a in articles]

    def _get_by_uuid(self, payload: Any) -> Optional[dict[str, Any]]:
        article = self._repo.get_by_uuid(_scalar(payload, "articles:getByUuid"))
        return article.to_dict() if article else None

    def _create(self, payload: Any) -> dict[str, Any]:
        body = _mapping(payload, "articles:create")
        title = _require(body, "title", "articles:create")
        return self._repo.create(title, body.get("content", "")).to_dict()

    def _update(self, payload: Any) -> dict[str, Any]:
        body = _mapping(payload, "articles:update")
        return self._repo.update(
            _require(body, "uuid", "articles:update"),
            _require(body, "title", "articles:update"),
            _require(body, "content", "articles:update"),
        )

    def _delete(self, payload: Any) -> None:
        self._repo.delete(_scalar(payload, "articles:delete"))

    def _list_tags(self, payload: Any) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._repo.list_tags()]

    def _add_tag(self, payload: Any) -> dict[str, Any]:
        body = _mapping(payload, "articles:addTag")
        return self._repo.add_tag(
            _require(body, "uuid", "articles:addTag"),
            _tag_name(_require(body, "tagName", "articles:addTag")),
        )

    def _remove_tag(self, payload: Any) -> None:
        body = _mapping(payload, "articles:removeTag")
        self._repo.remove_tag(
            _require(body, "uuid", "articles:removeTag"),
            _require(body, "tagId", "articles:removeTag"),
        )

    def _get_tags(self, payload: Any) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._repo.get_tags(_scalar(payload, "articles:getTags"))]

    def _search_by_tag(self, payload: Any) -> list[dict[str, Any]]:
        body = _mapping(payload, "articles:searchByTag")
        articles = self._repo.search_by_tag(
            _require(body, "tagName", "articles:searchByTag"),
            sort_by=body.get("sortBy", "updatedAt"),
            order=body.get("order", "DESC"),
        )
        return [a.to_dict() for a in articles]

    def _search(self, payload: Any) -> list[dict[str, Any]]:
        body = _mapping(payload, "articles:search")
        articles = self._repo.search(
            body.get("keyword", ""),
            sort_by=body.get("sortBy", "updatedAt"),
            order=body.get("order", "DESC"),
        )
        return [a.to_dict() for a in articles]
