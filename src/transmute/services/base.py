"""BaseService: foundation for transmute services.

Every service receives an :class:`Engine` at construction time and turns
the domain error taxonomy into failed ServiceResults.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from transmute.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from transmute.domain.errors import TransmuteError
    from transmute.services.engine import Engine

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class TranscodeService(BaseService):
            def reformat(self, text: str) -> ServiceResult:
                try:
                    ...
                except TransmuteError as exc:
                    return self._failure("reformat", exc)
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @staticmethod
    def _failure(op: str, exc: TransmuteError, **detail: Any) -> ServiceResult:
        """Failed result carrying *exc*'s code, message and detail."""
        logger.debug("%s failed: %s", op, exc.message, exc_info=exc)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code=exc.code,
                message=exc.message,
                detail={**exc.detail, **detail},
            ),
        )
