import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar, Union

from pydantic import BaseModel, ValidationError

from delivery.core.exceptions.error_messages import ErrorKey
from delivery.core.exceptions.exception_classes import AppException, ValidationException

logger = logging.getLogger(__name__)

T = TypeVar("T")

Attributes = dict[str, Any]
ValidateStage = Callable[[Attributes], Awaitable[None]]
MapStage = Callable[[Attributes], Attributes]
PersistStage = Callable[[Attributes], Awaitable[T]]
AfterStage = Callable[[T], Awaitable[T]]

# Errors callers can act upon; everything else is reported as UNABLE_TO_SAVE.
_PASS_THROUGH_STATUS = (404, 422)


@dataclass(frozen=True)
class SavePipeline(Generic[T]):
    """
    validate → map → persist → after, each stage a plain function.

    `persist` is the only write. `after` stages run in order on the saved
    entity and may return a replacement for it. Validation failures and
    not-found errors reach the caller unchanged; any other failure is logged
    with `source` and replaced by an opaque 422 "Unable to save."
    """

    persist: PersistStage
    validate: Sequence[ValidateStage] = ()
    map: Sequence[MapStage] = ()
    after: Sequence[AfterStage] = ()
    source: str = "SavePipeline"
    log_payload: bool = False
    hidden_payload: Sequence[str] = ()

    async def save(self, payload: Union[BaseModel, Attributes]) -> T:
        attributes = (
            payload.model_dump(exclude_unset=True)
            if isinstance(payload, BaseModel)
            else dict(payload)
        )

        try:
            for check in self.validate:
                await check(attributes)

            mapped = attributes
            for transform in self.map:
                mapped = transform(mapped)

            saved = await self.persist(mapped)

            for step in self.after:
                saved = await step(saved)

            return saved
        except Exception as exception:
            self._handle_exception(exception, attributes)

    def _handle_exception(self, exception: Exception, attributes: Attributes):
        if isinstance(exception, ValidationError):
            raise ValidationException.from_pydantic(exception) from exception

        if (
            isinstance(exception, AppException)
            and exception.status_code in _PASS_THROUGH_STATUS
        ):
            raise exception

        logger.error(
            f"{self.source}: {exception}",
            extra=self._get_error_log_data(attributes),
        )
        raise AppException(
            ErrorKey.UNABLE_TO_SAVE, status_code=422, error_detail=str(exception)
        ) from exception

    def _get_error_log_data(self, attributes: Attributes) -> dict:
        log_data = {"source": self.source}

        if self.log_payload:
            masked = {
                key: ("***" if key in self.hidden_payload else value)
                for key, value in attributes.items()
            }
            log_data["payload"] = json.dumps(masked, default=str)

        return log_data
