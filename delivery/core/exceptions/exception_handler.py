import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from delivery.core.config.settings import settings
from delivery.core.exceptions.error_messages import ErrorKey, get_error_message
from delivery.core.exceptions.exception_classes import AppException, ValidationException


logger = logging.getLogger(__name__)


def app_exception_response(request: Request, error: AppException) -> JSONResponse:
    """Render an AppException; usable from middlewares that sit outside the handlers."""
    if isinstance(error, ValidationException):
        response = {
            "message": get_error_message(ErrorKey.VALIDATION_FAILED, request=request),
            "errors": error.errors,
        }
    else:
        response = {
            "message": get_error_message(
                request=request,
                error_key=error.error_key,
                error_variables=error.error_variables,
            ),
            "error_key": error.error_key.value,
        }
    if settings.DEBUG and error.error_detail:
        response["error_detail"] = error.error_detail

    return JSONResponse(content=jsonable_encoder(response), status_code=error.status_code)


def init_error_handlers(app):
    @app.exception_handler(AppException)
    def handle_app_exception(request: Request, error: AppException):
        if error.error_detail:
            logger.error(f"{error.error_key.value}: {error.error_detail}")
        logger.info(f"Handled bad request: {error}")
        return app_exception_response(request, error)

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, error: RequestValidationError):
        errors: dict[str, list[str]] = {}
        for item in error.errors():
            # drop the leading "body" / "query" location part
            loc = [str(part) for part in item["loc"][1:]] or [str(item["loc"][0])]
            errors.setdefault(".".join(loc), []).append(item["msg"])
        return app_exception_response(request, ValidationException(errors))

    @app.exception_handler(Exception)
    def handle_internal_server_error(request: Request, error: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {error!r}")
        response = {
            "message": get_error_message(
                error_key=ErrorKey.INTERNAL_ERROR, request=request
            ),
        }
        if settings.DEBUG:
            response["debug"] = {"exception": type(error).__name__, "detail": str(error)}
        return JSONResponse(content=jsonable_encoder(response), status_code=500)
