from enum import Enum
from typing import Optional, Sequence
from fastapi import Request

from delivery.core.config.settings import settings


class ErrorKey(Enum):
    INTERNAL_ERROR = "error_500"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNABLE_TO_SAVE = "UNABLE_TO_SAVE"
    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
    RESTAURANT_NOT_FOUND = "RESTAURANT_NOT_FOUND"
    NO_TENANT_BOUND = "NO_TENANT_BOUND"
    PROVISIONING_FAILED = "PROVISIONING_FAILED"
    INVALID_DATABASE_NAME = "INVALID_DATABASE_NAME"


ERROR_MESSAGES = {
    "en": {
        ErrorKey.INTERNAL_ERROR: "An internal server error occurred. Please try again later.",
        ErrorKey.NOT_FOUND: "The requested resource was not found.",
        ErrorKey.VALIDATION_FAILED: "Validation failed",
        ErrorKey.UNABLE_TO_SAVE: "Unable to save.",
        ErrorKey.TENANT_NOT_FOUND: "Tenant not found or inactive",
        ErrorKey.RESTAURANT_NOT_FOUND: "Restaurant {0} not found.",
        ErrorKey.NO_TENANT_BOUND: "No tenant database is bound to this request.",
        ErrorKey.PROVISIONING_FAILED: "Failed to {0} for tenant {1} ({2}): {3}",
        ErrorKey.INVALID_DATABASE_NAME: "Invalid database name: {0}",
    },
    "pt": {
        ErrorKey.INTERNAL_ERROR: "Ocorreu um erro interno no servidor. Tente novamente mais tarde.",
        ErrorKey.NOT_FOUND: "O recurso solicitado não foi encontrado.",
        ErrorKey.VALIDATION_FAILED: "Falha na validação",
        ErrorKey.UNABLE_TO_SAVE: "Não foi possível salvar.",
        ErrorKey.TENANT_NOT_FOUND: "Restaurante não encontrado ou inativo",
        ErrorKey.RESTAURANT_NOT_FOUND: "Restaurante {0} não encontrado.",
    },
}

FIELD_MESSAGES = {
    "en": {
        "unique": "The {0} has already been taken.",
    },
    "pt": {
        "unique": "O campo {0} já está sendo utilizado.",
    },
}


def resolve_language(request: Optional[Request] = None, lang: str = None) -> str:
    """Language from ?lang= or the first Accept-Language entry, else the default."""
    user_lang = lang
    if request is not None:
        header = request.headers.get("Accept-Language") or ""
        first = header.split(",")[0].split(";")[0].strip()
        user_lang = request.query_params.get("lang") or first[:2].lower() or lang

    return (
        user_lang
        if user_lang in settings.SUPPORTED_LANGUAGES
        else settings.DEFAULT_LANGUAGE
    )


def get_error_message(
    error_key: ErrorKey,
    request: Request = None,
    lang: str = None,
    error_variables: Sequence[str] = (),
):
    """
    Retrieves an error message dynamically based on the user's language preference.
    Falls back to DEFAULT_LANGUAGE, then to English, if no message is found.
    """
    if not isinstance(error_key, ErrorKey):
        raise ValueError(f"Invalid error key: {error_key}")

    lang = resolve_language(request, lang)

    template = ERROR_MESSAGES.get(lang, {}).get(error_key) or ERROR_MESSAGES["en"].get(
        error_key, error_key.value
    )
    return template.format(*error_variables)


def get_field_message(rule: str, field: str, lang: str = None) -> str:
    lang = resolve_language(lang=lang)
    template = FIELD_MESSAGES.get(lang, {}).get(rule) or FIELD_MESSAGES["en"][rule]
    return template.format(field)
