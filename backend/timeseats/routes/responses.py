# Overview: Shared helpers turning engine results into Flask JSON responses.

from flask import current_app

from ..extensions import db
from ..results import ErrorKind
from ..services.factory import build_services


CONFLICT_KINDS = {
    ErrorKind.INSUFFICIENT_STOCK,
    ErrorKind.INVALID_ORDER_STATE,
    ErrorKind.DUPLICATE_TICKET,
    ErrorKind.OVERLAPPING_SLOT,
    ErrorKind.SLOT_HAS_ACTIVE_INVENTORY,
    ErrorKind.PRODUCT_HAS_ACTIVE_INVENTORY,
    ErrorKind.PAYMENT_REQUIRED,
    ErrorKind.PAST_TIME_SLOT,
}


def services():
    """Fresh engine services bound to this request's session."""
    return build_services(db.session, current_app.config)


def status_for(kind: ErrorKind) -> int:
    if kind.value.endswith("NotFound"):
        return 404
    if kind in CONFLICT_KINDS:
        return 409
    return 400


def error_response(result):
    return result.error.to_dict(), status_for(result.kind)


def server_error(message: str):
    current_app.logger.exception(message)
    db.session.rollback()
    return {"error": "Internal server error"}, 500
