"""flask-jwt-extended loaders rendering RFC 7807 problems for token failures."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask_jwt_extended import JWTManager

from storefront.core.errors import problem

log = logging.getLogger(__name__)


def register(manager: JWTManager) -> None:
    """Attach blocklist and error loaders to ``manager``.

    Access tokens are signed with ``JWT_ACCESS_SECRET`` (mirrored into
    ``JWT_SECRET_KEY``), so ``@jwt_required()`` verifies exactly the tokens
    minted by the token service. The blocklist loader consults the same
    denylist that logout writes to.
    """

    @manager.token_in_blocklist_loader
    def _is_revoked(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]) -> bool:
        from storefront.api.deps import get_denylist_store

        jti = jwt_payload.get("jti")
        if not jti:
            return True
        return get_denylist_store().is_revoked(jti)

    @manager.expired_token_loader
    def _expired(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        log.info("Rejected expired access token", extra={"reason": "expired"})
        return problem(HTTPStatus.UNAUTHORIZED, "TOKEN_EXPIRED", "Token has expired.")

    @manager.revoked_token_loader
    def _revoked(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        log.warning("Rejected revoked access token", extra={"reason": "revoked"})
        return problem(HTTPStatus.UNAUTHORIZED, "TOKEN_REVOKED", "Token has been revoked.")

    @manager.invalid_token_loader
    def _invalid(reason: str):
        log.warning("Rejected invalid access token", extra={"reason": reason})
        return problem(HTTPStatus.UNAUTHORIZED, "TOKEN_INVALID", "Token is invalid.")

    @manager.unauthorized_loader
    def _missing(reason: str):
        return problem(
            HTTPStatus.UNAUTHORIZED, "AUTH_HEADER_MISSING", "Missing bearer access token."
        )

    @manager.needs_fresh_token_loader
    def _not_fresh(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return problem(HTTPStatus.UNAUTHORIZED, "TOKEN_NOT_FRESH", "Fresh login required.")
