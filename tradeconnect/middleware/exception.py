# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.http import JsonResponse

from tradeconnect.utils.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    ReturnNowError,
    UserPermissionError,
)

if TYPE_CHECKING:
    from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status: int, **details) -> JsonResponse:
    """Build the JSON body shared by every API error."""
    return JsonResponse({"error": code, "message": message, **details}, status=status)


class ExceptionHandlingMiddleware:
    """Turn domain exceptions raised by views into JSON error responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request: HttpRequest, exception: Exception) -> HttpResponse | None:
        """Map domain exceptions to responses.

        Args:
            request: The HTTP request object that triggered the exception
            exception: The exception instance that was raised

        Returns:
            JsonResponse for handled exceptions, None for unhandled exceptions
            so that Django's default handling applies
        """
        handlers = [
            (NotFoundError, lambda ex: error_response("not_found", str(ex) or "Not found", 404)),
            (UserPermissionError, lambda ex: self._handle_permission_error(request, ex)),
            (BusinessRuleError, lambda ex: error_response(ex.code, ex.message, ex.status, **ex.details)),
            (ReturnNowError, lambda ex: ex.value),
        ]

        for exc_type, handler in handlers:
            if isinstance(exception, exc_type):
                return handler(exception)

        return None

    @staticmethod
    def _handle_permission_error(request: HttpRequest, ex: UserPermissionError) -> HttpResponse:
        if not request.user.is_authenticated:
            return error_response("authentication_required", "Authentication required", 401)
        logger.info(f"Permission denied to {request.user} on {request.path}: {ex}")
        return error_response("permission_denied", "Permission denied", 403, permission=str(ex))
