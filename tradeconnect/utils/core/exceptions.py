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

from typing import Any


class NotFoundError(Exception):
    """Generic exception for content not found scenarios."""


class UserPermissionError(Exception):
    """Exception raised when user lacks required permissions."""


# For when you want to just return a json value
class ReturnNowError(Exception):
    """Exception used to immediately return a value from view processing.

    Attributes:
        value: Value to return (typically JSON response)

    """

    def __init__(self, value: Any = None) -> None:
        """Initialize with optional value."""
        super().__init__()
        self.value = value


class BusinessRuleError(Exception):
    """Base for business rule violations reported back to the client.

    Attributes:
        code (str): Stable machine readable error code
        message (str): Human readable description
        details (dict): Extra data returned with the error

    """

    status = 400

    def __init__(self, code: str, message: str = "", **details: Any) -> None:
        """Initialize with error code, optional message and details."""
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        self.details = details


class CapacityError(BusinessRuleError):
    """Not enough seats, or the capacity setup forbids the operation."""

    status = 409


class RegistrationError(BusinessRuleError):
    """Registration cannot be created or moved to the requested status."""

    status = 409


class WaitlistError(BusinessRuleError):
    """Waitlist operation not allowed."""

    status = 409


class QRValidationError(BusinessRuleError):
    """QR code rejected at check-in.

    Attributes:
        result (str): Access log result code to record for the attempt

    """

    def __init__(self, code: str, message: str = "", result: str = "", **details: Any) -> None:
        """Initialize with the access log result of the failed attempt."""
        super().__init__(code, message, **details)
        self.result = result


class PromoCodeError(BusinessRuleError):
    """Promo code cannot be applied."""


class FelError(BusinessRuleError):
    """Electronic invoice could not be generated or certified."""
