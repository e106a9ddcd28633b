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

from django.contrib.auth.models import User

from tradeconnect.models.member import Member


def create_member_profile_for_user(user: User, is_newly_created: bool) -> None:
    """Create the member profile of a new user and keep its email in sync.

    Args:
        user: User instance that was saved
        is_newly_created: Whether the user has just been created
    """
    if is_newly_created:
        Member.objects.create(
            user=user,
            name=user.first_name or user.username,
            surname=user.last_name,
            email=user.email,
        )
        return

    member = Member.objects.filter(user=user).first()
    if member and member.email != user.email:
        member.email = user.email
        member.save()
