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
from django.db.models.signals import m2m_changed, post_delete, post_save, pre_save
from django.dispatch import receiver

from tradeconnect.cache.capacity import clear_capacity_cache
from tradeconnect.cache.config import clear_config_cache
from tradeconnect.cache.organization import clear_organization_cache
from tradeconnect.cache.qr import clear_qr_cache
from tradeconnect.cache.role import remove_event_role_cache, remove_organization_role_cache
from tradeconnect.models.access import EventPermission, EventRole, OrganizationPermission, OrganizationRole
from tradeconnect.models.base import auto_assign_sequential_numbers, auto_set_uuid
from tradeconnect.models.checkin import QRCode
from tradeconnect.models.event import AccessType, Capacity, Event, EventConfig
from tradeconnect.models.organization import Organization, OrganizationConfig
from tradeconnect.models.registration import CapacityLock, Registration, WaitlistEntry
from tradeconnect.utils.member import create_member_profile_for_user
from tradeconnect.utils.organization import (
    auto_assign_permission_number,
    generate_organization_encryption_key,
    setup_event_organizer_role,
    setup_organization_admin_role,
)


@receiver(pre_save)
def pre_save_callback(sender, instance, *args, **kwargs):
    """Populate sequential numbers and short uuids on every model that has them."""
    auto_assign_sequential_numbers(instance)
    auto_set_uuid(instance)


# Organization signals
@receiver(pre_save, sender=Organization)
def pre_save_organization(sender, instance, **kwargs):
    generate_organization_encryption_key(instance)


@receiver(post_save, sender=Organization)
def post_save_organization(sender, instance, created, **kwargs):
    setup_organization_admin_role(instance, created)
    clear_organization_cache(instance)


@receiver(post_delete, sender=Organization)
def post_delete_organization(sender, instance, **kwargs):
    clear_organization_cache(instance)


@receiver(post_save, sender=OrganizationConfig)
def post_save_organization_config(sender, instance, **kwargs):
    clear_config_cache(instance)


@receiver(post_delete, sender=OrganizationConfig)
def post_delete_organization_config(sender, instance, **kwargs):
    clear_config_cache(instance)


# User signals
@receiver(post_save, sender=User)
def post_save_user_profile(sender, instance, created, **kwargs):
    create_member_profile_for_user(instance, created)


# Event signals
@receiver(post_save, sender=Event)
def post_save_event(sender, instance, created, **kwargs):
    setup_event_organizer_role(instance, created)
    clear_capacity_cache(instance.id)


@receiver(post_save, sender=EventConfig)
def post_save_event_config(sender, instance, **kwargs):
    clear_config_cache(instance)


@receiver(post_delete, sender=EventConfig)
def post_delete_event_config(sender, instance, **kwargs):
    clear_config_cache(instance)


# Capacity signals
@receiver(post_save, sender=Capacity)
@receiver(post_save, sender=AccessType)
@receiver(post_save, sender=Registration)
@receiver(post_save, sender=CapacityLock)
@receiver(post_save, sender=WaitlistEntry)
def post_save_capacity_reset(sender, instance, **kwargs):
    clear_capacity_cache(instance.event_id)


@receiver(post_delete, sender=Capacity)
@receiver(post_delete, sender=AccessType)
@receiver(post_delete, sender=Registration)
@receiver(post_delete, sender=CapacityLock)
@receiver(post_delete, sender=WaitlistEntry)
def post_delete_capacity_reset(sender, instance, **kwargs):
    clear_capacity_cache(instance.event_id)


# QRCode signals
@receiver(post_save, sender=QRCode)
def post_save_qr_code(sender, instance, **kwargs):
    clear_qr_cache(instance)


# Permission signals
@receiver(pre_save, sender=OrganizationPermission)
def pre_save_organization_permission(sender, instance, **kwargs):
    auto_assign_permission_number(instance)


@receiver(pre_save, sender=EventPermission)
def pre_save_event_permission(sender, instance, **kwargs):
    auto_assign_permission_number(instance)


# Role signals
@receiver(post_save, sender=OrganizationRole)
def post_save_organization_role(sender, instance, **kwargs):
    remove_organization_role_cache(instance.id)


@receiver(m2m_changed, sender=OrganizationRole.permissions.through)
def organization_role_permissions_changed(sender, instance, action, reverse, pk_set, **kwargs):
    if action not in ("post_add", "post_remove", "post_clear"):
        return
    for role_id in (pk_set or []) if reverse else [instance.id]:
        remove_organization_role_cache(role_id)


@receiver(post_save, sender=EventRole)
def post_save_event_role(sender, instance, **kwargs):
    remove_event_role_cache(instance.id)


@receiver(m2m_changed, sender=EventRole.permissions.through)
def event_role_permissions_changed(sender, instance, action, reverse, pk_set, **kwargs):
    if action not in ("post_add", "post_remove", "post_clear"):
        return
    for role_id in (pk_set or []) if reverse else [instance.id]:
        remove_event_role_cache(role_id)
