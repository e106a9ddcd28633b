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

from django.urls import (
    path,
)

from tradeconnect.views import access as views_ac
from tradeconnect.views import accounting as views_acc
from tradeconnect.views import campaign as views_cm
from tradeconnect.views import checkin as views_ck
from tradeconnect.views import promotion as views_pr
from tradeconnect.views import registration as views_rg

urlpatterns = [
    path(
        "api/v1/join/",
        views_ac.membership_join,
        name="api_membership_join",
    ),
    path(
        "api/v1/organizations/my/",
        views_ac.my_organizations,
        name="api_my_organizations",
    ),
    path(
        "api/v1/members/me/",
        views_ac.my_profile,
        name="api_my_profile",
    ),
    path(
        "api/v1/members/me/update/",
        views_ac.my_profile_update,
        name="api_my_profile_update",
    ),
    path(
        "api/v1/permissions/",
        views_ac.my_permissions,
        name="api_my_permissions",
    ),
    path(
        "api/v1/roles/",
        views_ac.organization_role_list,
        name="api_organization_role_list",
    ),
    path(
        "api/v1/roles/create/",
        views_ac.organization_role_create,
        name="api_organization_role_create",
    ),
    path(
        "api/v1/roles/<int:number>/assign/",
        views_ac.organization_role_assign,
        name="api_organization_role_assign",
    ),
    path(
        "api/v1/registrations/my/",
        views_rg.registration_my,
        name="api_registration_my",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/",
        views_rg.registration_detail,
        name="api_registration_detail",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/cancel/",
        views_rg.registration_cancel,
        name="api_registration_cancel",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/qr/",
        views_ck.qr_generate,
        name="api_qr_generate",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/qr/regenerate/",
        views_ck.qr_regenerate,
        name="api_qr_regenerate",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/qr/image/",
        views_ck.qr_image_view,
        name="api_qr_image",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/payments/",
        views_acc.payment_create,
        name="api_payment_create",
    ),
    path(
        "api/v1/registrations/<str:registration_uuid>/invoice/",
        views_acc.invoice_generate,
        name="api_invoice_generate",
    ),
    path(
        "api/v1/payments/<str:payment_uuid>/complete/",
        views_acc.payment_complete,
        name="api_payment_complete",
    ),
    path(
        "api/v1/payments/<str:payment_uuid>/fail/",
        views_acc.payment_fail,
        name="api_payment_fail",
    ),
    path(
        "api/v1/payments/<str:payment_uuid>/refund/",
        views_acc.payment_refund,
        name="api_payment_refund",
    ),
    path(
        "api/v1/invoices/",
        views_acc.invoice_list,
        name="api_invoice_list",
    ),
    path(
        "api/v1/invoices/<int:invoice_id>/",
        views_acc.invoice_detail,
        name="api_invoice_detail",
    ),
    path(
        "api/v1/invoices/<int:invoice_id>/cancel/",
        views_acc.invoice_cancel,
        name="api_invoice_cancel",
    ),
    path(
        "api/v1/nit/validate/",
        views_acc.nit_validate,
        name="api_nit_validate",
    ),
    path(
        "api/v1/cui/validate/",
        views_acc.cui_validate,
        name="api_cui_validate",
    ),
    path(
        "api/v1/promotions/",
        views_pr.promotion_list,
        name="api_promotion_list",
    ),
    path(
        "api/v1/promotions/create/",
        views_pr.promotion_create,
        name="api_promotion_create",
    ),
    path(
        "api/v1/promo-codes/",
        views_pr.promo_code_list,
        name="api_promo_code_list",
    ),
    path(
        "api/v1/promo-codes/create/",
        views_pr.promo_code_create,
        name="api_promo_code_create",
    ),
    path(
        "api/v1/promo-codes/validate/",
        views_pr.promo_code_validate,
        name="api_promo_code_validate",
    ),
    path(
        "api/v1/promo-codes/<int:promo_code_id>/update/",
        views_pr.promo_code_update,
        name="api_promo_code_update",
    ),
    path(
        "api/v1/promo-codes/<int:promo_code_id>/stats/",
        views_pr.promo_code_stats_view,
        name="api_promo_code_stats",
    ),
    path(
        "api/v1/campaigns/",
        views_cm.campaign_list,
        name="api_campaign_list",
    ),
    path(
        "api/v1/campaigns/create/",
        views_cm.campaign_create,
        name="api_campaign_create",
    ),
    path(
        "api/v1/campaigns/templates/",
        views_cm.template_list,
        name="api_template_list",
    ),
    path(
        "api/v1/campaigns/templates/create/",
        views_cm.template_create,
        name="api_template_create",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/update/",
        views_cm.campaign_update,
        name="api_campaign_update",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/schedule/",
        views_cm.campaign_schedule,
        name="api_campaign_schedule",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/send/",
        views_cm.campaign_send,
        name="api_campaign_send",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/pause/",
        views_cm.campaign_pause,
        name="api_campaign_pause",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/resume/",
        views_cm.campaign_resume,
        name="api_campaign_resume",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/cancel/",
        views_cm.campaign_cancel,
        name="api_campaign_cancel",
    ),
    path(
        "api/v1/campaigns/<int:campaign_id>/stats/",
        views_cm.campaign_stats_view,
        name="api_campaign_stats",
    ),
]
