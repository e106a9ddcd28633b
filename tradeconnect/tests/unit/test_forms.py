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

from decimal import Decimal

from tradeconnect.forms.campaign import EmailCampaignForm, EmailTemplateForm
from tradeconnect.forms.event import AccessTypeForm, CapacityForm, EventForm
from tradeconnect.forms.member import MemberForm
from tradeconnect.forms.promotion import PromoCodeForm
from tradeconnect.models.campaign import CampaignAudience
from tradeconnect.models.promotion import DiscountType
from tradeconnect.tests.unit.base import BaseTestCase


class TestEventForms(BaseTestCase):
    def test_partial_update_keeps_values(self):
        event = self.event()

        form = EventForm(data={"price": "120"}, instance=event, context={"organization_id": event.organization_id})

        assert form.is_valid(), form.errors
        form.save()
        event.refresh_from_db()
        assert event.price == Decimal("120.00")
        assert event.name == "Trade Expo"

    def test_virtual_event_needs_link(self):
        form = EventForm(
            data={"is_virtual": True}, instance=self.event(), context={"organization_id": self.organization().id}
        )

        assert not form.is_valid()
        assert "virtual_url" in form.errors

    def test_access_type_capacity_bounded(self):
        self.create_capacity(total=10)

        form = AccessTypeForm(data={"name": "VIP", "capacity": 11}, context={"event": self.event()})

        assert not form.is_valid()
        assert "capacity" in form.errors

    def test_access_type_numbered(self):
        form = AccessTypeForm(data={"name": "VIP", "price": "80"}, context={"event": self.event()})

        assert form.is_valid(), form.errors
        assert form.save().number == 1

    def test_capacity_threshold_order(self):
        form = CapacityForm(data={"total": 100, "alert_low": 90, "alert_medium": 80, "alert_high": 95})

        assert not form.is_valid()
        assert "alert_medium" in form.errors

    def test_capacity_overbooking_limit(self):
        form = CapacityForm(data={"total": 100, "overbooking_percentage": 60})

        assert not form.is_valid()
        assert "overbooking_percentage" in form.errors


class TestPromotionForms(BaseTestCase):
    def form(self, data):
        return PromoCodeForm(data=data, context={"organization_id": self.organization().id})

    def test_duplicate_code(self):
        self.create_promo_code()

        form = self.form({"code": "save10", "value": "5"})

        assert not form.is_valid()
        assert "code" in form.errors

    def test_percentage_above_hundred(self):
        form = self.form({"code": "HALF", "value": "150"})

        assert not form.is_valid()
        assert "value" in form.errors

    def test_buy_x_get_y_quantities(self):
        form = self.form({"code": "BUNDLE", "value": "0", "discount_type": DiscountType.BUY_X_GET_Y})

        assert not form.is_valid()
        assert "buy_quantity" in form.errors
        assert "get_quantity" in form.errors


class TestCampaignForms(BaseTestCase):
    def test_template_syntax(self):
        form = EmailTemplateForm(
            data={"name": "Broken", "subject": "Hi {{ name", "body": "ok"},
            context={"organization_id": self.organization().id},
        )

        assert not form.is_valid()
        assert "subject" in form.errors

    def test_event_audience_requires_event(self):
        form = EmailCampaignForm(
            data={"name": "News", "audience": CampaignAudience.REGISTERED, "subject": "Hi", "body": "Body"},
            context={"organization_id": self.organization().id},
        )

        assert not form.is_valid()
        assert "event" in form.errors

    def test_content_required(self):
        form = EmailCampaignForm(data={"name": "News"}, context={"organization_id": self.organization().id})

        assert not form.is_valid()
        assert "body" in form.errors


class TestMemberForms(BaseTestCase):
    def test_identifiers_stored_clean(self):
        member = self.member()

        form = MemberForm(data={"nit": "12345679", "cui": "1234 56789 0101"}, instance=member)

        assert form.is_valid(), form.errors
        form.save()
        member.refresh_from_db()
        assert member.nit == "1234567-9"
        assert member.cui == "1234567890101"
        assert member.name == "Test"

    def test_invalid_identifiers(self):
        form = MemberForm(data={"nit": "12345678", "cui": "1234567892301"}, instance=self.member())

        assert not form.is_valid()
        assert "nit" in form.errors
        assert "cui" in form.errors

    def test_final_consumer_not_stored(self):
        form = MemberForm(data={"nit": "cf"}, instance=self.member())

        assert form.is_valid(), form.errors
        assert form.save().nit == ""
