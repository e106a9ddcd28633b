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

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from tradeconnect.models.promotion import DiscountType, PromoCode, Promotion, UsageStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.core.exceptions import PromoCodeError
from tradeconnect.utils.promotion import (
    apply_promo_code,
    cancel_promo_usage,
    get_promo_code,
    promo_code_stats,
    validate_promo_code,
)


class TestCalculateDiscount(BaseTestCase):
    def test_percentage(self):
        promo_code = self.create_promo_code(value=Decimal("15"))

        assert promo_code.calculate_discount(Decimal("200")) == Decimal("30.00")

    def test_percentage_capped(self):
        promo_code = self.create_promo_code(value=Decimal("50"), max_discount_amount=Decimal("40"))

        assert promo_code.calculate_discount(Decimal("200")) == Decimal("40.00")

    def test_fixed_amount(self):
        promo_code = self.create_promo_code(discount_type=DiscountType.FIXED_AMOUNT, value=Decimal("25"))

        assert promo_code.calculate_discount(Decimal("100")) == Decimal("25.00")
        assert promo_code.calculate_discount(Decimal("10")) == Decimal("10.00")

    def test_special_price(self):
        promo_code = self.create_promo_code(discount_type=DiscountType.SPECIAL_PRICE, value=Decimal("60"))

        assert promo_code.calculate_discount(Decimal("100")) == Decimal("40.00")
        assert promo_code.calculate_discount(Decimal("50")) == Decimal("0.00")

    def test_buy_x_get_y(self):
        promo_code = self.create_promo_code(
            discount_type=DiscountType.BUY_X_GET_Y, value=Decimal("0"), buy_quantity=2, get_quantity=1
        )

        assert promo_code.calculate_discount(Decimal("300"), 3) == Decimal("100.00")
        assert promo_code.calculate_discount(Decimal("200"), 2) == Decimal("0.00")


class TestValidatePromoCode(BaseTestCase):
    def validate(self, code="SAVE10", amount=Decimal("100"), **kwargs):
        return validate_promo_code(code, self.organization().id, self.member(), amount, **kwargs)

    def assert_refused(self, code, **kwargs):
        with pytest.raises(PromoCodeError) as exc:
            self.validate(**kwargs)
        assert exc.value.code == code

    def test_valid(self):
        self.create_promo_code()

        res = self.validate(code=" save10 ")

        assert res["discount"] == Decimal("10.00")
        assert res["final_amount"] == Decimal("90.00")

    def test_stored_uppercase(self):
        promo_code = self.create_promo_code(code="summer")

        assert promo_code.code == "SUMMER"
        assert get_promo_code("Summer", self.organization().id) == promo_code

    def test_other_organization(self):
        other = self.create_organization(name="Other", slug="other")
        self.create_promo_code(organization=other)

        self.assert_refused("not_found")

    def test_inactive(self):
        self.create_promo_code(active=False)
        self.assert_refused("inactive")

    def test_promotion_not_running(self):
        promotion = Promotion.objects.create(organization=self.organization(), name="Spring", active=False)
        self.create_promo_code(promotion=promotion)
        self.assert_refused("inactive")

    def test_not_started(self):
        self.create_promo_code(start_date=timezone.now() + timedelta(days=1))
        self.assert_refused("not_started")

    def test_expired(self):
        self.create_promo_code(end_date=timezone.now() - timedelta(days=1))
        self.assert_refused("expired")

    def test_usage_limit(self):
        self.create_promo_code(max_uses_total=5, current_uses=5)
        self.assert_refused("usage_limit_reached")

    def test_member_limit(self):
        promo_code = self.create_promo_code()
        apply_promo_code(promo_code, self.member(), Decimal("100"))
        self.assert_refused("member_limit_reached")

    def test_minimum_amount(self):
        self.create_promo_code(min_purchase_amount=Decimal("150"))
        self.assert_refused("minimum_not_reached")

    def test_event_restriction(self):
        promo_code = self.create_promo_code()
        promo_code.events.add(self.create_event(slug="other"))

        self.assert_refused("not_valid_for_event", event=self.event())
        assert self.validate()["discount"] == Decimal("10.00")


class TestPromoUsage(BaseTestCase):
    def test_apply(self):
        promo_code = self.create_promo_code(max_uses_per_member=None)

        usage = apply_promo_code(promo_code, self.member(), Decimal("100"))
        apply_promo_code(promo_code, self.member(), Decimal("100"))

        promo_code.refresh_from_db()
        assert usage.discount_amount == Decimal("10.00")
        assert usage.final_amount == Decimal("90.00")
        assert promo_code.current_uses == 2

    def test_apply_rechecks_limits(self):
        promo_code = self.create_promo_code(max_uses_total=1)
        apply_promo_code(promo_code, self.member(), Decimal("100"))

        with pytest.raises(PromoCodeError) as exc:
            apply_promo_code(promo_code, self.create_member("other"), Decimal("100"))
        assert exc.value.code == "usage_limit_reached"

    def test_cancel_usage(self):
        promo_code = self.create_promo_code()
        registration = self.create_registration()
        apply_promo_code(promo_code, self.member(), Decimal("100"), registration)

        assert cancel_promo_usage(registration) == 1
        assert cancel_promo_usage(registration) == 0

        promo_code.refresh_from_db()
        assert promo_code.current_uses == 0

    def test_stats(self):
        promo_code = self.create_promo_code(max_uses_total=10)
        first = self.create_registration()
        apply_promo_code(promo_code, self.member(), Decimal("100"), first)
        other = self.create_member("other")
        apply_promo_code(promo_code, other, Decimal("200"), self.create_registration(member=other))
        cancel_promo_usage(first)
        promo_code.refresh_from_db()

        stats = promo_code_stats(promo_code)

        assert stats["current_uses"] == 1
        assert stats["remaining_uses"] == 9
        assert stats["unique_members"] == 1
        assert stats["cancelled_uses"] == 1
        assert stats["total_discount"] == Decimal("20.00")
        assert stats["total_revenue"] == Decimal("180.00")
        assert PromoCode.objects.get().usages.filter(status=UsageStatus.APPLIED).count() == 1
