from django.core.management.base import BaseCommand
from django.utils.translation import gettext as _

from apps.promotions.services import expire_promotions


class Command(BaseCommand):
    help = _("Soft-delete coupons and discounts whose end date has passed")

    def handle(self, *args, **kwargs):
        report = expire_promotions()

        if report.total:
            self.stdout.write(
                self.style.SUCCESS(
                    _(
                        "Expired %(coupons)d coupon(s) and %(discounts)d discount(s)."
                    )
                    % {
                        "coupons": report.expired_coupons,
                        "discounts": report.expired_discounts,
                    }
                )
            )
        else:
            self.stdout.write(
                self.style.WARNING(_("No promotions were due to expire."))
            )
