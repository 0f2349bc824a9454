"""Pricing and share-link rules, read from the Flask config."""
from decimal import Decimal

MIN_SHARE_TOKEN_BYTES = 12  # token_urlsafe(12) gives 16 characters


class OrderSettings:
    """Order rules passed explicitly into the services."""

    def __init__(self, max_discount_percent='100', clamp_net=True, totals_tolerance='0.01',
                 reject_totals_mismatch=False, share_token_bytes=24, public_base_url=''):
        self.max_discount_percent = Decimal(str(max_discount_percent))
        self.clamp_net = clamp_net
        self.totals_tolerance = Decimal(str(totals_tolerance))
        self.reject_totals_mismatch = reject_totals_mismatch
        self.share_token_bytes = max(int(share_token_bytes), MIN_SHARE_TOKEN_BYTES)
        self.public_base_url = (public_base_url or '').rstrip('/')

    @classmethod
    def from_config(cls, config):
        return cls(
            max_discount_percent=config.get('ORDER_MAX_DISCOUNT_PERCENT', '100'),
            clamp_net=config.get('ORDER_CLAMP_NET_AMOUNT', True),
            totals_tolerance=config.get('ORDER_TOTALS_TOLERANCE', '0.01'),
            reject_totals_mismatch=config.get('ORDER_REJECT_TOTALS_MISMATCH', False),
            share_token_bytes=config.get('SHARE_TOKEN_BYTES', 24),
            public_base_url=config.get('PUBLIC_BASE_URL', ''),
        )

    def __repr__(self):
        return (f"<OrderSettings(max_discount={self.max_discount_percent}, clamp_net={self.clamp_net}, "
                f"reject_mismatch={self.reject_totals_mismatch})>")


DEFAULT_SETTINGS = OrderSettings()
