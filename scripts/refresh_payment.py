"""
Manually reconcile a payment with Mercado Pago.

Operator counterpart of the storefront's refresh buttons. Uses the same
reconciliation engine as the API, configured from the environment / .env.

Usage:
    python scripts/refresh_payment.py --payment-id 123
    python scripts/refresh_payment.py --user-id <seller uuid>
    python scripts/refresh_payment.py --product-id <uuid> --buyer-email buyer@example.com
    python scripts/refresh_payment.py --webhook 123     # same lookup order as the webhook
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import close_resources, get_reconciliation_engine, get_settings
from config.logging_config import configure_logging
from domain.errors import StorefrontError


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile a payment with Mercado Pago")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--payment-id", help="Sale payment id")
    target.add_argument("--user-id", help="Seller id whose subscription should be refreshed")
    target.add_argument("--product-id", help="Product id (requires --buyer-email)")
    target.add_argument("--webhook", metavar="PAYMENT_ID", help="Reconcile like a webhook delivery")
    parser.add_argument("--buyer-email", help="Buyer email for --product-id")
    args = parser.parse_args(argv)

    if args.product_id and not args.buyer_email:
        parser.error("--product-id requires --buyer-email")
    return args


def refresh(args: argparse.Namespace) -> str:
    engine = get_reconciliation_engine()

    if args.payment_id:
        return engine.reconcile_sale(args.payment_id)
    if args.user_id:
        return engine.reconcile_subscription(user_id=args.user_id)
    if args.product_id:
        return engine.refresh_membership(args.product_id, args.buyer_email)
    return engine.reconcile_payment(args.webhook)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        status = refresh(args)
    except StorefrontError as e:
        print(f"[ERROR] {e.message} (HTTP {e.status_code})")
        if e.details is not None:
            print(f"  Details: {e.details}")
        return 1
    finally:
        close_resources()

    print(f"[OK] Status: {status}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
