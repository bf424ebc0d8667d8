"""
CLI for RentShare Orders.
Start the dashboard or print a user's order lists from the command line.
"""

import sys
import argparse
from pathlib import Path

project_root = Path(__file__).resolve().parent


def cmd_dashboard(args):
    """Start the Streamlit dashboard."""
    import subprocess

    print("[DASHBOARD] Starting Orders dashboard...")

    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(project_root / "dashboard.py"),
        "--server.port", str(args.port)
    ])


def cmd_orders(args):
    """Sign in and print both order lists."""
    from rentshare.core.config import get_config
    from rentshare.core.logging import setup_logging
    from rentshare.auth.session import create_auth_client_from_config
    from rentshare.orders.client import create_backend_client_from_config
    from rentshare.orders.service import OrderService
    from rentshare.ui.page import TAB_TITLES
    from rentshare.ui.formatting import build_card_view

    config = get_config()
    setup_logging(config.log_path, config.get('general', 'log_level', default='INFO'))

    auth = create_auth_client_from_config()
    session = auth.sign_in(args.email, args.password)
    if session is None:
        print("[ERROR] Sign-in failed. Check your email and password.")
        sys.exit(1)

    service = OrderService(create_backend_client_from_config(session.access_token))
    lists = service.load_all(session.user_id)

    for view_type, orders in zip(TAB_TITLES, lists):
        print(f"\n{TAB_TITLES[view_type]} ({len(orders)})")
        if not orders:
            print("   (none)")
        for order in orders:
            card = build_card_view(order, view_type, config.routes)
            line = f"   [{card.badge}] {card.title} - {card.counterparty_label}: {card.counterparty_name}"
            if card.amount_text:
                line += f" - {card.amount_text}"
            print(f"{line} ({card.ordered_ago} ago)")


def main():
    parser = argparse.ArgumentParser(
        description="RentShare Orders CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py dashboard --port 8501
  python cli.py orders --email me@example.com --password secret
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    dashboard_parser = subparsers.add_parser("dashboard", help="Start Streamlit dashboard")
    dashboard_parser.add_argument("--port", type=int, default=8501, help="Dashboard port")

    orders_parser = subparsers.add_parser("orders", help="Print borrowed and lent orders")
    orders_parser.add_argument("--email", type=str, required=True, help="Account email")
    orders_parser.add_argument("--password", type=str, required=True, help="Account password")

    args = parser.parse_args()

    if args.command == "dashboard":
        cmd_dashboard(args)
    elif args.command == "orders":
        cmd_orders(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
