#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the Helpdesk

    python app.py                         build (with debug data) and serve
    python app.py --no-debug-data         build critical data only and serve
    python app.py --build-only            build and exit
    python app.py --send-test-email ADDR  check the SMTP_* settings and exit
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# .env must be loaded before the app reads its configuration
load_dotenv()

from helpdesk import create_app
from helpdesk.build import build_database
from helpdesk.buisness.notifications.mailer import MailDeliveryError, get_smtp_config, send_mail
from helpdesk.logger import get_logger

app = create_app()
logger = get_logger("helpdesk.run")


def env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def parse_arguments():
    parser = argparse.ArgumentParser(description='Helpdesk')
    parser.add_argument('--build-only', action='store_true',
                        help='Build database tables and exit. Critical data is ALWAYS checked and inserted.')
    parser.add_argument('--no-debug-data', action='store_false', dest='enable_debug_data',
                        help='Skip the sample locations, users, assets and tickets')
    parser.add_argument('--send-test-email', metavar='ADDRESS',
                        help='Send one message through the configured SMTP server and exit')
    return parser.parse_args()


def send_test_email(address):
    with app.app_context():
        config = get_smtp_config()
        if config is None:
            logger.error("SMTP_HOST is not set; e-mail notifications are disabled")
            return 1
        try:
            send_mail(address, 'Helpdesk SMTP test',
                      f'<p>Mail from the helpdesk reached you through {config.host}:{config.port} '
                      f'({config.encryption}).</p>')
        except MailDeliveryError as e:
            logger.error(f"Test e-mail failed: {e}")
            return 1
    logger.info(f"Test e-mail sent to {address}")
    return 0


if __name__ == '__main__':
    args = parse_arguments()

    if args.send_test_email:
        sys.exit(send_test_email(args.send_test_email))

    build_database(enable_debug_data=args.enable_debug_data and not args.build_only, app=app)
    if args.build_only:
        logger.info("Build completed, not starting the web server")
        sys.exit(0)

    debug_mode = env_flag('FLASK_DEBUG')
    use_reloader = env_flag('USE_RELOADER')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("⚠️  DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting helpdesk on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
