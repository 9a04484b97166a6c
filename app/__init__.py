import click
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from config import config

db = SQLAlchemy()


def create_app(config_name='default'):
    """Application factory — creates and configures the Flask app."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # ── Logging ───────────────────────────────────────────────────
    from app.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)

    from app.billing.gateway import ReceiptGateway
    app.extensions['receipt_gateway'] = ReceiptGateway()

    # ── Blueprints ────────────────────────────────────────────────
    from app.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from app.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix='/auth')

    from app.billing import billing as billing_blueprint
    app.register_blueprint(billing_blueprint, url_prefix='/billing')

    from app.history import history as history_blueprint
    app.register_blueprint(history_blueprint, url_prefix='/history')

    # ── Error Handlers ────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import render_template
        return render_template('errors/404.html', title='Page Not Found'), 404

    @app.errorhandler(500)
    def internal_error(e):
        from flask import render_template
        return render_template('errors/500.html', title='Server Error'), 500

    # ── Context Processor ─────────────────────────────────────────
    @app.context_processor
    def inject_gate():
        """Expose shop name and login state to every template."""
        from app.auth.decorators import is_authenticated
        return {
            'shop_name':     app.config.get('SHOP_NAME'),
            'authenticated': is_authenticated(),
        }

    @app.template_filter('currency')
    def currency_filter(amount):
        from app.utils.formatting import format_currency
        return format_currency(amount, app.config.get('CURRENCY_SYMBOL', '₹'))

    @app.template_filter('amount')
    def amount_filter(amount):
        from app.utils.formatting import format_amount
        return format_amount(amount)

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS termination at the load balancer) ──
    if app.config.get('BEHIND_PROXY'):
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        from app.billing import models  # noqa: F401

        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('show-receipts')
    @click.option('--limit', default=20, show_default=True, help='Rows to show')
    def show_receipts(limit):
        """List the newest receipts with the running revenue (diagnostic)."""
        from app.history.view_model import load_history, ERROR

        view = load_history(
            app.extensions['receipt_gateway'],
            symbol=app.config.get('CURRENCY_SYMBOL', '₹'),
            tz_name=app.config.get('RECEIPT_TIMEZONE'),
            logger=app.logger,
        )
        if view.status == ERROR:
            raise click.ClickException(view.error)
        if not view.receipts:
            click.echo('No receipts found. Run flask seed-demo for sample data.')
            return

        click.echo(f'{"Key":<6} {"Receipt":<12} {"Date":<12} {"Items":>5} {"Mode":<6} {"Grand Total":>14}')
        click.echo('─' * 60)
        for row in view.rows[:limit]:
            click.echo(
                f'{row.key:<6} {row.receipt_number:<12} {row.date_text:<12} '
                f'{row.item_count:>5} {row.payment_mode:<6} {row.grand_total_text:>14}'
            )
        click.echo('─' * 60)
        click.echo(f'{view.total_bills} bills, revenue {view.total_revenue_text}')

    @app.cli.command('seed-demo')
    @click.option('--days', default=7, show_default=True, help='Days of history to generate')
    def seed_demo(days):
        """Populate the store with sample receipts."""
        import random
        from datetime import datetime, timedelta, timezone
        from decimal import Decimal
        from app.billing.cart import Cart, PaymentMode
        from app.billing.receipt import build_receipt
        from app.billing.gateway import PersistenceError

        click.echo("🌱 Seeding demo receipts...")
        db.create_all()

        catalogue = [
            ('Pen', Decimal('10.00')), ('Notebook', Decimal('50.00')),
            ('Stapler', Decimal('120.00')), ('Marker', Decimal('35.00')),
            ('Envelope Pack', Decimal('45.00')), ('Glue Stick', Decimal('25.00')),
        ]
        gateway = app.extensions['receipt_gateway']
        prefix = app.config.get('RECEIPT_PREFIX', 'AT-')
        now = datetime.now(timezone.utc)
        created = 0

        for day in range(days, -1, -1):
            for _ in range(random.randint(2, 6)):
                cart = Cart(payment_mode=random.choice(list(PaymentMode)))
                for name, rate in random.sample(catalogue, random.randint(1, 4)):
                    cart.add_item(name, random.randint(1, 5), rate)
                cart.discount = Decimal(random.choice([0, 0, 0, 5, 10]))

                stamp = now - timedelta(days=day, minutes=random.randint(0, 600))
                try:
                    gateway.append(build_receipt(cart, now=stamp, prefix=prefix))
                except PersistenceError as exc:
                    raise click.ClickException(f'Seeding stopped: {exc}')
                created += 1

        click.echo(f"✅ Generated {created} receipts.")
