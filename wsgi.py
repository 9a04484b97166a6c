from app import create_app, db
import os

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# ── AUTO-CREATE ──
# Hosted deploys often have no shell: make sure the receipt tables exist.
with app.app_context():
    print("🔄 Ensuring receipt tables exist...")
    db.create_all()
    print("✅ Schema checked.")

if __name__ == "__main__":
    app.run()
