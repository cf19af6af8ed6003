"""Root conftest — shared test configuration."""

import os

# Tests never reach real providers: empty credentials switch gateways to simulation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-not-for-production")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "")
os.environ.setdefault("SMTP_PASSWORD", "")
os.environ.setdefault("STRIPE_SECRET_KEY", "")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("PSC_API_KEY", "demo-key")
os.environ.setdefault("DEMO_PREMIUM_MODE", "false")
os.environ.setdefault("LOG_FORMAT", "text")
