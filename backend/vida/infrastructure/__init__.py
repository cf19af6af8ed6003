"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Gateways never decide business rules; they deliver, seal, charge or store
    - All external failures mapped to core/errors.py types or DeliveryResult

Design Decisions:
    - Simulation mode when credentials are absent: local development and tests
      run without Twilio, SMTP, PSC or Stripe accounts
"""
