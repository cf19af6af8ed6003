"""Service Layer — imperative shell around the pure core.

Invariants:
    - Services own the DB session for the duration of a request
    - Services raise core/errors.py types; routes never translate errors by hand

Design Decisions:
    - One class per aggregate, constructed per request with its collaborators
      (db session, gateways, hub) so tests can swap any of them
"""
