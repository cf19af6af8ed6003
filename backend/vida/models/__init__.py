"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - User is the aggregate root; every patient row is scoped by user_id

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from vida.models.user import User  # noqa: F401
from vida.models.auth_session import AuthSession  # noqa: F401
from vida.models.patient_profile import PatientProfile  # noqa: F401
from vida.models.representative import Representative  # noqa: F401
from vida.models.advance_directive import AdvanceDirective  # noqa: F401
from vida.models.medical_institution import MedicalInstitution  # noqa: F401
from vida.models.panic_alert import PanicAlert  # noqa: F401
from vida.models.emergency_access import EmergencyAccess  # noqa: F401
from vida.models.notification import Notification  # noqa: F401
from vida.models.audit_log import AuditLog  # noqa: F401
from vida.models.subscription_plan import SubscriptionPlan  # noqa: F401
from vida.models.subscription import Subscription  # noqa: F401
from vida.models.payment import Payment  # noqa: F401
