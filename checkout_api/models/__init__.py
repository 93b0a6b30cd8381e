"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. String relationship targets ("TokenizedCard", "Order") resolve
  3. Other modules can import from checkout_api.models directly
"""

from checkout_api.models.client import Client  # noqa: F401
from checkout_api.models.tokenized_card import TokenizedCard  # noqa: F401
from checkout_api.models.order import Order  # noqa: F401
from checkout_api.models.payment_transaction import PaymentTransaction, PaymentStatus  # noqa: F401
from checkout_api.models.system_preference import SystemPreference  # noqa: F401
