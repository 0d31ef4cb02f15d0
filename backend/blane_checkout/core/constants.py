"""
Centralized business defaults and persisted-key schema.

Change defaults or key names here instead of scattering literals across
pricing, availability, the redirect bridge and the reconciler.
"""

# Pricing
DEFAULT_TVA_RATE = 20.0  # percent, used when a deal has no tva
DEFAULT_PARTIAL_PERCENTAGE = 33.0  # percent due now for the "partial" method

# Availability
DEFAULT_MAX_ORDERS = 10  # per-order cap when the deal has no max_orders
DEFAULT_BOOKING_WINDOW_DAYS = 90  # effective end = effective start + this, when no end is set

# Transaction kinds
KIND_ORDER = "order"
KIND_RESERVATION = "reservation"
TRANSACTION_KINDS = (KIND_ORDER, KIND_RESERVATION)

# Reservation time models (deal.type_time)
TIME_MODEL_TIME = "time"
TIME_MODEL_DATE = "date"

# Payment methods: UI vocabulary -> backend wire vocabulary
PAYMENT_CASH = "cash"
PAYMENT_ONLINE = "online"
PAYMENT_PARTIAL = "partial"
PAYMENT_METHOD_WIRE = {
    PAYMENT_CASH: "cash",
    PAYMENT_ONLINE: "online",
    PAYMENT_PARTIAL: "partiel",
}
# Methods that hand control to the external gateway
REDIRECT_PAYMENT_METHODS = (PAYMENT_ONLINE, PAYMENT_PARTIAL)

# Gateway payment type sent to initiate_payment
PAYMENT_TYPE_FULL = "full"
PAYMENT_TYPE_PARTIAL = "partial"

# Weekday names as stored in deal.jours_creneaux (French), indexed like date.weekday().
WEEKDAY_NAMES_FR = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")
WEEKDAY_NAMES_EN = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Persisted local state, all scoped by deal slug. Must match what pages read after a gateway reload.
KEY_TRANSACTION_ID = "deal_{slug}_{kind}_id"
KEY_TRANSACTION_DATA = "deal_{slug}_{kind}_data"
KEY_PAYMENT_INTENT = "deal_{slug}_payment_intent"
KEY_ORDER_DELIVERY_FEE = "order_{order_id}_delivery_fee"
KEY_SLUG_DELIVERY_FEE = "delivery_fee_{slug}"

# Status assumed when the backend echoes none
DEFAULT_TRANSACTION_STATUS = "pending"
STATUS_FAILED = "failed"
