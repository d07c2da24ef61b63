# Overview: Status and vocabulary constants shared by models, services and routes.

"""
Stored values are the lowercase strings below. Each class exposes ALL for
membership checks so columns can be validated without ad-hoc string lists.
"""


class ProjectStatus:
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    CLOSED = "closed"
    ALL = frozenset({ACTIVE, ON_HOLD, CLOSED})


class PlotSizeUnit:
    SQFT = "sqft"
    SQYD = "sqyd"
    CENT = "cent"
    ALL = frozenset({SQFT, SQYD, CENT})


class Facing:
    EAST = "E"
    WEST = "W"
    NORTH = "N"
    SOUTH = "S"
    ANY = "Any"
    ALL = frozenset({EAST, WEST, NORTH, SOUTH, ANY})


class PlotStatus:
    AVAILABLE = "available"
    HOLD = "hold"
    BOOKED = "booked"
    SOLD = "sold"
    BLOCKED = "blocked"
    ALL = frozenset({AVAILABLE, HOLD, BOOKED, SOLD, BLOCKED})


class BookingStatus:
    HOLD = "hold"
    BOOKING_CONFIRMED = "booking_confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    ALL = frozenset({HOLD, BOOKING_CONFIRMED, CANCELLED, EXPIRED})
    OPEN = frozenset({HOLD, BOOKING_CONFIRMED})


class LeadSource:
    WALK_IN = "walk-in"
    META = "Meta"
    GOOGLE = "Google"
    REFERRAL = "Referral"
    OTHER = "Other"
    ALL = frozenset({WALK_IN, META, GOOGLE, REFERRAL, OTHER})


class LeadStatus:
    NEW = "new"
    WORKING = "working"
    QUALIFIED = "qualified"
    HOT = "hot"
    WON = "won"
    LOST = "lost"
    ALL = frozenset({NEW, WORKING, QUALIFIED, HOT, WON, LOST})
    # Funnel order; WON closes the funnel, LOST can be reached from any open stage
    FUNNEL = (NEW, WORKING, QUALIFIED, HOT, WON)
    TERMINAL = frozenset({WON, LOST})


class ActivityType:
    CALL = "call"
    VISIT = "visit"
    SITE_VISIT = "site-visit"
    MEETING = "meeting"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    ALL = frozenset({CALL, VISIT, SITE_VISIT, MEETING, WHATSAPP, EMAIL})


class ActivityOutcome:
    CONNECTED = "connected"
    NO_ANSWER = "no-answer"
    INTERESTED = "interested"
    NOT_INTERESTED = "not-interested"
    FOLLOW_UP = "follow-up"
    ALL = frozenset({CONNECTED, NO_ANSWER, INTERESTED, NOT_INTERESTED, FOLLOW_UP})


class PaymentPlan:
    LUMPSUM = "lumpsum"
    LINKED = "linked"
    ALL = frozenset({LUMPSUM, LINKED})


class PaymentStatus:
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"
    ALL = frozenset({PENDING, PARTIAL, COMPLETE})


class PaymentMethod:
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    NEFT = "neft"
    ALL = frozenset({CASH, UPI, CARD, NEFT})


class EntityType:
    LEAD = "lead"
    BOOKING = "booking"
    PLOT = "plot"
    PROJECT = "project"
    ALL = frozenset({LEAD, BOOKING, PLOT, PROJECT})


class DocType:
    KYC = "KYC"
    PAN = "PAN"
    AADHAR = "Aadhar"
    AGREEMENT = "Agreement"
    REGISTRY = "Registry"
    LAYOUT = "Layout"
    ALL = frozenset({KYC, PAN, AADHAR, AGREEMENT, REGISTRY, LAYOUT})


class DocStatus:
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    ALL = frozenset({PENDING, VERIFIED, REJECTED})


class UserRole:
    OWNER = "owner"
    ADMIN = "admin"
    DIRECTOR = "director"
    PM = "pm"
    SALES = "sales"
    CRM = "crm"
    FINANCE = "finance"
    LEGAL = "legal"
    AUDITOR = "auditor"
    ALL = frozenset({OWNER, ADMIN, DIRECTOR, PM, SALES, CRM, FINANCE, LEGAL, AUDITOR})
    # Roles that become the plot's sales owner when they place a hold themselves
    FRONTLINE = frozenset({SALES, CRM})
