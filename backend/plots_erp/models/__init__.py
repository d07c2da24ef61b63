from .auth import User
from .inventory import Project, Plot, PlotStatusHistory
from .sales import Lead, Activity, Booking, Payment
from .documents import Document
from .settings import Settings

__all__ = [
    'User',
    'Project', 'Plot', 'PlotStatusHistory',
    'Lead', 'Activity', 'Booking', 'Payment',
    'Document',
    'Settings',
]
