from .tenancy import Company, BusinessUnit
from .auth import User
from .documents import Transfer, Rendition, RenditionExpense
from .sales import Sale
from .goals import Goal, Bonus
from .alerts import Alert

__all__ = [
    'Company', 'BusinessUnit',
    'User',
    'Transfer', 'Rendition', 'RenditionExpense',
    'Sale',
    'Goal', 'Bonus',
    'Alert',
]
