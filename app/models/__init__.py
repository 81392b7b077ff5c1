from app.models.user import User
from app.models.group import Group, GroupMember
from app.models.ledger import Ledger
from app.models.category import Category
from app.models.bill import Bill
from app.models.enums import BillType, LedgerType, GroupRole, StatisticsPeriod, TrendGranularity

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Ledger",
    "Category",
    "Bill",
    "BillType",
    "LedgerType",
    "GroupRole",
    "StatisticsPeriod",
    "TrendGranularity",
]
