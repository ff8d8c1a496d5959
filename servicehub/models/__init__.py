"""SQLAlchemy models package"""
from .user import User, CustomerDetails, ROLES, ROLE_ADMIN, ROLE_WORKER, ROLE_CUSTOMER
from .worker import WorkerDetails
from .job import Job
from .bid import Bid
from .notification import Notification
from .otp_session import OtpSession

__all__ = [
    'User',
    'CustomerDetails',
    'WorkerDetails',
    'Job',
    'Bid',
    'Notification',
    'OtpSession',
    'ROLES',
    'ROLE_ADMIN',
    'ROLE_WORKER',
    'ROLE_CUSTOMER',
]
