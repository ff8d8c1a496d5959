"""Pending OTP logins, kept in the database so any worker process can verify them"""
from datetime import timedelta

from servicehub.extensions import db
from .base import BaseModel, utcnow

PROVIDER_MOCK = 'mock'
PROVIDER_TWOFACTOR = '2factor'


class OtpSession(BaseModel):
    __tablename__ = 'otp_sessions'

    phone = db.Column(db.String(20), unique=True, nullable=False, index=True)
    session_id = db.Column(db.String(100), nullable=False)
    provider = db.Column(db.String(20), nullable=False, default=PROVIDER_MOCK)
    expires_at = db.Column(db.DateTime, nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)

    @classmethod
    def expiry_from_now(cls, ttl_seconds):
        return utcnow() + timedelta(seconds=ttl_seconds)

    def is_expired(self, now=None):
        now = now or utcnow()
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            now = now.replace(tzinfo=None)
        return expires_at <= now
