"""User and customer profile models"""
from servicehub.extensions import db
from .base import BaseModel, isoformat

ROLE_ADMIN = 'ADMIN'
ROLE_WORKER = 'WORKER'
ROLE_CUSTOMER = 'CUSTOMER'
ROLES = (ROLE_ADMIN, ROLE_WORKER, ROLE_CUSTOMER)


class User(BaseModel):
    """
    User model - admins, workers and customers share one table,
    distinguished by ``role``.

    ``is_active`` is the admin-approval gate; every self-registered account
    starts inactive and cannot log in until an admin flips it.
    """
    __tablename__ = 'users'

    phone = db.Column(db.String(20), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), nullable=True)
    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, index=True)
    profile_photo = db.Column(db.Text, nullable=True)
    gender = db.Column(db.String(20), nullable=True)
    date_of_birth = db.Column(db.String(20), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.CheckConstraint("role IN ('ADMIN', 'WORKER', 'CUSTOMER')", name='ck_users_role'),
    )

    worker_details = db.relationship('WorkerDetails', back_populates='user', uselist=False,
                                     cascade='all, delete-orphan')
    customer_details = db.relationship('CustomerDetails', back_populates='user', uselist=False,
                                       cascade='all, delete-orphan')
    notifications = db.relationship('Notification', back_populates='user', lazy='dynamic',
                                    cascade='all, delete-orphan')

    def __repr__(self):
        return f'<User {self.phone} ({self.role})>'

    def is_admin(self):
        return self.role == ROLE_ADMIN

    def is_worker(self):
        return self.role == ROLE_WORKER

    def is_customer(self):
        return self.role == ROLE_CUSTOMER

    def to_dict(self):
        data = {
            'id': self.id,
            'phone': self.phone,
            'email': self.email,
            'fullName': self.full_name,
            'role': self.role,
            'profilePhoto': self.profile_photo,
            'gender': self.gender,
            'dateOfBirth': self.date_of_birth,
            'isActive': self.is_active,
        }
        data.update(self.timestamps())
        return data


class CustomerDetails(BaseModel):
    __tablename__ = 'customer_details'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True)
    house = db.Column(db.String(255))
    street = db.Column(db.String(255))
    city = db.Column(db.String(100))
    pincode = db.Column(db.String(10))

    user = db.relationship('User', back_populates='customer_details')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'house': self.house,
            'street': self.street,
            'city': self.city,
            'pincode': self.pincode,
            'createdAt': isoformat(self.created_at),
        }
