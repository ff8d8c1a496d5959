"""Worker KYC / payout profile"""
from servicehub.extensions import db
from .base import BaseModel

DOCUMENT_FIELDS = ('id_proof', 'police_verification', 'skill_certificate')


class WorkerDetails(BaseModel):
    """
    One row per WORKER user. ``is_verified`` is the KYC gate and is
    independent of the user's ``is_active`` approval flag.
    """
    __tablename__ = 'worker_details'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True, index=True)
    category = db.Column(db.String(100), nullable=False)
    sub_service = db.Column(db.String(100))
    experience = db.Column(db.Integer)
    availability = db.Column(db.String(50))

    house = db.Column(db.String(255))
    street = db.Column(db.String(255))
    city = db.Column(db.String(100))
    pincode = db.Column(db.String(10))

    # Document references (uploads are handled elsewhere)
    id_proof = db.Column(db.Text)
    police_verification = db.Column(db.Text)
    skill_certificate = db.Column(db.Text)

    bank_holder_name = db.Column(db.String(255))
    account_number = db.Column(db.String(50))
    ifsc_code = db.Column(db.String(20))
    upi_id = db.Column(db.String(100))

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    rating = db.Column(db.Float, nullable=False, default=0.0)
    total_earnings = db.Column(db.Float, nullable=False, default=0.0)

    user = db.relationship('User', back_populates='worker_details')

    def __repr__(self):
        return f'<WorkerDetails user={self.user_id} verified={self.is_verified}>'

    @property
    def documents_complete(self):
        return all(getattr(self, field) for field in DOCUMENT_FIELDS)

    def to_dict(self, include_private=False):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'category': self.category,
            'subService': self.sub_service,
            'experience': self.experience,
            'availability': self.availability,
            'house': self.house,
            'street': self.street,
            'city': self.city,
            'pincode': self.pincode,
            'idProof': self.id_proof,
            'policeVerification': self.police_verification,
            'skillCertificate': self.skill_certificate,
            'upiId': self.upi_id,
            'isVerified': self.is_verified,
            'rating': self.rating or 0.0,
            'totalEarnings': self.total_earnings or 0.0,
        }
        if include_private:
            data['bankHolderName'] = self.bank_holder_name
            data['accountNumber'] = self.account_number
            data['ifscCode'] = self.ifsc_code
        data.update(self.timestamps())
        return data
