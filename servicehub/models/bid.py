"""Bid model"""
from servicehub.extensions import db
from .base import BaseModel, isoformat

BID_PENDING = 'pending'
BID_ACCEPTED = 'accepted'
BID_REJECTED = 'rejected'
BID_WITHDRAWN = 'withdrawn'


class Bid(BaseModel):
    """
    A worker's offer on a job. Worker name/rating/category are copied at
    bid time so the customer sees what the worker looked like when bidding.
    """
    __tablename__ = 'bids'

    job_id = db.Column(db.Integer, db.ForeignKey('jobs.id', ondelete='CASCADE'),
                       nullable=False, index=True)
    worker_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                          nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)
    proposed_date = db.Column(db.Date, nullable=True)
    proposed_time = db.Column(db.String(20), nullable=True)
    estimated_duration = db.Column(db.String(50), nullable=True)
    cover_letter = db.Column(db.Text, nullable=False)

    worker_name = db.Column(db.String(255), nullable=True)
    worker_rating = db.Column(db.Float, nullable=True)
    worker_category = db.Column(db.String(100), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BID_PENDING)
    is_selected = db.Column(db.Boolean, nullable=False, default=False)
    withdrawn_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.CheckConstraint('amount > 0', name='ck_bids_amount_positive'),
        db.Index('ix_bids_job_status', 'job_id', 'status'),
        # one live bid per worker per job; a withdrawn bid frees the slot
        db.Index('uq_bids_job_worker_active', 'job_id', 'worker_id', unique=True,
                 postgresql_where=db.text("status != 'withdrawn'"),
                 sqlite_where=db.text("status != 'withdrawn'")),
    )

    job = db.relationship('Job', back_populates='bids')
    worker = db.relationship('User', foreign_keys=[worker_id], backref='bids')

    def __repr__(self):
        return f'<Bid {self.id} job={self.job_id} worker={self.worker_id} {self.status}>'

    def to_dict(self):
        data = {
            'id': self.id,
            'jobId': self.job_id,
            'workerId': self.worker_id,
            'amount': self.amount,
            'proposedDate': isoformat(self.proposed_date),
            'proposedTime': self.proposed_time,
            'estimatedDuration': self.estimated_duration,
            'coverLetter': self.cover_letter,
            'workerName': self.worker_name,
            'workerRating': self.worker_rating,
            'workerCategory': self.worker_category,
            'status': self.status,
            'isSelected': self.is_selected,
            'withdrawnAt': isoformat(self.withdrawn_at),
        }
        data.update(self.timestamps())
        return data
