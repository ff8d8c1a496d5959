"""Job model"""
from servicehub.extensions import db
from .base import BaseModel, isoformat

JOB_OPEN = 'open'
JOB_IN_PROGRESS = 'in_progress'
JOB_ASSIGNED = 'assigned'
JOB_COMPLETED = 'completed'
JOB_CANCELLED = 'cancelled'
JOB_STATUSES = (JOB_OPEN, JOB_IN_PROGRESS, JOB_ASSIGNED, JOB_COMPLETED, JOB_CANCELLED)

# Statuses from which a bid may still be awarded
AWARDABLE_STATUSES = (JOB_OPEN, JOB_IN_PROGRESS)

# Manual transitions; open/in_progress -> assigned only happens through an award
JOB_TRANSITIONS = {
    JOB_OPEN: (JOB_IN_PROGRESS, JOB_CANCELLED),
    JOB_IN_PROGRESS: (JOB_CANCELLED,),
    JOB_ASSIGNED: (JOB_COMPLETED, JOB_CANCELLED),
    JOB_COMPLETED: (),
    JOB_CANCELLED: (),
}

CATEGORY_HOME_VISIT = 'HOME_VISIT'
CATEGORY_REMOTE = 'REMOTE'
JOB_CATEGORIES = (CATEGORY_HOME_VISIT, CATEGORY_REMOTE)

BUDGET_TYPES = ('fixed', 'hourly', 'negotiable')
URGENCY_LEVELS = ('urgent', 'normal', 'flexible')


class Job(BaseModel):
    """
    Job model - a customer-posted request that workers bid on
    """
    __tablename__ = 'jobs'

    reference_number = db.Column(db.String(30), unique=True, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                            nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False, default=CATEGORY_HOME_VISIT)
    service_type = db.Column(db.String(50), nullable=False)
    budget = db.Column(db.Float, nullable=True)
    budget_type = db.Column(db.String(20), nullable=False, default='fixed')
    address = db.Column(db.JSON, nullable=True)  # {house, street, city, pincode}
    preferred_date = db.Column(db.Date, nullable=True)
    preferred_time = db.Column(db.String(20), nullable=True)
    urgency = db.Column(db.String(20), nullable=False, default='normal')

    status = db.Column(db.String(20), nullable=False, default=JOB_OPEN)

    # Denormalised award result; no FK to bids to keep the schema acyclic
    selected_bid_id = db.Column(db.Integer, nullable=True)
    selected_worker_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'),
                                   nullable=True, index=True)
    total_bids = db.Column(db.Integer, nullable=False, default=0)

    assigned_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index('ix_jobs_status_category', 'status', 'category'),
    )

    customer = db.relationship('User', foreign_keys=[customer_id], backref='posted_jobs')
    selected_worker = db.relationship('User', foreign_keys=[selected_worker_id])
    bids = db.relationship('Bid', back_populates='job', lazy='dynamic',
                           cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Job {self.reference_number} - {self.status}>'

    def can_transition_to(self, status):
        return status in JOB_TRANSITIONS.get(self.status, ())

    @property
    def is_open_for_bids(self):
        return self.status == JOB_OPEN

    def to_dict(self):
        data = {
            'id': self.id,
            'referenceNumber': self.reference_number,
            'customerId': self.customer_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'serviceType': self.service_type,
            'budget': self.budget,
            'budgetType': self.budget_type,
            'address': self.address,
            'preferredDate': isoformat(self.preferred_date),
            'preferredTime': self.preferred_time,
            'urgency': self.urgency,
            'status': self.status,
            'selectedBidId': self.selected_bid_id,
            'selectedWorkerId': self.selected_worker_id,
            'totalBids': self.total_bids or 0,
            'assignedAt': isoformat(self.assigned_at),
            'completedAt': isoformat(self.completed_at),
            'cancelledAt': isoformat(self.cancelled_at),
        }
        data.update(self.timestamps())
        return data
