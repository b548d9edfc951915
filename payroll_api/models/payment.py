from datetime import datetime
from payroll_api.extensions import db

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    employee_id  = db.Column(db.String(64), db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    amount       = db.Column(db.Numeric(12, 2), nullable=False)
    payment_date = db.Column(db.Date, nullable=False)
    payment_mode = db.Column(db.String(16), nullable=False, default="Cash")  # Cash / Online
    paid_by      = db.Column(db.String(100), nullable=False)
    notes        = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_payments_emp_date", "employee_id", "payment_date"),
    )

    employee = db.relationship("Employee", lazy="joined")
