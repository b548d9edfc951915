from datetime import datetime
from payroll_api.extensions import db

class Employee(db.Model):
    __tablename__ = "employees"

    # document-style string ids (imported from the legacy store as-is)
    id = db.Column(db.String(64), primary_key=True)

    employee_code = db.Column(db.String(32), unique=True, nullable=False)
    name          = db.Column(db.String(160), nullable=False)
    designation   = db.Column(db.String(120), nullable=True)
    email         = db.Column(db.String(255), unique=True, nullable=True)
    phone         = db.Column(db.String(20), nullable=True)

    doj    = db.Column(db.Date, nullable=True)   # date of joining
    status = db.Column(db.String(16), default="active", nullable=False)  # active/inactive

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_emp_status", "status"),
    )
