from datetime import datetime
from payroll_api.extensions import db

class AttendanceEntry(db.Model):
    """
    One marked attendance row per employee per calendar day.

    status         : 'present' | 'absent' | 'half-day'
    check_in_time  : optional 'HH:MM' wall-clock string, stored as entered
    check_out_time : optional 'HH:MM' wall-clock string, stored as entered
    """
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(64), db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date        = db.Column(db.Date, nullable=False)
    status      = db.Column(db.String(16), nullable=False)

    check_in_time  = db.Column(db.String(5), nullable=True)
    check_out_time = db.Column(db.String(5), nullable=True)

    marked_by = db.Column(db.String(120), nullable=True)
    marked_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    notes     = db.Column(db.String(500), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "date", name="uq_attendance_emp_date"),
        db.Index("ix_attendance_emp_date", "employee_id", "date"),
    )

    employee = db.relationship("Employee", lazy="joined")
