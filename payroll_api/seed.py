# payroll_api/seed.py
import random
from datetime import date, timedelta
from decimal import Decimal

from payroll_api.extensions import db
from payroll_api.models.attendance import AttendanceEntry
from payroll_api.models.employee import Employee
from payroll_api.models.payment import Payment

# Indian names for realism
FIRST_NAMES = ["Aarav", "Vivaan", "Aditya", "Arjun", "Sai", "Diya", "Saanvi", "Ananya", "Kiara", "Riya"]
LAST_NAMES = ["Sharma", "Verma", "Gupta", "Mehta", "Singh", "Kumar", "Patel", "Reddy", "Nair", "Iyer"]
DESIGNATIONS = ["Helper", "Operator", "Supervisor", "Driver"]

# (status, check_in, check_out) weighted towards normal days
DAY_PATTERNS = [
    ("present", "09:00", "18:00"),
    ("present", "09:00", "18:00"),
    ("present", "09:00", "18:30"),
    ("present", "10:00", "17:00"),
    ("present", None, None),
    ("half-day", "09:00", "13:00"),
    ("absent", None, None),
]


def get_or_create_employee(idx: int, rng: random.Random) -> Employee:
    emp_id = f"emp-{idx:03d}"
    code = f"DEMO-{idx:03d}"
    emp = db.session.get(Employee, emp_id) or Employee.query.filter_by(employee_code=code).first()
    if not emp:
        emp = Employee(
            id=emp_id,
            employee_code=code,
            name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            designation=rng.choice(DESIGNATIONS),
            status="active",
        )
        db.session.add(emp)
        db.session.flush()
    return emp


def seed_demo_data(employees: int = 3, days: int = 14, end: date | None = None, seed: int = 42) -> dict:
    """Idempotent demo data: skips employees, days and payments that already exist."""
    try:
        return _seed(employees, days, end, seed)
    except Exception:
        db.session.rollback()
        raise


def _seed(employees: int, days: int, end: date | None, seed: int) -> dict:
    rng = random.Random(seed)
    end = end or date.today()
    start = end - timedelta(days=days - 1)

    n_att = n_pay = 0
    for i in range(1, employees + 1):
        emp = get_or_create_employee(i, rng)

        d = start
        while d <= end:
            if d.weekday() != 6:  # Sundays off
                exists = AttendanceEntry.query.filter_by(employee_id=emp.id, date=d).first()
                if not exists:
                    status, cin, cout = rng.choice(DAY_PATTERNS)
                    db.session.add(AttendanceEntry(
                        employee_id=emp.id, date=d, status=status,
                        check_in_time=cin, check_out_time=cout, marked_by="seed",
                    ))
                    n_att += 1
            d += timedelta(days=1)

        mid = start + timedelta(days=days // 2)
        if not Payment.query.filter_by(employee_id=emp.id, payment_date=mid).first():
            db.session.add(Payment(
                employee_id=emp.id,
                amount=Decimal(rng.choice([1000, 2000, 2500])),
                payment_date=mid,
                payment_mode=rng.choice(["Cash", "Online"]),
                paid_by="seed",
                notes="advance",
            ))
            n_pay += 1

    db.session.commit()
    return {"employees": employees, "attendance": n_att, "payments": n_pay}
