from payroll_api import create_app
from payroll_api.models.attendance import AttendanceEntry
from payroll_api.models.employee import Employee
from payroll_api.models.payment import Payment

app = create_app()

with app.app_context():
    employees = Employee.query.order_by(Employee.employee_code).all()
    print(f"Found {len(employees)} employees:")
    for emp in employees:
        days = AttendanceEntry.query.filter_by(employee_id=emp.id).count()
        pays = Payment.query.filter_by(employee_id=emp.id).count()
        print(f"ID: {emp.id}, Code: {emp.employee_code}, Name: {emp.name}, "
              f"Status: {emp.status}, Attendance rows: {days}, Payments: {pays}")
