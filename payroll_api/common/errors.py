# payroll_api/common/errors.py
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from payroll_api.common.http import fail
from payroll_api.services.salary_types import ErrorKind, SalaryError

# engine error kind -> HTTP status
SALARY_ERROR_STATUS = {
    ErrorKind.INVALID_PERIOD: 422,
    ErrorKind.INVALID_RATE: 422,
    ErrorKind.INVALID_TIME_FORMAT: 422,
    ErrorKind.EMPLOYEE_NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.FETCH_FAILED: 502,
}


class APIError(Exception):
    """Custom API Error class."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        # 409 for unique/FK violations
        return fail("Duplicate or FK constraint failed", status=409, code="CONSTRAINT_ERROR")

    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(SalaryError)
    def _salary_error(e: SalaryError):
        status = SALARY_ERROR_STATUS.get(e.kind, 400)
        return fail(message=str(e), status=status, code=e.kind.value)

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
