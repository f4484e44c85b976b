from .sqlite_db import init_db, get_conn
from .models import AdminUser, VerificationCode, CourseToolAllocation, CourseWithTools
from .verification_codes import issue_code, verify_code, cleanup_expired_codes

__all__ = [
    "init_db",
    "get_conn",
    "AdminUser",
    "VerificationCode",
    "CourseToolAllocation",
    "CourseWithTools",
    "issue_code",
    "verify_code",
    "cleanup_expired_codes",
]
