"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_COLLECTION = "attendance"
PROFILES_COLLECTION = "profiles"
PTO_REQUESTS_COLLECTION = "pto_requests"
NOTIFICATIONS_COLLECTION = "notifications"

PROFILE_DOC_ID = "data"

DEFAULT_PTO_BALANCE_HOURS = 80
DEFAULT_CALL_OUT_PTO_HOURS = 8.0
EARLY_LEAVE_MAX_WORDS = 20

DEFAULT_EMPLOYEE_NAME = "Employee"
MANAGEMENT_MANAGER_PLACEHOLDER = "N/A"
