"""
Custom exceptions for the discipline tracker.
Provides specific exception types for better error handling and recovery.
"""


class TrackerException(Exception):
    """Base exception for the tracker application"""
    pass


class DisciplineNotFoundException(TrackerException):
    """Raised when a discipline is not found"""
    def __init__(self, discipline_id: int):
        self.discipline_id = discipline_id
        super().__init__(f"Discipline with ID {discipline_id} not found")


class DisciplineCheckNotFoundException(TrackerException):
    """Raised when a discipline check is not found"""
    def __init__(self, check_id: int):
        self.check_id = check_id
        super().__init__(f"Discipline check with ID {check_id} not found")


class InvalidStatusTransitionException(TrackerException):
    """Raised when a lifecycle change is not allowed from the current status"""
    def __init__(self, discipline_id: int, current: str, target: str):
        self.discipline_id = discipline_id
        self.current = current
        self.target = target
        super().__init__(
            f"Discipline {discipline_id} cannot move from {current} to {target}"
        )


class InvalidQuarterException(TrackerException):
    """Raised when a quarter key is not in YYYY-Qn format"""
    def __init__(self, quarter_key: str):
        self.quarter_key = quarter_key
        super().__init__(f"Invalid quarter: {quarter_key}. Expected YYYY-Qn")


class InvalidScheduleException(TrackerException):
    """Raised when an update leaves a discipline with an unusable schedule"""
    def __init__(self, discipline_id: int, reason: str):
        self.discipline_id = discipline_id
        self.reason = reason
        super().__init__(f"Discipline {discipline_id} has an invalid schedule: {reason}")
