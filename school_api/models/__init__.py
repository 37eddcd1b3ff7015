# school_api/models/__init__.py
from school_api.models.base import Base
from school_api.models.school import School, SchoolMember, ROLES
from school_api.models.user import User
from school_api.models.academic import Curriculum, AcademicYear, AcademicTerm
from school_api.models.class_model import Class, Stream
from school_api.models.subject import Subject, CbcStrand, CbcSubStrand
from school_api.models.grading import GradingSystem, GradeScale, GRADING_TYPES
from school_api.models.teacher import Teacher, TeacherAssignment
from school_api.models.student import Student
from school_api.models.assessment import Assessment, Score
from school_api.models.cbc import CbcAssessment, CbcResult, CBC_LEVELS
from school_api.models.lesson import LessonPlan, LESSON_STATUSES
from school_api.models.scheme import SchemeOfWork, SchemeTopic, RecordOfWork, SCHEME_STATUSES
from school_api.models.attendance import Attendance, ATTENDANCE_STATUSES
from school_api.models.fee import FeeStructure, FeeItem, FEE_CATEGORIES
from school_api.models.payment import Invoice, InvoiceLine, Payment, PAYMENT_METHODS
from school_api.models.accounting import GLAccount, JournalEntry, JournalLine
from school_api.models.audit import AuditLog, SEVERITIES

__all__ = [
    "Base",
    "School", "SchoolMember", "ROLES",
    "User",
    "Curriculum", "AcademicYear", "AcademicTerm",
    "Class", "Stream",
    "Subject", "CbcStrand", "CbcSubStrand",
    "GradingSystem", "GradeScale", "GRADING_TYPES",
    "Teacher", "TeacherAssignment",
    "Student",
    "Assessment", "Score",
    "CbcAssessment", "CbcResult", "CBC_LEVELS",
    "LessonPlan", "LESSON_STATUSES",
    "SchemeOfWork", "SchemeTopic", "RecordOfWork", "SCHEME_STATUSES",
    "Attendance", "ATTENDANCE_STATUSES",
    "FeeStructure", "FeeItem", "FEE_CATEGORIES",
    "Invoice", "InvoiceLine", "Payment", "PAYMENT_METHODS",
    "GLAccount", "JournalEntry", "JournalLine",
    "AuditLog", "SEVERITIES",
]
