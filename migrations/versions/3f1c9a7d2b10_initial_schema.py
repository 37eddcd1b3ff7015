"""initial schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tenancy, academic, assessment, finance and audit tables."""

    # Tenancy and identity
    op.create_table('schools',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('slug', sa.String(length=64), nullable=False),
        sa.Column('school_code', sa.String(length=16), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=256), nullable=True),
        sa.Column('website', sa.String(length=256), nullable=True),
        sa.Column('curriculum_type', sa.String(length=16), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('primary_color', sa.String(length=16), nullable=True),
        sa.Column('portal_title', sa.String(length=128), nullable=True),
        sa.Column('welcome_message', sa.String(length=256), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('school_code')
    )
    op.create_index(op.f('ix_schools_slug'), 'schools', ['slug'], unique=True)

    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=64), nullable=False),
        sa.Column('last_name', sa.String(length=64), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('school_members',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('ADMIN','TEACHER','BURSAR','PARENT')", name='ck_school_member_role'),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_school_member_role', 'school_members', ['school_id', 'user_id', 'role'], unique=True)
    op.create_index(op.f('ix_school_members_school_id'), 'school_members', ['school_id'], unique=False)
    op.create_index(op.f('ix_school_members_user_id'), 'school_members', ['user_id'], unique=False)

    # Academic calendar and structure
    op.create_table('curricula',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_curriculum_code_per_school', 'curricula', ['school_id', 'code'], unique=True)
    op.create_index(op.f('ix_curricula_school_id'), 'curricula', ['school_id'], unique=False)

    op.create_table('academic_years',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('year_name', sa.String(length=32), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_academic_year_name_per_school', 'academic_years', ['school_id', 'year_name'], unique=True)
    op.create_index(op.f('ix_academic_years_school_id'), 'academic_years', ['school_id'], unique=False)

    op.create_table('academic_terms',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('academic_year_id', sa.String(length=36), nullable=False),
        sa.Column('term_name', sa.String(length=32), nullable=False),
        sa.Column('term_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_term_number_per_year', 'academic_terms', ['school_id', 'academic_year_id', 'term_number'], unique=True)
    op.create_index(op.f('ix_academic_terms_school_id'), 'academic_terms', ['school_id'], unique=False)
    op.create_index(op.f('ix_academic_terms_academic_year_id'), 'academic_terms', ['academic_year_id'], unique=False)

    op.create_table('classes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('class_name', sa.String(length=64), nullable=False),
        sa.Column('class_level', sa.Integer(), nullable=False),
        sa.Column('curriculum_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curricula.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_class_name_per_school', 'classes', ['school_id', 'class_name'], unique=True)
    op.create_index(op.f('ix_classes_school_id'), 'classes', ['school_id'], unique=False)

    op.create_table('streams',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('class_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=32), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_stream_name_per_class', 'streams', ['class_id', 'name'], unique=True)
    op.create_index(op.f('ix_streams_school_id'), 'streams', ['school_id'], unique=False)
    op.create_index(op.f('ix_streams_class_id'), 'streams', ['class_id'], unique=False)

    op.create_table('subjects',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('curriculum_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curricula.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_subject_code_per_school', 'subjects', ['school_id', 'code'], unique=True)
    op.create_index(op.f('ix_subjects_school_id'), 'subjects', ['school_id'], unique=False)

    op.create_table('cbc_strands',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cbc_strands_school_id'), 'cbc_strands', ['school_id'], unique=False)
    op.create_index(op.f('ix_cbc_strands_subject_id'), 'cbc_strands', ['subject_id'], unique=False)

    op.create_table('cbc_sub_strands',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('strand_id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['strand_id'], ['cbc_strands.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cbc_sub_strands_school_id'), 'cbc_sub_strands', ['school_id'], unique=False)
    op.create_index(op.f('ix_cbc_sub_strands_strand_id'), 'cbc_sub_strands', ['strand_id'], unique=False)

    # Grading
    op.create_table('grading_systems',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('curriculum_id', sa.String(length=36), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('subject','overall_points','cbc')", name='ck_grading_system_type'),
        sa.ForeignKeyConstraint(['curriculum_id'], ['curricula.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_grading_systems_school_id'), 'grading_systems', ['school_id'], unique=False)

    op.create_table('grade_scales',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('system_id', sa.String(length=36), nullable=False),
        sa.Column('grade', sa.String(length=8), nullable=False),
        sa.Column('min_score', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('max_score', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('min_score <= max_score', name='ck_grade_scale_range'),
        sa.ForeignKeyConstraint(['system_id'], ['grading_systems.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_grade_scales_school_id'), 'grade_scales', ['school_id'], unique=False)
    op.create_index(op.f('ix_grade_scales_system_id'), 'grade_scales', ['system_id'], unique=False)

    # People
    op.create_table('teachers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('tsc_number', sa.String(length=32), nullable=True),
        sa.Column('qualification', sa.String(length=128), nullable=True),
        sa.Column('specialization', sa.String(length=128), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_teacher_user_per_school', 'teachers', ['school_id', 'user_id'], unique=True)
    op.create_index(op.f('ix_teachers_school_id'), 'teachers', ['school_id'], unique=False)
    op.create_index(op.f('ix_teachers_user_id'), 'teachers', ['user_id'], unique=False)

    op.create_table('teacher_assignments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('teacher_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('is_class_teacher', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('active','inactive')", name='ck_teacher_assignment_status'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_teacher_assignment', 'teacher_assignments', ['teacher_id', 'stream_id', 'subject_id', 'term_id'], unique=True)
    op.create_index(op.f('ix_teacher_assignments_school_id'), 'teacher_assignments', ['school_id'], unique=False)
    op.create_index(op.f('ix_teacher_assignments_teacher_id'), 'teacher_assignments', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_teacher_assignments_stream_id'), 'teacher_assignments', ['stream_id'], unique=False)
    op.create_index(op.f('ix_teacher_assignments_subject_id'), 'teacher_assignments', ['subject_id'], unique=False)
    op.create_index(op.f('ix_teacher_assignments_term_id'), 'teacher_assignments', ['term_id'], unique=False)

    op.create_table('students',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('admission_number', sa.String(length=32), nullable=False),
        sa.Column('first_name', sa.String(length=64), nullable=False),
        sa.Column('last_name', sa.String(length=64), nullable=False),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('stream_id', sa.String(length=36), nullable=True),
        sa.Column('parent_user_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('ACTIVE','INACTIVE')", name='ck_student_status'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_admission_number_per_school', 'students', ['school_id', 'admission_number'], unique=True)
    op.create_index(op.f('ix_students_school_id'), 'students', ['school_id'], unique=False)
    op.create_index(op.f('ix_students_stream_id'), 'students', ['stream_id'], unique=False)
    op.create_index(op.f('ix_students_parent_user_id'), 'students', ['parent_user_id'], unique=False)

    # Assessment
    op.create_table('assessments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('max_score', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('exam','test','assignment')", name='ck_assessment_type'),
        sa.CheckConstraint('max_score > 0', name='ck_assessment_max_score'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_assessments_school_id'), 'assessments', ['school_id'], unique=False)
    op.create_index(op.f('ix_assessments_subject_id'), 'assessments', ['subject_id'], unique=False)
    op.create_index(op.f('ix_assessments_term_id'), 'assessments', ['term_id'], unique=False)
    op.create_index(op.f('ix_assessments_stream_id'), 'assessments', ['stream_id'], unique=False)

    op.create_table('scores',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('assessment_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('score', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('percentage', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('grade', sa.String(length=8), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('teacher_notes', sa.Text(), nullable=True),
        sa.Column('submitted_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['assessment_id'], ['assessments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitted_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_score_per_assessment_student', 'scores', ['assessment_id', 'student_id'], unique=True)
    op.create_index(op.f('ix_scores_school_id'), 'scores', ['school_id'], unique=False)
    op.create_index(op.f('ix_scores_assessment_id'), 'scores', ['assessment_id'], unique=False)
    op.create_index(op.f('ix_scores_student_id'), 'scores', ['student_id'], unique=False)

    op.create_table('cbc_assessments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=False),
        sa.Column('strand_id', sa.String(length=36), nullable=False),
        sa.Column('sub_strand_id', sa.String(length=36), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['strand_id'], ['cbc_strands.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sub_strand_id'], ['cbc_sub_strands.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cbc_assessments_school_id'), 'cbc_assessments', ['school_id'], unique=False)
    op.create_index(op.f('ix_cbc_assessments_subject_id'), 'cbc_assessments', ['subject_id'], unique=False)
    op.create_index(op.f('ix_cbc_assessments_term_id'), 'cbc_assessments', ['term_id'], unique=False)
    op.create_index(op.f('ix_cbc_assessments_stream_id'), 'cbc_assessments', ['stream_id'], unique=False)

    op.create_table('cbc_results',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('cbc_assessment_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('level', sa.String(length=2), nullable=False),
        sa.Column('score', sa.Numeric(precision=3, scale=2), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('submitted_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("level IN ('EE','ME','AE','BE')", name='ck_cbc_result_level'),
        sa.CheckConstraint('score >= 1 AND score <= 4', name='ck_cbc_result_score'),
        sa.ForeignKeyConstraint(['cbc_assessment_id'], ['cbc_assessments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitted_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_cbc_result_per_student', 'cbc_results', ['cbc_assessment_id', 'student_id'], unique=True)
    op.create_index(op.f('ix_cbc_results_school_id'), 'cbc_results', ['school_id'], unique=False)
    op.create_index(op.f('ix_cbc_results_cbc_assessment_id'), 'cbc_results', ['cbc_assessment_id'], unique=False)
    op.create_index(op.f('ix_cbc_results_student_id'), 'cbc_results', ['student_id'], unique=False)

    # Planning and attendance
    op.create_table('lesson_plans',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('teacher_id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('objectives', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('lesson_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('review_comment', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('DRAFT','SUBMITTED','APPROVED','REJECTED')", name='ck_lesson_plan_status'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_lesson_plans_school_id'), 'lesson_plans', ['school_id'], unique=False)
    op.create_index(op.f('ix_lesson_plans_teacher_id'), 'lesson_plans', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_lesson_plans_subject_id'), 'lesson_plans', ['subject_id'], unique=False)

    op.create_table('schemes_of_work',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('teacher_id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('class_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=True),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('review_comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('DRAFT','SUBMITTED','APPROVED','REJECTED')", name='ck_scheme_status'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schemes_of_work_school_id'), 'schemes_of_work', ['school_id'], unique=False)
    op.create_index(op.f('ix_schemes_of_work_teacher_id'), 'schemes_of_work', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_schemes_of_work_subject_id'), 'schemes_of_work', ['subject_id'], unique=False)
    op.create_index(op.f('ix_schemes_of_work_term_id'), 'schemes_of_work', ['term_id'], unique=False)

    op.create_table('scheme_topics',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('scheme_id', sa.String(length=36), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('lesson_number', sa.Integer(), nullable=False),
        sa.Column('topic_title', sa.String(length=200), nullable=False),
        sa.Column('sub_topic', sa.String(length=200), nullable=True),
        sa.Column('sub_strand_id', sa.String(length=36), nullable=True),
        sa.Column('learning_objectives', sa.Text(), nullable=True),
        sa.Column('learning_activities', sa.Text(), nullable=True),
        sa.Column('resources', sa.Text(), nullable=True),
        sa.Column('assessment_methods', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes_of_work.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sub_strand_id'], ['cbc_sub_strands.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scheme_topics_school_id'), 'scheme_topics', ['school_id'], unique=False)
    op.create_index(op.f('ix_scheme_topics_scheme_id'), 'scheme_topics', ['scheme_id'], unique=False)

    op.create_table('records_of_work',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('scheme_id', sa.String(length=36), nullable=False),
        sa.Column('topic_id', sa.String(length=36), nullable=True),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('lesson_date', sa.Date(), nullable=False),
        sa.Column('work_covered', sa.Text(), nullable=False),
        sa.Column('challenges', sa.Text(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes_of_work.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['topic_id'], ['scheme_topics.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recorded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_records_of_work_school_id'), 'records_of_work', ['school_id'], unique=False)
    op.create_index(op.f('ix_records_of_work_scheme_id'), 'records_of_work', ['scheme_id'], unique=False)

    op.create_table('attendance',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('stream_id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=True),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('marked_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('PRESENT','LATE','ABSENT','SICK','EXCUSED')", name='ck_attendance_status'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['stream_id'], ['streams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['marked_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_attendance_stream_date', 'attendance', ['school_id', 'stream_id', 'attendance_date'], unique=False)
    op.create_index(op.f('ix_attendance_school_id'), 'attendance', ['school_id'], unique=False)
    op.create_index(op.f('ix_attendance_student_id'), 'attendance', ['student_id'], unique=False)
    op.create_index(op.f('ix_attendance_stream_id'), 'attendance', ['stream_id'], unique=False)

    # Fees, billing and ledger
    op.create_table('fee_structures',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('class_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_fee_structure_class_term', 'fee_structures', ['school_id', 'class_id', 'term_id'], unique=True)
    op.create_index(op.f('ix_fee_structures_school_id'), 'fee_structures', ['school_id'], unique=False)
    op.create_index(op.f('ix_fee_structures_class_id'), 'fee_structures', ['class_id'], unique=False)
    op.create_index(op.f('ix_fee_structures_term_id'), 'fee_structures', ['term_id'], unique=False)

    op.create_table('fee_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('fee_structure_id', sa.String(length=36), nullable=False),
        sa.Column('item_name', sa.String(length=128), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('is_optional', sa.Boolean(), nullable=False),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount >= 0', name='ck_fee_item_amount'),
        sa.CheckConstraint("category IN ('TUITION','COCURRICULAR','OTHER')", name='ck_fee_item_category'),
        sa.ForeignKeyConstraint(['fee_structure_id'], ['fee_structures.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_fee_items_school_id'), 'fee_items', ['school_id'], unique=False)
    op.create_index(op.f('ix_fee_items_fee_structure_id'), 'fee_items', ['fee_structure_id'], unique=False)

    op.create_table('invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('term_id', sa.String(length=36), nullable=False),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('UNPAID','PARTIAL','PAID')", name='ck_invoice_status'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['academic_terms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_invoice_number_per_school', 'invoices', ['school_id', 'invoice_number'], unique=True)
    op.create_index('uq_invoice_student_term', 'invoices', ['school_id', 'student_id', 'term_id'], unique=True)
    op.create_index(op.f('ix_invoices_school_id'), 'invoices', ['school_id'], unique=False)
    op.create_index(op.f('ix_invoices_student_id'), 'invoices', ['student_id'], unique=False)
    op.create_index(op.f('ix_invoices_term_id'), 'invoices', ['term_id'], unique=False)

    op.create_table('invoice_lines',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('item_name', sa.String(length=128), nullable=False),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoice_lines_school_id'), 'invoice_lines', ['school_id'], unique=False)
    op.create_index(op.f('ix_invoice_lines_invoice_id'), 'invoice_lines', ['invoice_id'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('receipt_number', sa.String(length=32), nullable=False),
        sa.Column('student_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('transaction_ref', sa.String(length=64), nullable=True),
        sa.Column('paid_at', sa.Date(), nullable=False),
        sa.Column('recorded_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount'),
        sa.CheckConstraint("method IN ('CASH','BANK','MPESA','CHEQUE')", name='ck_payment_method'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recorded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_receipt_number_per_school', 'payments', ['school_id', 'receipt_number'], unique=True)
    op.create_index('uq_transaction_ref_per_school', 'payments', ['school_id', 'transaction_ref'], unique=True)
    op.create_index(op.f('ix_payments_school_id'), 'payments', ['school_id'], unique=False)
    op.create_index(op.f('ix_payments_student_id'), 'payments', ['student_id'], unique=False)
    op.create_index(op.f('ix_payments_invoice_id'), 'payments', ['invoice_id'], unique=False)

    op.create_table('gl_accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_gl_account_code_per_school', 'gl_accounts', ['school_id', 'code'], unique=True)
    op.create_index(op.f('ix_gl_accounts_school_id'), 'gl_accounts', ['school_id'], unique=False)

    op.create_table('journal_entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('memo', sa.String(length=255), nullable=True),
        sa.Column('source_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_journal_entries_school_id'), 'journal_entries', ['school_id'], unique=False)
    op.create_index(op.f('ix_journal_entries_source_id'), 'journal_entries', ['source_id'], unique=False)

    op.create_table('journal_lines',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=False),
        sa.Column('journal_id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('debit', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('credit', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['journal_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['gl_accounts.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_journal_lines_school_id'), 'journal_lines', ['school_id'], unique=False)
    op.create_index(op.f('ix_journal_lines_journal_id'), 'journal_lines', ['journal_id'], unique=False)
    op.create_index(op.f('ix_journal_lines_account_id'), 'journal_lines', ['account_id'], unique=False)

    # Audit
    op.create_table('audit_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('school_id', sa.String(length=36), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('actor_name', sa.String(length=128), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('severity', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("severity IN ('INFO','SUCCESS','CRITICAL')", name='ck_audit_log_severity'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_school_created', 'audit_logs', ['school_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_audit_logs_school_id'), 'audit_logs', ['school_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_user_id'), 'audit_logs', ['user_id'], unique=False)


def downgrade() -> None:
    """Drop every table, children before parents."""
    for table in (
        'audit_logs',
        'journal_lines', 'journal_entries', 'gl_accounts',
        'payments', 'invoice_lines', 'invoices', 'fee_items', 'fee_structures',
        'attendance', 'records_of_work', 'scheme_topics', 'schemes_of_work', 'lesson_plans',
        'cbc_results', 'cbc_assessments', 'scores', 'assessments',
        'students', 'teacher_assignments', 'teachers',
        'grade_scales', 'grading_systems',
        'cbc_sub_strands', 'cbc_strands', 'subjects', 'streams', 'classes',
        'academic_terms', 'academic_years', 'curricula',
        'school_members', 'users', 'schools',
    ):
        op.drop_table(table)
