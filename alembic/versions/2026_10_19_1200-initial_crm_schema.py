"""initial_crm_schema

Revision ID: initial_crm_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_crm_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns are stored by value in VARCHAR(32)
ENUM = sa.String(length=32)


def _id() -> sa.Column:
    return sa.Column('id', sa.String(length=36), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('role', ENUM, nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'cities',
        _id(),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('state', sa.String(length=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('monthly_goal', sa.String(length=32), nullable=True),
        sa.Column('quarterly_goal', sa.String(length=32), nullable=True),
        sa.Column('yearly_goal', sa.String(length=32), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cities_id'), 'cities', ['id'], unique=False)
    op.create_index(op.f('ix_cities_name'), 'cities', ['name'], unique=True)

    op.create_table(
        'collaborators',
        _id(),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('city_id', sa.String(length=36), nullable=False),
        sa.Column('revenue_goal', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('consultation_goal', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_collaborators_id'), 'collaborators', ['id'], unique=False)
    op.create_index(op.f('ix_collaborators_user_id'), 'collaborators', ['user_id'], unique=True)
    op.create_index(op.f('ix_collaborators_city_id'), 'collaborators', ['city_id'], unique=False)

    op.create_table(
        'patients',
        _id(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('photo', sa.String(length=255), nullable=True),
        sa.Column('city_id', sa.String(length=36), nullable=True),
        sa.Column('collaborator_id', sa.String(length=36), nullable=True),
        sa.Column('classification', ENUM, nullable=False),
        sa.Column('current_status', sa.Text(), nullable=True),
        sa.Column('next_steps', sa.Text(), nullable=True),
        sa.Column('last_consultation_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_registration_complete', sa.Boolean(), nullable=False),
        sa.Column('clinic_goals', sa.Text(), nullable=True),
        sa.Column('main_concerns', sa.Text(), nullable=True),
        sa.Column('important_notes', sa.Text(), nullable=True),
        sa.Column('status', ENUM, nullable=False),
        sa.Column('followup_status', ENUM, nullable=True),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deactivation_reason', sa.Text(), nullable=True),
        sa.Column('deactivated_by', sa.String(length=36), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ),
        sa.ForeignKeyConstraint(['collaborator_id'], ['collaborators.id'], ),
        sa.ForeignKeyConstraint(['deactivated_by'], ['collaborators.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patients_id'), 'patients', ['id'], unique=False)
    op.create_index(op.f('ix_patients_name'), 'patients', ['name'], unique=False)
    op.create_index(op.f('ix_patients_city_id'), 'patients', ['city_id'], unique=False)
    op.create_index(op.f('ix_patients_collaborator_id'), 'patients', ['collaborator_id'], unique=False)
    op.create_index(op.f('ix_patients_status'), 'patients', ['status'], unique=False)
    op.create_index(op.f('ix_patients_followup_status'), 'patients', ['followup_status'], unique=False)

    op.create_table(
        'patient_notes',
        _id(),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', ENUM, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.String(length=20), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patient_notes_id'), 'patient_notes', ['id'], unique=False)
    op.create_index(op.f('ix_patient_notes_patient_id'), 'patient_notes', ['patient_id'], unique=False)

    op.create_table(
        'procedure_templates',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('validity_days', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_procedure_templates_id'), 'procedure_templates', ['id'], unique=False)
    op.create_index(op.f('ix_procedure_templates_name'), 'procedure_templates', ['name'], unique=False)

    op.create_table(
        'procedures',
        _id(),
        sa.Column('template_id', sa.String(length=36), nullable=True),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('collaborator_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('validity_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('performed_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closed_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', ENUM, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['template_id'], ['procedure_templates.id'], ),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collaborator_id'], ['collaborators.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_procedures_id'), 'procedures', ['id'], unique=False)
    op.create_index(op.f('ix_procedures_template_id'), 'procedures', ['template_id'], unique=False)
    op.create_index(op.f('ix_procedures_patient_id'), 'procedures', ['patient_id'], unique=False)
    op.create_index(op.f('ix_procedures_collaborator_id'), 'procedures', ['collaborator_id'], unique=False)

    op.create_table(
        'events',
        _id(),
        sa.Column('patient_id', sa.String(length=36), nullable=True),
        sa.Column('collaborator_id', sa.String(length=36), nullable=False),
        sa.Column('procedure_id', sa.String(length=36), nullable=True),
        sa.Column('type', ENUM, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', ENUM, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('completion_type', ENUM, nullable=True),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_procedure_id', sa.String(length=36), nullable=True),
        sa.Column('requires_feedback', sa.Boolean(), nullable=False),
        sa.Column('feedback_completed', sa.Boolean(), nullable=False),
        sa.Column('feedback_question', sa.Text(), nullable=True),
        sa.Column('feedback_response', sa.Text(), nullable=True),
        sa.Column('feedback_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('patient_responded', sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collaborator_id'], ['collaborators.id'], ),
        sa.ForeignKeyConstraint(['procedure_id'], ['procedures.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['closed_procedure_id'], ['procedures.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_events_id'), 'events', ['id'], unique=False)
    op.create_index(op.f('ix_events_patient_id'), 'events', ['patient_id'], unique=False)
    op.create_index(op.f('ix_events_collaborator_id'), 'events', ['collaborator_id'], unique=False)
    op.create_index(op.f('ix_events_scheduled_date'), 'events', ['scheduled_date'], unique=False)
    op.create_index(op.f('ix_events_status'), 'events', ['status'], unique=False)

    op.create_table(
        'admin_tasks',
        _id(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', ENUM, nullable=False),
        sa.Column('status', ENUM, nullable=False),
        sa.Column('category', ENUM, nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False),
        sa.Column('recurring_pattern', ENUM, nullable=True),
        sa.Column('assigned_to', sa.String(length=36), nullable=False),
        sa.Column('assigned_by', sa.String(length=36), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['assigned_to'], ['collaborators.id'], ),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admin_tasks_id'), 'admin_tasks', ['id'], unique=False)
    op.create_index(op.f('ix_admin_tasks_priority'), 'admin_tasks', ['priority'], unique=False)
    op.create_index(op.f('ix_admin_tasks_status'), 'admin_tasks', ['status'], unique=False)
    op.create_index(op.f('ix_admin_tasks_due_date'), 'admin_tasks', ['due_date'], unique=False)
    op.create_index(op.f('ix_admin_tasks_assigned_to'), 'admin_tasks', ['assigned_to'], unique=False)

    op.create_table(
        'performance_metrics',
        _id(),
        sa.Column('collaborator_id', sa.String(length=36), nullable=False),
        sa.Column('metric_date', sa.Date(), nullable=False),
        sa.Column('patients_contacted', sa.Integer(), nullable=False),
        sa.Column('appointments_scheduled', sa.Integer(), nullable=False),
        sa.Column('procedures_completed', sa.Integer(), nullable=False),
        sa.Column('revenue_generated', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('feedbacks_completed', sa.Integer(), nullable=False),
        sa.Column('tasks_completed', sa.Integer(), nullable=False),
        sa.Column('average_response_time', sa.Integer(), nullable=True),
        sa.Column('patient_satisfaction_score', sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['collaborator_id'], ['collaborators.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_performance_metrics_id'), 'performance_metrics', ['id'], unique=False)
    op.create_index(op.f('ix_performance_metrics_collaborator_id'), 'performance_metrics', ['collaborator_id'], unique=False)
    op.create_index(op.f('ix_performance_metrics_metric_date'), 'performance_metrics', ['metric_date'], unique=False)

    op.create_table(
        'patient_progress',
        _id(),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('collaborator_id', sa.String(length=36), nullable=False),
        sa.Column('progress_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status_before', sa.String(length=50), nullable=True),
        sa.Column('status_after', sa.String(length=50), nullable=True),
        sa.Column('days_since_last_contact', sa.Integer(), nullable=True),
        sa.Column('is_stalled', sa.Boolean(), nullable=False),
        sa.Column('stall_reason', sa.Text(), nullable=True),
        sa.Column('next_action', sa.Text(), nullable=True),
        sa.Column('next_action_date', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collaborator_id'], ['collaborators.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patient_progress_id'), 'patient_progress', ['id'], unique=False)
    op.create_index(op.f('ix_patient_progress_patient_id'), 'patient_progress', ['patient_id'], unique=False)
    op.create_index(op.f('ix_patient_progress_collaborator_id'), 'patient_progress', ['collaborator_id'], unique=False)
    op.create_index(op.f('ix_patient_progress_is_stalled'), 'patient_progress', ['is_stalled'], unique=False)

    op.create_table(
        'activity_log',
        _id(),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('entity_id', sa.String(length=36), nullable=True),
        sa.Column('entity_type', sa.String(length=32), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activity_log_id'), 'activity_log', ['id'], unique=False)
    op.create_index(op.f('ix_activity_log_user_id'), 'activity_log', ['user_id'], unique=False)
    op.create_index(op.f('ix_activity_log_type'), 'activity_log', ['type'], unique=False)


def downgrade() -> None:
    op.drop_table('activity_log')
    op.drop_table('patient_progress')
    op.drop_table('performance_metrics')
    op.drop_table('admin_tasks')
    op.drop_table('events')
    op.drop_table('procedures')
    op.drop_table('procedure_templates')
    op.drop_table('patient_notes')
    op.drop_table('patients')
    op.drop_table('collaborators')
    op.drop_table('cities')
    op.drop_table('users')
