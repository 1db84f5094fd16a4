"""Create users, tokens and patients tables

Revision ID: 3f1c2a9e7b4d
Revises: 
Create Date: 2024-05-06 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9e7b4d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Doctors and receptionists share one table, keyed by role
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('contact', sa.BigInteger(), nullable=True),
        sa.Column('shift_start', sa.Time(), nullable=False),
        sa.Column('shift_end', sa.Time(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('specialization', sa.String(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='users_email_key')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    op.create_table(
        'tokens',
        sa.Column('hash', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scope', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('hash')
    )
    op.create_index(op.f('ix_tokens_email'), 'tokens', ['email'], unique=False)

    # doctor_id is not a foreign key, 0 marks an unassigned patient
    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=False),
        sa.Column('age', sa.Float(), nullable=False),
        sa.Column('contact', sa.BigInteger(), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('medical_history', sa.Text(), nullable=False),
        sa.Column('insurance_info', sa.Text(), nullable=False),
        sa.Column('last_visit', sa.DateTime(timezone=True), nullable=False),
        sa.Column('doctor_id', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patients_id'), 'patients', ['id'], unique=False)
    op.create_index(op.f('ix_patients_doctor_id'), 'patients', ['doctor_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_patients_doctor_id'), table_name='patients')
    op.drop_index(op.f('ix_patients_id'), table_name='patients')
    op.drop_table('patients')

    op.drop_index(op.f('ix_tokens_email'), table_name='tokens')
    op.drop_table('tokens')

    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
