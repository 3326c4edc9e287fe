"""initial_job_board_schema

Revision ID: 20261019_0000
Revises:
Create Date: 2026-10-19 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa


revision = '20261019_0000'
down_revision = None
branch_labels = None
depends_on = None


def _lookup_table(name: str, id_column: str, label_column: str) -> None:
    op.create_table(
        name,
        sa.Column(id_column, sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(label_column, sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint(id_column),
        sa.UniqueConstraint(label_column),
    )


def _junction_table(name: str, column: str, target: str) -> None:
    op.create_table(
        name,
        sa.Column('job_posting_id', sa.Integer(), nullable=False),
        sa.Column(column, sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['job_posting_id'], ['job_postings.job_posting_id']),
        sa.ForeignKeyConstraint([column], [f'{target}.{column}']),
        sa.PrimaryKeyConstraint('job_posting_id', column),
    )


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='user_role'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'login_history',
        sa.Column('login_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('login_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('login_id'),
    )
    op.create_index(op.f('ix_login_history_user_id'), 'login_history', ['user_id'], unique=False)

    # Lookup tables
    op.create_table(
        'companies',
        sa.Column('company_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('company_id'),
    )
    op.create_index(op.f('ix_companies_company_name'), 'companies', ['company_name'], unique=True)

    _lookup_table('educations', 'education_id', 'education_level')
    _lookup_table('experiences', 'experience_id', 'experience_level')
    _lookup_table('locations', 'location_id', 'location_name')
    _lookup_table('sectors', 'sector_id', 'sector_name')
    _lookup_table('employment_types', 'employment_type_id', 'employment_type_name')

    # Job postings
    op.create_table(
        'job_postings',
        sa.Column('job_posting_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('link', sa.String(length=1000), nullable=False),
        sa.Column('link_hash', sa.String(length=64), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('education_id', sa.Integer(), nullable=True),
        sa.Column('employment_type_id', sa.Integer(), nullable=True),
        sa.Column('salary', sa.String(length=255), nullable=True),
        sa.Column('deadline', sa.String(length=100), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_modified_date', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['education_id'], ['educations.education_id']),
        sa.ForeignKeyConstraint(['employment_type_id'], ['employment_types.employment_type_id']),
        sa.PrimaryKeyConstraint('job_posting_id'),
        sa.UniqueConstraint('link'),
    )
    op.create_index(op.f('ix_job_postings_link_hash'), 'job_postings', ['link_hash'], unique=True)
    op.create_index(op.f('ix_job_postings_user_id'), 'job_postings', ['user_id'], unique=False)
    op.create_index(op.f('ix_job_postings_company_id'), 'job_postings', ['company_id'], unique=False)
    op.create_index(op.f('ix_job_postings_created_at'), 'job_postings', ['created_at'], unique=False)

    _junction_table('job_posting_experiences', 'experience_id', 'experiences')
    _junction_table('job_posting_locations', 'location_id', 'locations')
    _junction_table('job_posting_sectors', 'sector_id', 'sectors')
    _junction_table('job_posting_employment_types', 'employment_type_id', 'employment_types')

    # Bookmarks and applications
    op.create_table(
        'bookmarks',
        sa.Column('bookmark_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('job_posting_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['job_posting_id'], ['job_postings.job_posting_id']),
        sa.PrimaryKeyConstraint('bookmark_id'),
        sa.UniqueConstraint('user_id', 'job_posting_id', name='uq_bookmarks_user_job'),
    )
    op.create_index(op.f('ix_bookmarks_user_id'), 'bookmarks', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookmarks_job_posting_id'), 'bookmarks', ['job_posting_id'], unique=False)

    op.create_table(
        'applications',
        sa.Column('application_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('job_posting_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['job_posting_id'], ['job_postings.job_posting_id']),
        sa.PrimaryKeyConstraint('application_id'),
        sa.UniqueConstraint('user_id', 'job_posting_id', name='uq_applications_user_job'),
    )
    op.create_index('idx_applications_user_status', 'applications', ['user_id', 'status'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_applications_user_status', table_name='applications')
    op.drop_table('applications')
    op.drop_index(op.f('ix_bookmarks_job_posting_id'), table_name='bookmarks')
    op.drop_index(op.f('ix_bookmarks_user_id'), table_name='bookmarks')
    op.drop_table('bookmarks')

    for junction in (
        'job_posting_employment_types',
        'job_posting_sectors',
        'job_posting_locations',
        'job_posting_experiences',
    ):
        op.drop_table(junction)

    op.drop_index(op.f('ix_job_postings_created_at'), table_name='job_postings')
    op.drop_index(op.f('ix_job_postings_company_id'), table_name='job_postings')
    op.drop_index(op.f('ix_job_postings_user_id'), table_name='job_postings')
    op.drop_index(op.f('ix_job_postings_link_hash'), table_name='job_postings')
    op.drop_table('job_postings')

    for lookup in ('employment_types', 'sectors', 'locations', 'experiences', 'educations'):
        op.drop_table(lookup)
    op.drop_index(op.f('ix_companies_company_name'), table_name='companies')
    op.drop_table('companies')

    op.drop_index(op.f('ix_login_history_user_id'), table_name='login_history')
    op.drop_table('login_history')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
