"""Initial migration

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
    )
    op.create_index('ix_users_name', 'users', ['name'])

    # Published snapshots come before projects, which reference them
    op.create_table(
        'published_projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('publish_url', sa.String(1000), nullable=True),
        sa.Column('date_created', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_updated', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_created', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'published_id',
            sa.Integer(),
            sa.ForeignKey('published_projects.id', ondelete='SET NULL'),
            nullable=True,
        ),
    )
    op.create_index('ix_projects_user_id', 'projects', ['user_id'])
    op.create_index('ix_projects_published_id', 'projects', ['published_id'])

    op.create_table(
        'files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('path', sa.String(1000), nullable=False),
        sa.Column('buffer', sa.LargeBinary(), nullable=False),
        sa.UniqueConstraint('project_id', 'path', name='uq_files_project_id_path'),
    )
    op.create_index('ix_files_project_id', 'files', ['project_id'])

    op.create_table(
        'published_files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'published_id',
            sa.Integer(),
            sa.ForeignKey('published_projects.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('file_id', sa.Integer(), sa.ForeignKey('files.id', ondelete='SET NULL'), nullable=True),
        sa.Column('path', sa.String(1000), nullable=False),
        sa.Column('buffer', sa.LargeBinary(), nullable=False),
    )
    op.create_index('ix_published_files_published_id', 'published_files', ['published_id'])
    op.create_index('ix_published_files_file_id', 'published_files', ['file_id'])


def downgrade() -> None:
    op.drop_table('published_files')
    op.drop_table('files')
    op.drop_table('projects')
    op.drop_table('published_projects')
    op.drop_table('users')
