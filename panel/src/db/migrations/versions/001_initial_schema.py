"""Initial panel schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates the panel resource tables:
- users (unique email, password digest)
- posts, projects, courses
- course_links (course_links.course_id -> courses.id)
- fish (fish.user_id -> users.id)
- comments (comments.user_id -> users.id, polymorphic commentable_type/commentable_id)
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_column() -> sa.Column:
    return sa.Column(
        'uuid',
        postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite'),
        nullable=False
    )


def upgrade() -> None:
    """
    Create resource tables.

    Every table carries:
    - id: Primary key (internal)
    - uuid: UUIDv7 for external identification (GUID: {prefix}_xxx)
    - created_at: Creation timestamp (creation order is id order)
    """
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('password_digest', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_users_uuid', 'users', ['uuid'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    for table_name, text_column in (('posts', 'body'), ('projects', 'description')):
        op.create_table(
            table_name,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            _uuid_column(),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column(text_column, sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('uuid')
        )
        op.create_index(f'ix_{table_name}_uuid', table_name, ['uuid'])

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_courses_uuid', 'courses', ['uuid'])

    op.create_table(
        'course_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('link', sa.String(length=500), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_course_links_uuid', 'course_links', ['uuid'])
    op.create_index('ix_course_links_course_id', 'course_links', ['course_id'])

    op.create_table(
        'fish',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_fish_uuid', 'fish', ['uuid'])
    op.create_index('ix_fish_user_id', 'fish', ['user_id'])

    # Polymorphic target: (commentable_type, commentable_id) without a FK,
    # the type column names the target table's resource
    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('commentable_type', sa.String(length=30), nullable=True),
        sa.Column('commentable_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_comments_uuid', 'comments', ['uuid'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('idx_comments_commentable', 'comments', ['commentable_type', 'commentable_id'])


def downgrade() -> None:
    """Drop all panel tables (dependents first)."""
    op.drop_index('idx_comments_commentable', table_name='comments')
    op.drop_index('ix_comments_user_id', table_name='comments')
    op.drop_index('ix_comments_uuid', table_name='comments')
    op.drop_table('comments')

    op.drop_index('ix_fish_user_id', table_name='fish')
    op.drop_index('ix_fish_uuid', table_name='fish')
    op.drop_table('fish')

    op.drop_index('ix_course_links_course_id', table_name='course_links')
    op.drop_index('ix_course_links_uuid', table_name='course_links')
    op.drop_table('course_links')

    for table_name in ('courses', 'projects', 'posts'):
        op.drop_index(f'ix_{table_name}_uuid', table_name=table_name)
        op.drop_table(table_name)

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_uuid', table_name='users')
    op.drop_table('users')
