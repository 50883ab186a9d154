"""create users, matches, match_state and match_events

Revision ID: 4a7c1e9d2b10
Revises:
Create Date: 2026-09-28 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4a7c1e9d2b10'
down_revision = None
branch_labels = None
depends_on = None


match_status = sa.Enum('LIVE', 'FINISHED', 'ABANDONED', name='match_status')


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.String(length=128), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=True),
            sa.Column('email', sa.String(length=256), nullable=True, unique=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )

    if 'matches' not in existing_tables:
        op.create_table(
            'matches',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('owner_id', sa.String(length=128), nullable=False),
            sa.Column('status', match_status, nullable=False, server_default='LIVE'),
            sa.Column('won', sa.Boolean(), nullable=True),
            sa.Column('played_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_matches_owner_id', 'matches', ['owner_id'])

    if 'match_state' not in existing_tables:
        op.create_table(
            'match_state',
            sa.Column('match_id', sa.String(length=36), sa.ForeignKey('matches.id'), primary_key=True),
            sa.Column('version', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('state_json', sa.Text(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint('version >= 0', name='ck_match_state_version'),
        )

    if 'match_events' not in existing_tables:
        op.create_table(
            'match_events',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('match_id', sa.String(length=36), sa.ForeignKey('matches.id'), nullable=False),
            sa.Column('seq', sa.Integer(), nullable=False),
            sa.Column('event_type', sa.String(length=32), nullable=False),
            sa.Column('payload', sa.Text(), nullable=False, server_default='{}'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint('seq >= 1', name='ck_match_events_seq'),
        )
        op.create_index('ix_match_events_match_id', 'match_events', ['match_id'])


def downgrade():
    op.drop_index('ix_match_events_match_id', table_name='match_events')
    op.drop_table('match_events')
    op.drop_table('match_state')
    op.drop_index('ix_matches_owner_id', table_name='matches')
    op.drop_table('matches')
    op.drop_table('users')
    match_status.drop(op.get_bind(), checkfirst=True)
