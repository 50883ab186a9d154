"""add per-match event counter, unique (match_id, seq) and one LIVE match per owner

Revision ID: 9b3e5f0c7d21
Revises: 4a7c1e9d2b10
Create Date: 2026-10-06 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9b3e5f0c7d21'
down_revision = '4a7c1e9d2b10'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    match_cols = {c['name'] for c in insp.get_columns('matches')}
    if 'last_event_seq' not in match_cols:
        with op.batch_alter_table('matches') as batch_op:
            batch_op.add_column(sa.Column('last_event_seq', sa.Integer(), nullable=False, server_default='0'))
        # Seed counters from events already recorded
        op.execute(
            "UPDATE matches SET last_event_seq = "
            "COALESCE((SELECT MAX(seq) FROM match_events WHERE match_events.match_id = matches.id), 0)"
        )

    event_uniques = {u['name'] for u in insp.get_unique_constraints('match_events')}
    if 'uq_match_events_match_seq' not in event_uniques:
        with op.batch_alter_table('match_events') as batch_op:
            batch_op.create_unique_constraint('uq_match_events_match_seq', ['match_id', 'seq'])

    match_indexes = {i['name'] for i in insp.get_indexes('matches')}
    if 'uq_matches_live_owner' not in match_indexes:
        op.create_index(
            'uq_matches_live_owner', 'matches', ['owner_id'], unique=True,
            sqlite_where=sa.text("status = 'LIVE'"),
            postgresql_where=sa.text("status = 'LIVE'"),
        )


def downgrade():
    op.drop_index('uq_matches_live_owner', table_name='matches')
    with op.batch_alter_table('match_events') as batch_op:
        batch_op.drop_constraint('uq_match_events_match_seq', type_='unique')
    with op.batch_alter_table('matches') as batch_op:
        batch_op.drop_column('last_event_seq')
