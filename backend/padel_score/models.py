from padel_score import db
from datetime import datetime, timezone
import json
import uuid

MATCH_STATUSES = ('LIVE', 'FINISHED', 'ABANDONED')
EVENT_TYPES = ('START', 'POINT', 'UNDO', 'MATCH_END', 'ABANDON')


def utcnow():
    return datetime.now(timezone.utc)


def new_id():
    return str(uuid.uuid4())


def dump_document(value):
    """Serialize an opaque JSON document for a text column."""
    return json.dumps(value, separators=(',', ':'))


def load_document(raw):
    if raw is None:
        return None
    return json.loads(raw)


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(128), primary_key=True)
    name = db.Column(db.String(128), nullable=True)
    email = db.Column(db.String(256), unique=True, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
        }


class Match(db.Model):
    __tablename__ = 'matches'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    owner_id = db.Column(db.String(128), nullable=False, index=True)
    status = db.Column(db.Enum(*MATCH_STATUSES, name='match_status'), nullable=False, default='LIVE')
    won = db.Column(db.Boolean, nullable=True)
    played_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    # Counter row for event sequence numbers, bumped atomically by EventLog.append
    last_event_seq = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        # At most one LIVE match per owner
        db.Index(
            'uq_matches_live_owner', 'owner_id', unique=True,
            sqlite_where=db.text("status = 'LIVE'"),
            postgresql_where=db.text("status = 'LIVE'"),
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'status': self.status,
            'won': self.won,
            'played_at': _iso(self.played_at),
        }


class MatchState(db.Model):
    __tablename__ = 'match_state'
    match_id = db.Column(db.String(36), db.ForeignKey('matches.id'), primary_key=True)
    version = db.Column(db.BigInteger, nullable=False, default=0)
    state_json = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint('version >= 0', name='ck_match_state_version'),
    )

    @property
    def state(self):
        return load_document(self.state_json)


class MatchEvent(db.Model):
    __tablename__ = 'match_events'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    match_id = db.Column(db.String(36), db.ForeignKey('matches.id'), nullable=False, index=True)
    seq = db.Column(db.Integer, nullable=False)
    event_type = db.Column(db.String(32), nullable=False)
    payload = db.Column(db.Text, nullable=False, default='{}')
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('match_id', 'seq', name='uq_match_events_match_seq'),
        db.CheckConstraint('seq >= 1', name='ck_match_events_seq'),
    )

    def to_dict(self):
        return {
            'seq': self.seq,
            'eventType': self.event_type,
            'payload': load_document(self.payload),
            'createdAt': _iso(self.created_at),
        }
