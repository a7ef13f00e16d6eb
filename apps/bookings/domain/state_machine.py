"""
Booking State Machine Types

Closed vocabularies for booking statuses, transition actors and
auto-actions, and the in-memory transition table built from the
configured rows. An auto-action name that is not part of the
vocabulary fails while the table is being loaded, not when a booking
happens to hit that transition.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .errors import InvalidTransition, UnknownAutoAction


class BookingStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    PAID = 'paid'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'
    NO_SHOW = 'no_show'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def timestamp_field(self) -> Optional[str]:
        """Booking field stamped when a booking enters this status"""
        return {
            BookingStatus.CONFIRMED: 'confirmed_at',
            BookingStatus.PAID: 'paid_at',
            BookingStatus.COMPLETED: 'completed_at',
            BookingStatus.CANCELLED: 'cancelled_at',
            BookingStatus.REFUNDED: 'refunded_at',
        }.get(self)


TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.REFUNDED,
    BookingStatus.NO_SHOW,
})


class ActorType(str, Enum):
    USER = 'user'
    ADMIN = 'admin'
    VENDOR = 'vendor'
    SYSTEM = 'system'


class AutoAction(str, Enum):
    CREDIT_CASHBACK = 'credit_cashback'
    REFUND_CASHBACK = 'refund_cashback'
    DEDUCT_CASHBACK = 'deduct_cashback'
    PROCESS_REFUND = 'process_refund'
    UPDATE_STATS = 'update_stats'
    NOTIFY_USER = 'notify_user'
    NOTIFY_ADMIN = 'notify_admin'
    NOTIFY_VENDOR = 'notify_vendor'

    @property
    def is_notification(self) -> bool:
        return self in (AutoAction.NOTIFY_USER, AutoAction.NOTIFY_ADMIN, AutoAction.NOTIFY_VENDOR)

    @classmethod
    def parse(cls, name: str) -> 'AutoAction':
        try:
            return cls(name)
        except ValueError:
            raise UnknownAutoAction(f"Unknown auto-action '{name}'") from None

    @classmethod
    def parse_all(cls, names: Iterable[str]) -> Tuple['AutoAction', ...]:
        return tuple(cls.parse(name) for name in names)


@dataclass(frozen=True)
class TransitionRule:
    from_status: BookingStatus
    to_status: BookingStatus
    allowed_actors: FrozenSet[ActorType]
    requires_reason: bool = False
    auto_actions: Tuple[AutoAction, ...] = ()

    def permits(self, actor: ActorType) -> bool:
        return actor in self.allowed_actors


@dataclass
class TransitionTable:
    """Lookup of transition rules keyed by (from, to)"""
    rules: Dict[Tuple[BookingStatus, BookingStatus], TransitionRule] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping]) -> 'TransitionTable':
        """
        Build the table from configuration rows

        Each row needs ``from_status``, ``to_status``, ``allowed_actors``,
        ``requires_reason`` and ``auto_actions``. Unknown statuses or
        actors raise ``InvalidTransition``; unknown auto-actions raise
        ``UnknownAutoAction``.
        """
        rules = {}
        for row in rows:
            try:
                from_status = BookingStatus(row['from_status'])
                to_status = BookingStatus(row['to_status'])
                actors = frozenset(ActorType(actor) for actor in row.get('allowed_actors') or ())
            except ValueError as exc:
                raise InvalidTransition(f'Invalid transition row {dict(row)}: {exc}') from exc

            rules[(from_status, to_status)] = TransitionRule(
                from_status=from_status,
                to_status=to_status,
                allowed_actors=actors,
                requires_reason=bool(row.get('requires_reason')),
                auto_actions=AutoAction.parse_all(row.get('auto_actions') or ()),
            )
        return cls(rules=rules)

    def get(self, from_status: BookingStatus, to_status: BookingStatus) -> Optional[TransitionRule]:
        return self.rules.get((from_status, to_status))

    def targets_for(self, from_status: BookingStatus, actor: ActorType) -> List[TransitionRule]:
        return sorted(
            (rule for rule in self.rules.values() if rule.from_status == from_status and rule.permits(actor)),
            key=lambda rule: rule.to_status.value,
        )


# Default transition table. Seeded into the database and editable from
# the admin afterwards.
DEFAULT_TRANSITIONS = (
    {
        'from_status': 'pending', 'to_status': 'confirmed',
        'allowed_actors': ['admin', 'vendor', 'system'], 'requires_reason': False,
        'auto_actions': ['notify_user'],
        'description': 'Booking confirmed by operator',
    },
    {
        'from_status': 'pending', 'to_status': 'paid',
        'allowed_actors': ['system'], 'requires_reason': False,
        'auto_actions': ['credit_cashback', 'notify_user', 'notify_admin'],
        'description': 'Payment received',
    },
    {
        'from_status': 'pending', 'to_status': 'cancelled',
        'allowed_actors': ['user', 'admin', 'vendor', 'system'], 'requires_reason': True,
        'auto_actions': ['refund_cashback', 'process_refund', 'notify_user'],
        'description': 'Cancelled before payment',
    },
    {
        'from_status': 'confirmed', 'to_status': 'paid',
        'allowed_actors': ['system', 'admin'], 'requires_reason': False,
        'auto_actions': ['credit_cashback', 'notify_user'],
        'description': 'Payment received',
    },
    {
        'from_status': 'confirmed', 'to_status': 'cancelled',
        'allowed_actors': ['user', 'admin', 'vendor'], 'requires_reason': True,
        'auto_actions': ['refund_cashback', 'process_refund', 'notify_user'],
        'description': 'Cancelled after confirmation',
    },
    {
        'from_status': 'paid', 'to_status': 'completed',
        'allowed_actors': ['admin', 'vendor', 'system'], 'requires_reason': False,
        'auto_actions': ['credit_cashback', 'update_stats'],
        'description': 'Trip completed',
    },
    {
        'from_status': 'paid', 'to_status': 'cancelled',
        'allowed_actors': ['admin'], 'requires_reason': True,
        'auto_actions': ['process_refund', 'refund_cashback', 'deduct_cashback', 'notify_user'],
        'description': 'Cancelled after payment',
    },
    {
        'from_status': 'paid', 'to_status': 'refunded',
        'allowed_actors': ['admin', 'system'], 'requires_reason': True,
        'auto_actions': ['process_refund', 'refund_cashback', 'deduct_cashback', 'notify_user'],
        'description': 'Payment refunded',
    },
    {
        'from_status': 'paid', 'to_status': 'no_show',
        'allowed_actors': ['admin', 'vendor'], 'requires_reason': False,
        'auto_actions': ['update_stats'],
        'description': 'Guest did not show up',
    },
    {
        'from_status': 'completed', 'to_status': 'refunded',
        'allowed_actors': ['admin'], 'requires_reason': True,
        'auto_actions': ['process_refund', 'refund_cashback', 'deduct_cashback'],
        'description': 'Refund after completion',
    },
)
