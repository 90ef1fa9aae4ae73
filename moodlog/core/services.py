"""Service container.

Wires the stores and engines to one persistence collaborator, one clock
and one notifier, and offers the few operations that span components.
"""

from datetime import date
from pathlib import Path

from moodlog.analytics import (
    AdherenceReport,
    SupervisorSummary,
    adherence_rate,
    build_report,
    supervisor_summary,
)
from moodlog.assignments.engine import AssignmentEngine
from moodlog.assignments.models import Assignment, AssignmentStatus, Cadence
from moodlog.clock import Clock, SystemClock
from moodlog.config import GlobalConfig, get_template_registry_path
from moodlog.definitions.store import RegisterDefinitionStore
from moodlog.entries.notes import ClinicalNoteStore
from moodlog.entries.store import EntryStore
from moodlog.errors import Forbidden
from moodlog.invitations.issuer import InvitationIssuer
from moodlog.notifications import Notifier, NullNotifier
from moodlog.registry.kinds import FieldTypeRegistry, get_default_field_types
from moodlog.registry.templates import TemplateRegistry
from moodlog.storage.base import Store


class Services:
    """All core components sharing one store, clock and notifier."""

    def __init__(
        self,
        store: Store,
        config: GlobalConfig | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        field_types: FieldTypeRegistry | None = None,
        template_registry_path: Path | str | None = None,
        template_schema_path: Path | str | None = None,
    ) -> None:
        """Initialize the services.

        Args:
            store: Persistence collaborator shared by every component.
            config: Global configuration. Defaults are used if not provided.
            clock: Time source. Defaults to the UTC system clock.
            notifier: Event sink. Defaults to discarding events.
            field_types: Field kind contracts. Defaults to the built-in kinds.
            template_registry_path: Template catalogue directory. Resolved
                from the environment and config if not provided.
            template_schema_path: Optional JSON Schema for templates.
        """
        self.store = store
        self.config = config or GlobalConfig()
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.field_types = field_types or get_default_field_types()

        registry_path = template_registry_path or get_template_registry_path(self.config)
        self.templates = TemplateRegistry(registry_path, schema_path=template_schema_path)

        self.definitions = RegisterDefinitionStore(store, self.clock, self.field_types)
        self.assignments = AssignmentEngine(store, self.definitions, self.clock)
        self.entries = EntryStore(store, self.clock, self.notifier, self.field_types)
        self.notes = ClinicalNoteStore(store, self.clock)
        self.invitations = InvitationIssuer(store, self.clock, self.notifier, self.config)

    def assign_template(
        self,
        caller_id: str,
        template_id: str,
        subject_ids: list[str],
        cadence: Cadence | str,
        start_date: date,
        end_date: date | None = None,
        notes: str | None = None,
    ) -> list[Assignment]:
        """Copy a catalogue template into an owned definition and assign it."""
        template = self.templates.get(template_id)
        return self.assignments.assign(
            caller_id,
            subject_ids,
            cadence,
            start_date,
            end_date=end_date,
            notes=notes,
            template=template,
        )

    def assignment_status(
        self,
        assignment_id: str,
        caller_id: str,
        today: date | None = None,
    ) -> AssignmentStatus:
        """Pending state of one assignment, for its subject or supervisor."""
        assignment = self.assignments.get(assignment_id, caller_id)
        entries = self.store.list_entries(assignment_id=assignment.id)
        return self.assignments.status(assignment, entries, today)

    def subject_report(
        self,
        subject_id: str,
        caller_id: str,
        as_of: date | None = None,
        window_days: int | None = None,
        fields: list[str] | None = None,
    ) -> AdherenceReport:
        """Adherence report over a subject's whole entry history.

        Visible to the subject and to any supervisor with an assignment for
        that subject.

        Raises:
            Forbidden: If the caller has no relationship with the subject.
        """
        if caller_id != subject_id:
            supervised = self.store.find_assignments(
                subject_id=subject_id, supervisor_id=caller_id
            )
            if not supervised:
                raise Forbidden(f"Subject {subject_id} is not supervised by {caller_id}")

        entries = self.store.list_entries(subject_id=subject_id)
        return build_report(
            entries,
            as_of=as_of or self.clock.today(),
            window_days=window_days or self.config.consistency_window_days,
            fields=fields or (),
        )

    def subject_adherence(
        self,
        subject_id: str,
        supervisor_id: str,
        as_of: date | None = None,
    ) -> int:
        """Weekly adherence rate of a subject across the supervisor's active assignments."""
        active = self.store.find_assignments(
            subject_id=subject_id, supervisor_id=supervisor_id, active=True
        )
        if not active:
            return 0
        assignment_ids = {a.id for a in active}
        entries = [
            e
            for e in self.store.list_entries(subject_id=subject_id)
            if e.assignment_id in assignment_ids
        ]
        return adherence_rate(entries, len(active), as_of or self.clock.today())

    def supervisor_summary(
        self,
        supervisor_id: str,
        as_of: date | None = None,
    ) -> SupervisorSummary:
        """Caseload summary over every subject the supervisor has assigned."""
        assignments = self.store.find_assignments(supervisor_id=supervisor_id)
        assignment_ids = {a.id for a in assignments}
        subject_ids = {a.subject_id for a in assignments}
        entries = [
            e
            for subject_id in subject_ids
            for e in self.store.list_entries(subject_id=subject_id)
            if e.assignment_id in assignment_ids
        ]
        return supervisor_summary(
            entries,
            total_subjects=len(subject_ids),
            active_assignments=sum(1 for a in assignments if a.active),
            as_of=as_of or self.clock.today(),
        )
