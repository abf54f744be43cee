import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from portal_reports.core.exceptions import UnknownReportError
from portal_reports.services.normalizer import (
    Record,
    normalize_queue_calls,
    normalize_queue_outbound_calls,
    passthrough,
)


class ReportKind(str, enum.Enum):
    CDRS = "cdrs"
    QUEUE_CALLS = "queueCalls"
    QUEUE_OUTBOUND_CALLS = "queueOutboundCalls"
    CAMPAIGNS_ACTIVITY = "campaignsActivity"


@dataclass(frozen=True)
class ReportDefinition:
    path: str
    fields: Optional[Tuple[str, ...]]
    normalize: Callable[[List[Record]], List[Record]]

    @property
    def fields_param(self) -> Optional[str]:
        if not self.fields:
            return None
        return ",".join(self.fields)


QUEUE_CALLS_FIELDS = (
    "called_time",
    "caller_id_number",
    "caller_id_name",
    "answered_time",
    "hangup_time",
    "wait_duration",
    "talked_duration",
    "queue_name",
    "abandoned",
    "queue_history",
    "agent_history",
    "agent_attempts",
    "agent_hangup",
    "call_id",
    "bleg_call_id",
    "event_timestamp",
    "agent_first_name",
    "agent_last_name",
    "agent_extension",
    "agent_email",
    "agent_talk_time",
    "agent_connect_time",
    "agent_action",
    "agent_transfer",
    "csat",
    "media_recording_id",
    "recording_filename",
    "callee_id_number",
    "a_leg",
    "interaction_id",
    "agent_disposition",
    "agent_subdisposition1",
    "agent_subdisposition2",
)

QUEUE_OUTBOUND_CALLS_FIELDS = (
    "called_time",
    "agent_name",
    "agent_ext",
    "destination",
    "answered_time",
    "hangup_time",
    "wait_duration",
    "talked_duration",
    "queue_name",
    "queue_history",
    "agent_history",
    "agent_hangup",
    "call_id",
    "bleg_call_id",
    "event_timestamp",
    "agent_first_name",
    "agent_last_name",
    "agent_extension",
    "agent_email",
    "agent_talk_time",
    "agent_connect_time",
    "agent_action",
    "agent_transfer",
    "csat",
    "media_recording_id",
    "recording_filename",
    "caller_id_name",
    "caller_id_number",
    "a_leg",
    "to",
    "interaction_id",
    "agent_disposition",
    "agent_subdisposition1",
    "agent_subdisposition2",
)

CAMPAIGNS_ACTIVITY_FIELDS = (
    "datetime",
    "timestamp",
    "campaign_name",
    "campaign_type",
    "lead_name",
    "lead_first_name",
    "lead_last_name",
    "lead_number",
    "lead_ticket_id",
    "lead_type",
    "agent_name",
    "agent_extension",
    "agent_talk_time",
    "lead_history",
    "call_id",
    "campaign_timestamps",
    "media_recording_id",
    "recording_filename",
    "status",
    "customer_wait_time_sla",
    "customer_wait_time_over_sla",
    "disposition",
    "hangup_cause",
    "lead_disposition",
    "answered_time",
)

REPORTS: Dict[ReportKind, ReportDefinition] = {
    ReportKind.CDRS: ReportDefinition(
        path="/api/v2/reports/cdrs",
        fields=None,
        normalize=passthrough,
    ),
    ReportKind.QUEUE_CALLS: ReportDefinition(
        path="/api/v2/reports/queues_cdrs",
        fields=QUEUE_CALLS_FIELDS,
        normalize=normalize_queue_calls,
    ),
    ReportKind.QUEUE_OUTBOUND_CALLS: ReportDefinition(
        path="/api/v2/reports/queues_outbound_cdrs",
        fields=QUEUE_OUTBOUND_CALLS_FIELDS,
        normalize=normalize_queue_outbound_calls,
    ),
    ReportKind.CAMPAIGNS_ACTIVITY: ReportDefinition(
        path="/api/v2/reports/campaigns/leads/history",
        fields=CAMPAIGNS_ACTIVITY_FIELDS,
        normalize=passthrough,
    ),
}


def resolve_report(report: Union[str, ReportKind]) -> Tuple[ReportKind, ReportDefinition]:
    try:
        kind = ReportKind(report)
    except ValueError as exc:
        raise UnknownReportError(str(report)) from exc
    return kind, REPORTS[kind]


def report_names() -> List[str]:
    return [kind.value for kind in ReportKind]
