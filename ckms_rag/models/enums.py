from enum import Enum


class RequirementPrefix(str, Enum):
    """Requirement-type codes used in the CKMS profile, in canonical order."""
    FR = "FR"  # Framework Requirement
    PR = "PR"  # Profile Requirement
    PA = "PA"  # Profile Augmentation
    PF = "PF"  # Profile Feature


class AgentName(str, Enum):
    INGESTION = "INGESTION"
    QUERY_PLANNING = "QUERY_PLANNING"
    RETRIEVAL = "RETRIEVAL"
    ANSWERING = "ANSWERING"
    AGGLUTINATION = "AGGLUTINATION"
    FINALIZE = "FINALIZE"


class PipelineStatus(str, Enum):
    RECEIVED = "RECEIVED"
    INGESTED = "INGESTED"
    PLANNED = "PLANNED"
    RETRIEVED = "RETRIEVED"
    ANSWERED = "ANSWERED"
    COMPLETED = "COMPLETED"
