"""Directory import pipeline: normalize, validate, check permissions, load and cascade roles."""

from .load import (
    AssignmentWriter,
    BatchImportOutcome,
    ImportFailure,
    ImportProgress,
    PersonWriter,
    RecordWriter,
    WriteResult,
    compute_percentage,
    run_chunked_import,
)
from .permissions import (
    PermissionDecision,
    RankedPerson,
    TierPolicy,
    check_assignment_permission,
    check_evaluation_permission,
    check_runtime_evaluation_permission,
    get_tier_policy,
)
from .roles import (
    RoleRecomputeSummary,
    promote_supervisor_role,
    promote_supervisor_role_safely,
    recompute_supervisor_roles,
    should_be_supervisor,
)
from .snapshot import DirectoryPerson, DirectorySnapshot, JobLevelInfo, load_directory_snapshot
from .validate import (
    BatchValidationResult,
    BatchValidationStats,
    CanonicalAssignmentRecord,
    CanonicalUserRecord,
    ValidationResult,
    format_validation_errors,
    validate_assignment_rows,
    validate_user_rows,
)

__all__ = [
    "AssignmentWriter",
    "BatchImportOutcome",
    "BatchValidationResult",
    "BatchValidationStats",
    "CanonicalAssignmentRecord",
    "CanonicalUserRecord",
    "DirectoryPerson",
    "DirectorySnapshot",
    "ImportFailure",
    "ImportProgress",
    "JobLevelInfo",
    "PermissionDecision",
    "PersonWriter",
    "RankedPerson",
    "RecordWriter",
    "RoleRecomputeSummary",
    "TierPolicy",
    "ValidationResult",
    "WriteResult",
    "check_assignment_permission",
    "check_evaluation_permission",
    "check_runtime_evaluation_permission",
    "compute_percentage",
    "format_validation_errors",
    "get_tier_policy",
    "load_directory_snapshot",
    "promote_supervisor_role",
    "promote_supervisor_role_safely",
    "recompute_supervisor_roles",
    "run_chunked_import",
    "should_be_supervisor",
    "validate_assignment_rows",
    "validate_user_rows",
]
