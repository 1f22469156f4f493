"""Service layer modules."""

from .cache import (
    CacheError,
    InMemorySnapshotCache,
    RedisSnapshotCache,
    SnapshotCache,
    init_cache,
)
from .fx_conversion import ConversionResult, convert, rebase
from .health import HealthReport, HealthReporter
from .quotes import Quote, convert_amount, get_latest
from .rate_store import SnapshotStore, init_store
from .refresh import (
    RefreshCoordinator,
    RefreshOutcome,
    RefreshState,
    RefreshStatus,
    get_coordinator,
    init_coordinator,
)
from .scheduler import init_scheduler, run_startup_refresh, shutdown_scheduler
from .snapshot import RateSnapshot, SnapshotValidationError, build_snapshot
