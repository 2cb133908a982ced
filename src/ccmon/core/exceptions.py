class CcmonError(Exception):
    """Base exception for ccmon."""

    pass


class ScenarioError(CcmonError):
    """Raised when a scenario cannot be decoded or fails validation."""

    pass


class PricingError(CcmonError):
    """Raised when the pricing data cannot be refreshed."""

    pass


class ClusterConnectionError(CcmonError):
    """Raised when no Kubernetes configuration could be loaded."""

    pass


class WorkloadError(CcmonError):
    """Raised when a scenario workload cannot be created."""

    pass


class SinkClosedError(CcmonError):
    """Raised when recording to a telemetry sink that has been closed."""

    pass
