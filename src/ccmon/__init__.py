"""ccmon: measure the cost and scheduling latency of a cluster autoscaler under scripted load."""

__version__ = "0.1.0"
