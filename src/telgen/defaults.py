"""
Default values shared by config, exporters and generators.
"""

DEFAULT_SERVICE_NAME = "telgen"

DEFAULT_HTTP_ENDPOINT = "localhost:4318"
DEFAULT_GRPC_ENDPOINT = "localhost:4317"

# 123 microseconds, in seconds.
DEFAULT_SPAN_DURATION = 123e-6

# Histogram bucket boundaries used for generated histogram points.
HISTOGRAM_BOUNDS = (0, 5, 10, 25, 50, 75, 100, 250, 500, 750, 1000, 2500, 5000, 7500, 10000)

# Size of one padding attribute added to traces when `size` is set.
LOAD_ATTRIBUTE_BYTES = 1024 * 1024

# Bound on queued progress notifications before workers block.
PROGRESS_QUEUE_SIZE = 1024
