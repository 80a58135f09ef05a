__title__ = "tally"
__description__ = "Metric instrumentation API with a validating reference meter and an OpenTelemetry backend"
__url__ = ""
__version__ = "0.1.0"
__author__ = "tally authors"
__author_email__ = ""
__license__ = "MIT"
