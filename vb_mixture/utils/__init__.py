"""
Utility Functions

This module contains utilities for:
- Timing and resource monitoring
- Metrics computation
- Run logging
"""

from .timing import ResourceMonitor
from .metrics import check_monotonicity, check_responsibilities, cluster_agreement, summarize_runs
from .logging_utils import TrainingLogger, NumpyEncoder
