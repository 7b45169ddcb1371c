"""
Data Generation Utilities

Synthetic data for:
- Gaussian clusters (random or fixed centers)
- Two-class background/target data with labels
- Drifting streams for non-stationary inference
"""

from .generate_gmm import (
    generate_gmm_data,
    generate_cluster_data,
    generate_two_class_data,
    generate_drifting_stream,
)
