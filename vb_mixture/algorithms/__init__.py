"""
VB Inference Engine

This module contains:
- VBMixture: batch, online and non-stationary VB for mixtures
- VBConfig: engine configuration
- TrainingState: per-run record of responsibilities and NFE history
- Learning-rate schedules for online VB
"""

from .config import VBConfig
from .training import TrainingState, IterationHistory, KldDetails
from .learning_rate import (
    LearningRateSchedule,
    FixedLearningRate,
    RobbinsMonroLearningRate,
    create_schedule,
)
from .vb_mixture import VBMixture, parse_input_data, parse_labels
