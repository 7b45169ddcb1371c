"""
VB Mixture: Variational Bayes Mixture Models with Pluggable Components

A Python package for variational Bayes inference in mixture models whose
components are arbitrary conjugate exponential-family models. Supports
batch VB-EM, online (stochastic) VB and non-stationary VB with
stabilized forgetting.

Quick Start
-----------
>>> from vb_mixture import VBMixture, NormalGammaComponent, generate_cluster_data
>>>
>>> X, z = generate_cluster_data([[0, 0], [10, 10]], n=500, seed=0)
>>> model = VBMixture.from_template(NormalGammaComponent(), n_components=2,
...                                 max_iterations=50, random_state=0)
>>> model, training = model.vb_batch(X)
>>>
>>> print(f"Converged in {training.n_iterations} iterations")

Engine
------
- VBMixture: batch, online and non-stationary VB
- VBConfig: engine configuration
- TrainingState: responsibilities and NFE history of a run

Models
------
- NormalGammaComponent: diagonal Gaussian with Normal-Gamma prior
- DirichletMixing: Dirichlet posterior over mixing proportions
"""

__version__ = "1.0.0"

# Engine
from .algorithms import (
    VBMixture,
    VBConfig,
    TrainingState,
    FixedLearningRate,
    RobbinsMonroLearningRate,
    create_schedule,
)

# Models
from .models import ConjugateComponent, MixingModel, NormalGammaComponent, DirichletMixing

# Errors
from .exceptions import VBMixtureError, InputValidationError, ContractError, NumericalError

# Data generation
from .data import generate_gmm_data, generate_cluster_data

__all__ = [
    "__version__",
    # Engine
    "VBMixture",
    "VBConfig",
    "TrainingState",
    "FixedLearningRate",
    "RobbinsMonroLearningRate",
    "create_schedule",
    # Models
    "ConjugateComponent",
    "MixingModel",
    "NormalGammaComponent",
    "DirichletMixing",
    # Errors
    "VBMixtureError",
    "InputValidationError",
    "ContractError",
    "NumericalError",
    # Data generation
    "generate_gmm_data",
    "generate_cluster_data",
]
