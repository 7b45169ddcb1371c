"""
Conjugate Models for VB Mixtures

This module contains:
- ConjugateComponent / MixingModel: the contract the engine calls into
- NormalGammaComponent: diagonal Gaussian with Normal-Gamma prior
- DirichletMixing: Dirichlet posterior over mixing proportions
"""

from .base import ConjugateComponent, MixingModel, check_weights
from .normal_gamma import NormalGammaComponent
from .dirichlet import DirichletMixing
