"""Mixed-effects model fitting and profiling."""

from .glmm import COEF_NAMES, BinomialGLMM, FittedModel, GLMMConfig, GLMMDesign, fit_glmm
from .profile import DevianceProfile, profile_interval
from .start_values import StartValueConfig, pooled_logistic_start

__all__ = [
    "COEF_NAMES",
    "BinomialGLMM",
    "DevianceProfile",
    "FittedModel",
    "GLMMConfig",
    "GLMMDesign",
    "StartValueConfig",
    "fit_glmm",
    "pooled_logistic_start",
    "profile_interval",
]
