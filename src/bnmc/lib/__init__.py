"""
Small networks with known structure, for examples and tests.
Each function builds a fresh `BayesNet`.
"""
from .smoking import smoking
from .burglary import burglary
