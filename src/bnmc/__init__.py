"""
bnmc: posterior marginals in discrete Bayesian networks by Gibbs sampling.
"""
from .rv import Variable, Unit, binvar, binvars, alph
from .dist import CPT
from .bn import BayesNet, Node, MalformedNetworkError
from .inference import GibbsSampler, generate_random_event, query_variable

__version__ = "0.1.0"
