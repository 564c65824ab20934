from ..dist import CPT
from ..rv import binvar, Unit
from ..bn import BayesNet


def burglary():
    """ The burglar alarm network: a burglary (B) or an earthquake (E) can set
    off the alarm (A), which may prompt John (J) or Mary (M) to call. """
    B, E, A, J, M = (binvar(n) for n in 'BEAJM')

    net = BayesNet()
    net += CPT.from_ddict(Unit, B, {'⋆': 0.001})
    net += CPT.from_ddict(Unit, E, {'⋆': 0.002})
    net += CPT.from_ddict(B & E, A,
        {('b', 'e'): 0.95, ('b', '~e'): 0.94,
         ('~b', 'e'): 0.29, ('~b', '~e'): 0.001})
    net += CPT.from_ddict(A, J, {'a': 0.90, '~a': 0.05})
    net += CPT.from_ddict(A, M, {'a': 0.70, '~a': 0.01})
    return net
