from ..dist import CPT
from ..rv import binvar, Unit
from ..bn import BayesNet


def smoking():
    """ Parental smoking (PS) raises the chances of smoking (S) and of
    second-hand smoke (SH), which together cause cancer (C). """
    PS = binvar('PS')
    S = binvar('S')
    SH = binvar('SH')
    C = binvar('C')

    M = BayesNet()
    M += CPT.from_ddict(Unit, PS, {'⋆': 0.3})
    M += CPT.from_ddict(PS, S, {'ps': 0.4, '~ps': 0.2})
    M += CPT.from_ddict(PS, SH, {'ps': 0.8, '~ps': 0.3})
    M += CPT.from_ddict(S & SH, C,
        {('s', 'sh'): 0.6, ('s', '~sh'): 0.4,
         ('~s', 'sh'): 0.1, ('~s', '~sh'): 0.01})
    return M
