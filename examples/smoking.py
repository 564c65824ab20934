# Posterior of parental smoking given cancer, in the smoking network.
import logging

from bnmc.lib import smoking
from bnmc.inference import GibbsSampler

logging.basicConfig(level=logging.DEBUG)

M = smoking()
sampler = GibbsSampler(M, {'C': 'c'}, rng=0)

def progress(frac):
    if int(frac * 5000) % 1000 == 0:
        print("%3d%%" % (frac * 100))

print(sampler.query('PS', 5000, callback=progress))
print(M.query_variable('SH', 5000, evidence={'C': 'c', 'S': '~s'}, rng=1))
